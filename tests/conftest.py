"""Pytest configuration and fixtures for taskdesk.

Unit tests run the use cases against in-memory repositories that honour the
same contracts as the SQL ones (copies on read, version check on save, one
open request per task). API tests run the FastAPI app over ASGI with the
repository and clock providers overridden. Tests that need Postgres use the
``db_session`` fixture and ``@pytest.mark.requires_db``.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production-0123456789")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TELEMETRY_ENABLED"] = "false"

from copy import deepcopy  # noqa: E402
from datetime import UTC, date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import taskdesk.infrastructure.persistence.database as database  # noqa: E402
from taskdesk.api.v1.dependencies import (  # noqa: E402
    Repositories,
    get_clock,
    get_repositories,
    get_repositories_for_write,
)
from taskdesk.application.dtos.modification_request import QueueRow  # noqa: E402
from taskdesk.application.use_cases.modifications import (  # noqa: E402
    ExpireOverdueRequestsUseCase,
    ModificationQueueService,
    ModificationWorkflowService,
)
from taskdesk.application.use_cases.tasks import TaskRecoveryService  # noqa: E402
from taskdesk.core.config import get_settings  # noqa: E402
from taskdesk.domain.entities.employee import EmployeeEntity  # noqa: E402
from taskdesk.domain.entities.modification_request import (  # noqa: E402
    ModificationRequestEntity,
)
from taskdesk.domain.entities.task import TaskEntity  # noqa: E402
from taskdesk.domain.enums import (  # noqa: E402
    EXPIRABLE_REQUEST_STATUSES,
    OPEN_REQUEST_STATUSES,
    ActorRole,
    EmployeeStatus,
    RequestOrigin,
    TaskStatus,
)
from taskdesk.domain.exceptions import (  # noqa: E402
    ConcurrentModificationException,
    InvalidStateTransitionException,
)
from taskdesk.domain.value_objects.core import Actor, WorkflowPolicy  # noqa: E402
from taskdesk.infrastructure.locking import KeyedLockManager  # noqa: E402
from taskdesk.infrastructure.security.jwt import create_access_token  # noqa: E402

get_settings.cache_clear()

T0 = datetime(2025, 8, 1, 9, 0, tzinfo=UTC)
TASK_DUE = date(2025, 8, 15)


class FixedClock:
    """Injectable clock; tests move time with advance()."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


class InMemoryTaskRepository:
    def __init__(self) -> None:
        self.rows: dict[str, TaskEntity] = {}

    def put(self, task: TaskEntity) -> TaskEntity:
        task.mark_activity_persisted()
        self.rows[task.id] = deepcopy(task)
        return task

    async def get_by_id(self, task_id: str) -> TaskEntity | None:
        stored = self.rows.get(task_id)
        return deepcopy(stored) if stored else None

    async def get_for_update(self, task_id: str) -> TaskEntity | None:
        return await self.get_by_id(task_id)

    async def save(self, task: TaskEntity) -> TaskEntity:
        stored = self.rows.get(task.id)
        if stored is None or stored.version != task.version:
            raise ConcurrentModificationException("task", task.id)
        task.version += 1
        task.mark_activity_persisted()
        self.rows[task.id] = deepcopy(task)
        return task


class InMemoryRequestRepository:
    def __init__(self, tasks: InMemoryTaskRepository) -> None:
        self.rows: dict[str, ModificationRequestEntity] = {}
        self.tasks = tasks

    async def get_by_id(self, request_id: str) -> ModificationRequestEntity | None:
        stored = self.rows.get(request_id)
        return deepcopy(stored) if stored else None

    async def list_by_task(self, task_id: str) -> list[ModificationRequestEntity]:
        found = [r for r in self.rows.values() if r.task_id == task_id]
        return [deepcopy(r) for r in sorted(found, key=lambda r: r.requested_at)]

    async def create(self, request: ModificationRequestEntity) -> ModificationRequestEntity:
        # Mirrors the partial unique index on open statuses.
        if any(
            r.task_id == request.task_id and r.status in OPEN_REQUEST_STATUSES
            for r in self.rows.values()
        ):
            raise InvalidStateTransitionException(
                "Task already has an open modification request", action="create"
            )
        request.mark_messages_persisted()
        self.rows[request.id] = deepcopy(request)
        return request

    async def save(self, request: ModificationRequestEntity) -> ModificationRequestEntity:
        stored = self.rows.get(request.id)
        if stored is None or stored.version != request.version:
            raise ConcurrentModificationException("modification_request", request.id)
        request.version += 1
        request.mark_messages_persisted()
        self.rows[request.id] = deepcopy(request)
        return request

    async def list_expirable(
        self, now: datetime, limit: int = 500
    ) -> list[ModificationRequestEntity]:
        due = [
            r
            for r in self.rows.values()
            if r.status in EXPIRABLE_REQUEST_STATUSES
            and r.expires_at is not None
            and r.expires_at <= now
        ]
        due.sort(key=lambda r: r.expires_at)
        return [deepcopy(r) for r in due[:limit]]

    async def list_for_queue(
        self,
        assigned_to: str | None = None,
        origin: RequestOrigin | None = None,
        search: str | None = None,
    ) -> list[QueueRow]:
        rows = []
        for r in self.rows.values():
            task = self.tasks.rows[r.task_id]
            if task.is_deleted:
                continue
            if assigned_to is not None and task.assigned_to != assigned_to:
                continue
            if origin is not None and r.origin != origin:
                continue
            if search and not (
                search.lower() in task.title.lower() or search.lower() in r.reason.lower()
            ):
                continue
            rows.append(
                QueueRow(request=deepcopy(r), task_title=task.title, assigned_to=task.assigned_to)
            )
        return rows


class InMemoryEmployeeDirectory:
    def __init__(self, employees: list[EmployeeEntity]) -> None:
        self.rows = {e.id: e for e in employees}

    async def get_by_id(self, employee_id: str) -> EmployeeEntity | None:
        return self.rows.get(employee_id)

    async def list_active(self) -> list[EmployeeEntity]:
        return sorted((e for e in self.rows.values() if e.is_active), key=lambda e: e.name)


# ---- Actors and data -----------------------------------------------------


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role=ActorRole.ADMIN)


@pytest.fixture
def employee() -> Actor:
    """Assignee of the default task."""
    return Actor(user_id="emp-1", role=ActorRole.EMPLOYEE)


@pytest.fixture
def other_employee() -> Actor:
    return Actor(user_id="emp-2", role=ActorRole.EMPLOYEE)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture
def policy() -> WorkflowPolicy:
    return WorkflowPolicy()


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def request_repo(task_repo: InMemoryTaskRepository) -> InMemoryRequestRepository:
    return InMemoryRequestRepository(task_repo)


@pytest.fixture
def employee_directory() -> InMemoryEmployeeDirectory:
    return InMemoryEmployeeDirectory(
        [
            EmployeeEntity(id="emp-1", name="Amara Okello", email="amara@example.test"),
            EmployeeEntity(id="emp-2", name="Jon Reyes", email="jon@example.test"),
            EmployeeEntity(
                id="emp-3",
                name="Lee Park",
                email="lee@example.test",
                status=EmployeeStatus.INACTIVE,
            ),
        ]
    )


@pytest.fixture
def make_task(task_repo: InMemoryTaskRepository):
    """Store a task and return it; keyword overrides replace the defaults."""

    def _make(task_id: str = "task-1", **overrides) -> TaskEntity:
        fields = {
            "title": "Quarterly report",
            "status": TaskStatus.IN_PROGRESS,
            "assigned_to": "emp-1",
            "due_date": TASK_DUE,
        }
        fields.update(overrides)
        return task_repo.put(TaskEntity(id=task_id, **fields))

    return _make


@pytest.fixture
def task(make_task) -> TaskEntity:
    return make_task()


@pytest.fixture
def locks() -> KeyedLockManager:
    return KeyedLockManager()


# ---- Use cases -----------------------------------------------------------


@pytest.fixture
def workflow(task_repo, request_repo, locks, policy, clock) -> ModificationWorkflowService:
    return ModificationWorkflowService(
        task_repo=task_repo,
        request_repo=request_repo,
        locks=locks,
        policy=policy,
        clock=clock,
    )


@pytest.fixture
def queue(request_repo, policy, clock) -> ModificationQueueService:
    return ModificationQueueService(request_repo=request_repo, policy=policy, clock=clock)


@pytest.fixture
def expiry(task_repo, request_repo, locks, clock) -> ExpireOverdueRequestsUseCase:
    return ExpireOverdueRequestsUseCase(
        task_repo=task_repo, request_repo=request_repo, locks=locks, clock=clock
    )


@pytest.fixture
def recovery(
    task_repo, request_repo, employee_directory, locks, policy, clock
) -> TaskRecoveryService:
    return TaskRecoveryService(
        task_repo=task_repo,
        request_repo=request_repo,
        employee_directory=employee_directory,
        locks=locks,
        policy=policy,
        clock=clock,
    )


# ---- HTTP ----------------------------------------------------------------


@pytest.fixture
def app(task_repo, request_repo, employee_directory, clock):
    """Fresh app with in-memory repositories and the fixed clock."""
    from taskdesk.main import create_app

    application = create_app()
    repos = Repositories(
        tasks=task_repo,
        requests=request_repo,
        employees=employee_directory,
    )
    application.dependency_overrides[get_repositories] = lambda: repos
    application.dependency_overrides[get_repositories_for_write] = lambda: repos
    application.dependency_overrides[get_clock] = lambda: clock
    return application


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Build Authorization headers for an actor."""

    def _headers(actor: Actor) -> dict[str, str]:
        token = create_access_token(actor.user_id, actor.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def db_session():
    """Database session for repository tests. Rolls back after the test.

    Skips when DATABASE_URL is not set. Run without a database via:
    pytest -m 'not requires_db'.
    """
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip(
            "Postgres not configured: set DATABASE_URL, then run: alembic upgrade head"
        )
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()
    await database.dispose_engine()
