"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for the acting party, repositories and the
workflow use cases. Use cases are built from infrastructure implementations
here; routes depend only on these providers, not on infra directly.

Reads get repositories on a plain session (get_db); writes get them on a
transactional session (get_db_transactional) so each request commits or
rolls back as a whole.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.application.interfaces.services import IClock
from taskdesk.application.services.authorization_service import AuthorizationService
from taskdesk.application.use_cases.modifications import (
    ExpireOverdueRequestsUseCase,
    ModificationQueueService,
    ModificationWorkflowService,
)
from taskdesk.application.use_cases.tasks import TaskRecoveryService
from taskdesk.core.config import get_settings
from taskdesk.domain.exceptions import AuthenticationException
from taskdesk.domain.value_objects.core import Actor, WorkflowPolicy
from taskdesk.infrastructure.locking import KeyedLockManager
from taskdesk.infrastructure.persistence.database import get_db, get_db_transactional
from taskdesk.infrastructure.persistence.repositories import (
    EmployeeRepository,
    ModificationRequestRepository,
    TaskRepository,
)
from taskdesk.infrastructure.security.jwt import actor_from_token
from taskdesk.shared.context import set_current_actor
from taskdesk.shared.utils.datetime import utc_now

_http_bearer = HTTPBearer(auto_error=False)


# ---- Acting party -------------------------------------------------------


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> Actor:
    """Resolve the actor from the bearer token; 401 if missing or invalid."""
    if credentials is None:
        raise AuthenticationException("Not authenticated")
    actor = actor_from_token(credentials.credentials)
    set_current_actor(actor.user_id, actor.role.value)
    return actor


def get_authorization_service() -> AuthorizationService:
    return AuthorizationService()


# ---- Runtime collaborators ----------------------------------------------


def get_lock_manager(request: Request) -> KeyedLockManager:
    """Process-wide per-task lock manager (set on app.state at startup)."""
    return request.app.state.lock_manager


def get_clock() -> IClock:
    return utc_now


def get_workflow_policy() -> WorkflowPolicy:
    return get_settings().workflow_policy()


# ---- Repositories -------------------------------------------------------


@dataclass(frozen=True)
class Repositories:
    """Repositories sharing one session (and so one transaction)."""

    tasks: TaskRepository
    requests: ModificationRequestRepository
    employees: EmployeeRepository


def _repositories(db: AsyncSession) -> Repositories:
    return Repositories(
        tasks=TaskRepository(db),
        requests=ModificationRequestRepository(db),
        employees=EmployeeRepository(db),
    )


async def get_repositories(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Repositories:
    """Repositories for read operations."""
    return _repositories(db)


async def get_repositories_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> Repositories:
    """Repositories for write operations (transactional)."""
    return _repositories(db)


# ---- Use cases ----------------------------------------------------------


def _workflow_service(
    repos: Repositories,
    locks: KeyedLockManager,
    policy: WorkflowPolicy,
    clock: IClock,
    authorization: AuthorizationService,
) -> ModificationWorkflowService:
    return ModificationWorkflowService(
        task_repo=repos.tasks,
        request_repo=repos.requests,
        locks=locks,
        policy=policy,
        clock=clock,
        authorization=authorization,
    )


async def get_workflow_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
    locks: Annotated[KeyedLockManager, Depends(get_lock_manager)],
    policy: Annotated[WorkflowPolicy, Depends(get_workflow_policy)],
    clock: Annotated[IClock, Depends(get_clock)],
    authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> ModificationWorkflowService:
    """Workflow service for reads (request detail, task request history)."""
    return _workflow_service(repos, locks, policy, clock, authorization)


async def get_workflow_service_for_write(
    repos: Annotated[Repositories, Depends(get_repositories_for_write)],
    locks: Annotated[KeyedLockManager, Depends(get_lock_manager)],
    policy: Annotated[WorkflowPolicy, Depends(get_workflow_policy)],
    clock: Annotated[IClock, Depends(get_clock)],
    authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> ModificationWorkflowService:
    """Workflow service for create/view/message/decide/execute (transactional)."""
    return _workflow_service(repos, locks, policy, clock, authorization)


async def get_queue_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
    policy: Annotated[WorkflowPolicy, Depends(get_workflow_policy)],
    clock: Annotated[IClock, Depends(get_clock)],
) -> ModificationQueueService:
    return ModificationQueueService(
        request_repo=repos.requests,
        policy=policy,
        clock=clock,
        max_limit=get_settings().queue_max_limit,
    )


async def get_expire_overdue_use_case(
    repos: Annotated[Repositories, Depends(get_repositories_for_write)],
    locks: Annotated[KeyedLockManager, Depends(get_lock_manager)],
    clock: Annotated[IClock, Depends(get_clock)],
) -> ExpireOverdueRequestsUseCase:
    """Expiry sweep use case (transactional)."""
    return ExpireOverdueRequestsUseCase(
        task_repo=repos.tasks,
        request_repo=repos.requests,
        locks=locks,
        clock=clock,
    )


def _recovery_service(
    repos: Repositories,
    locks: KeyedLockManager,
    policy: WorkflowPolicy,
    clock: IClock,
    authorization: AuthorizationService,
) -> TaskRecoveryService:
    return TaskRecoveryService(
        task_repo=repos.tasks,
        request_repo=repos.requests,
        employee_directory=repos.employees,
        locks=locks,
        policy=policy,
        clock=clock,
        authorization=authorization,
    )


async def get_task_service(
    repos: Annotated[Repositories, Depends(get_repositories)],
    locks: Annotated[KeyedLockManager, Depends(get_lock_manager)],
    policy: Annotated[WorkflowPolicy, Depends(get_workflow_policy)],
    clock: Annotated[IClock, Depends(get_clock)],
    authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> TaskRecoveryService:
    """Task reads (detail, employee directory)."""
    return _recovery_service(repos, locks, policy, clock, authorization)


async def get_task_service_for_write(
    repos: Annotated[Repositories, Depends(get_repositories_for_write)],
    locks: Annotated[KeyedLockManager, Depends(get_lock_manager)],
    policy: Annotated[WorkflowPolicy, Depends(get_workflow_policy)],
    clock: Annotated[IClock, Depends(get_clock)],
    authorization: Annotated[AuthorizationService, Depends(get_authorization_service)],
) -> TaskRecoveryService:
    """Reassign/reopen (transactional)."""
    return _recovery_service(repos, locks, policy, clock, authorization)
