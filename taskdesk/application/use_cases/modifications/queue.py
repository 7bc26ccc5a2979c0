"""Modification request queue: the admin/employee inbox of requests."""

from __future__ import annotations

from collections import Counter

from taskdesk.application.dtos.modification_request import (
    ModificationQueueFilters,
    ModificationQueuePage,
    ModificationQueueSummary,
    ModificationRequestView,
)
from taskdesk.application.interfaces.repositories import IModificationRequestRepository
from taskdesk.application.interfaces.services import IClock
from taskdesk.application.use_cases.modifications.workflow import build_request_view
from taskdesk.domain.enums import RequestOrigin, RequestStatus
from taskdesk.domain.exceptions import ValidationException
from taskdesk.domain.value_objects.core import Actor, WorkflowPolicy
from taskdesk.shared.utils.datetime import utc_now

QUEUE_SORTS = ("urgency", "oldest", "recent")

# "pending" in the queue means still awaiting someone: a decision or execution.
_STATUS_FILTERS: dict[str, frozenset[RequestStatus]] = {
    **{s.value: frozenset({s}) for s in RequestStatus},
    "pending": frozenset({RequestStatus.PENDING, RequestStatus.APPROVED}),
}


def _urgency_key(view: ModificationRequestView) -> tuple:
    # Most urgent first, then nearest deadline, then oldest.
    remaining = view.sla.remaining_ms if view.sla is not None else float("inf")
    return (view.request.urgency.rank, remaining, view.request.requested_at)


class ModificationQueueService:
    """Lists requests with effective status, filters, sort, and summary counts.

    Effective status depends on the clock, so filtering and counting happen
    after the status overlay rather than in SQL.
    """

    def __init__(
        self,
        request_repo: IModificationRequestRepository,
        policy: WorkflowPolicy | None = None,
        clock: IClock = utc_now,
        max_limit: int = 200,
    ) -> None:
        self.request_repo = request_repo
        self.policy = policy or WorkflowPolicy()
        self.clock = clock
        self.max_limit = max_limit

    async def list_requests(
        self, actor: Actor, filters: ModificationQueueFilters
    ) -> ModificationQueuePage:
        if filters.status is not None and filters.status not in _STATUS_FILTERS:
            raise ValidationException(
                f"status must be one of {sorted(_STATUS_FILTERS)}", field="status"
            )
        if filters.sort not in QUEUE_SORTS:
            raise ValidationException(f"sort must be one of {list(QUEUE_SORTS)}", field="sort")
        limit = max(1, min(filters.limit, self.max_limit))
        skip = max(0, filters.skip)

        now = self.clock()
        rows = await self.request_repo.list_for_queue(
            assigned_to=None if actor.is_admin else actor.user_id,
            origin=filters.origin,
            search=(filters.search or "").strip() or None,
        )
        views = [build_request_view(r.request, now, self.policy, r.task_title) for r in rows]
        summary = self._summarize(views)

        if filters.status is not None:
            wanted = _STATUS_FILTERS[filters.status]
            views = [v for v in views if v.effective_status in wanted]
        if filters.sort == "urgency":
            views.sort(key=_urgency_key)
        else:
            views.sort(
                key=lambda v: v.request.requested_at, reverse=filters.sort == "recent"
            )
        return ModificationQueuePage(
            items=views[skip : skip + limit],
            total=len(views),
            skip=skip,
            limit=limit,
            summary=summary,
        )

    @staticmethod
    def _summarize(views: list[ModificationRequestView]) -> ModificationQueueSummary:
        by_status = Counter(v.effective_status for v in views)
        by_origin = Counter(v.request.origin for v in views)
        return ModificationQueueSummary(
            total=len(views),
            pending=by_status[RequestStatus.PENDING],
            approved=by_status[RequestStatus.APPROVED],
            rejected=by_status[RequestStatus.REJECTED],
            expired=by_status[RequestStatus.EXPIRED],
            executed=by_status[RequestStatus.EXECUTED],
            counter_proposed=by_status[RequestStatus.COUNTER_PROPOSED],
            admin_initiated=by_origin[RequestOrigin.ADMIN_INITIATED],
            employee_initiated=by_origin[RequestOrigin.EMPLOYEE_INITIATED],
        )
