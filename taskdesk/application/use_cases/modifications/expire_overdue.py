"""Persist SLA expiry for requests whose deadline has passed."""

from __future__ import annotations

from taskdesk.application.dtos.modification_request import ExpirySweepResult
from taskdesk.application.interfaces.repositories import (
    IModificationRequestRepository,
    ITaskRepository,
)
from taskdesk.application.interfaces.services import IClock, IKeyedLock
from taskdesk.application.use_cases.modifications.workflow import record_expiry
from taskdesk.domain.exceptions import ConcurrentModificationException
from taskdesk.shared.telemetry.logging import get_logger
from taskdesk.shared.telemetry.tracing import traced
from taskdesk.shared.utils.datetime import utc_now

logger = get_logger(__name__)

# Max requests examined per run; the cron runs again for the rest.
EXPIRY_BATCH_SIZE = 500


class ExpireOverdueRequestsUseCase:
    """Moves overdue pending/approved requests to expired.

    Reads only show the overlay; this makes it durable and adds the timeline
    entry. Safe to run concurrently with decisions: each request is reloaded
    under the task lock and re-checked, and a lost version check is skipped
    (the other writer already moved the request on).
    """

    def __init__(
        self,
        task_repo: ITaskRepository,
        request_repo: IModificationRequestRepository,
        locks: IKeyedLock,
        clock: IClock = utc_now,
    ) -> None:
        self.task_repo = task_repo
        self.request_repo = request_repo
        self.locks = locks
        self.clock = clock

    @traced("modification.expire_overdue")
    async def run(self, limit: int = EXPIRY_BATCH_SIZE) -> ExpirySweepResult:
        now = self.clock()
        candidates = await self.request_repo.list_expirable(now, limit=limit)
        expired_ids: list[str] = []
        for candidate in candidates:
            async with self.locks.hold(candidate.task_id):
                request = await self.request_repo.get_by_id(candidate.id)
                task = await self.task_repo.get_for_update(candidate.task_id)
                if request is None or task is None or not request.expire(now):
                    continue
                try:
                    await self.request_repo.save(request)
                except ConcurrentModificationException:
                    logger.info("Request %s changed during expiry sweep; skipped", request.id)
                    continue
                record_expiry(task, request, now)
                await self.task_repo.save(task)
                expired_ids.append(request.id)
        if expired_ids:
            logger.info("Expired %d overdue modification requests", len(expired_ids))
        return ExpirySweepResult(expired_request_ids=expired_ids)
