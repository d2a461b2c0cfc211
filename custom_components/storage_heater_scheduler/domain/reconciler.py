"""Replace the device's stored timed actions with tonight's schedule.

Sequence per cycle:
1. List existing actions (diagnostics only)
2. Delete all existing actions - gate for everything after it
3. Stop if there is nothing to schedule
4. Create one action per switch, fanned out concurrently

No retries. Every device failure is logged and notified once. Any other
error raised by a creation surfaces as ScheduleApplyError carrying the
partial result.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Protocol

from ..exceptions import DeviceError, ScheduleApplyError
from ..heater_logging import get_logger
from ..models import ReconcileResult, SchedulePlan, ScheduledAction
from .scheduler import BackwardScheduler, format_time_of_day


class ScheduleStore(Protocol):
    """Timed-action store on the switch device."""

    async def async_list_schedules(self) -> list[dict[str, Any]]:
        """Return stored actions."""

    async def async_delete_all_schedules(self) -> None:
        """Delete every stored action."""

    async def async_create_schedule(self, action: ScheduledAction) -> int:
        """Create one action, returning its id."""


NotifyCallback = Callable[[str], Awaitable[bool]]


class ScheduleReconciler:
    """Makes the device's stored actions match the current plan."""

    def __init__(self, store: ScheduleStore, notify: NotifyCallback) -> None:
        """Initialize the reconciler.

        Args:
            store: Device timed-action store
            notify: Async callback that sends a failure message
        """
        self._store = store
        self._notify = notify
        self._logger = get_logger()

    async def async_apply(
        self,
        plan: SchedulePlan,
        switch_ids: tuple[int, ...],
        dry_run: bool = False,
    ) -> ReconcileResult:
        """Apply a plan to every configured switch.

        Args:
            plan: Output of the backward scheduler
            switch_ids: Switches to schedule
            dry_run: Only list and report, never delete or create

        Returns:
            ReconcileResult describing what happened
        """
        result = ReconcileResult(dry_run=dry_run)

        try:
            result.existing = await self._store.async_list_schedules()
        except DeviceError as err:
            return await self._abort(result, "Failed to read existing schedules", err)

        self._logger.info("SCHEDULES_LISTED", count=len(result.existing))

        if dry_run:
            if plan.is_noop:
                self._logger.info("DRY_RUN_NO_CHARGE")
            else:
                self._logger.info(
                    "DRY_RUN_WOULD_SCHEDULE",
                    start=format_time_of_day(plan.start_of_day),
                    duration_s=plan.duration_seconds,
                    switches=list(switch_ids),
                )
            return result

        try:
            await self._store.async_delete_all_schedules()
        except DeviceError as err:
            return await self._abort(result, "Failed to delete existing schedules", err)

        result.deleted = True
        self._logger.info("SCHEDULES_DELETED", count=len(result.existing))

        if plan.is_noop:
            self._logger.info("NO_CHARGE_REQUIRED", switches=list(switch_ids))
            return result

        actions = BackwardScheduler.actions_for(plan, switch_ids)
        outcomes = await asyncio.gather(
            *(self._store.async_create_schedule(action) for action in actions),
            return_exceptions=True,
        )

        unexpected: BaseException | None = None
        for action, outcome in zip(actions, outcomes):
            if isinstance(outcome, DeviceError):
                result.created[action.switch_id] = False
                self._logger.error(
                    "SCHEDULE_CREATE_FAILED",
                    switch_id=action.switch_id,
                    error=str(outcome),
                )
                await self._notify(
                    f"Failed to create schedule for Switch {action.switch_id}"
                )
            elif isinstance(outcome, BaseException):
                result.created[action.switch_id] = False
                unexpected = unexpected or outcome
            else:
                result.created[action.switch_id] = True
                self._logger.info(
                    "SCHEDULE_CREATED",
                    switch_id=action.switch_id,
                    schedule_id=outcome,
                    start=format_time_of_day(action.start_of_day),
                    duration_s=action.duration_seconds,
                )

        if unexpected is not None:
            result.error = f"Unexpected error creating schedules: {unexpected!r}"
            self._logger.error(
                "RECONCILE_FAILED", error=repr(unexpected), created=dict(result.created)
            )
            raise ScheduleApplyError(result) from unexpected

        return result

    async def _abort(
        self, result: ReconcileResult, reason: str, err: DeviceError
    ) -> ReconcileResult:
        result.error = f"{reason}: {err}"
        self._logger.error("RECONCILE_ABORTED", reason=reason, error=str(err))
        await self._notify(result.error)
        return result
