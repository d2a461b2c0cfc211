"""Backward scheduling inside the nightly charging window.

The charge is anchored so that it FINISHES at the end of the window.
Windows may wrap midnight (e.g. 22:00 -> 06:00).

No Home Assistant dependencies.
"""

from __future__ import annotations

from ..const import SECONDS_PER_DAY
from ..models import ChargingWindow, SchedulePlan, ScheduledAction


def parse_time_of_day(value: str) -> int:
    """Parse "HH:MM" or "HH:MM:SS" into seconds-of-day."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0
    if not (0 <= hours < 24 and 0 <= minutes < 60 and 0 <= seconds < 60):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 3600 + minutes * 60 + seconds


def format_time_of_day(seconds: int) -> str:
    """Format seconds-of-day as "HH:MM"."""
    seconds %= SECONDS_PER_DAY
    return f"{seconds // 3600:02d}:{(seconds % 3600) // 60:02d}"


def cron_timespec(start_of_day: int) -> str:
    """Daily cron timespec ("sec min hour * * *") for a start time."""
    return f"0 {(start_of_day % 3600) // 60} {start_of_day // 3600} * * *"


class BackwardScheduler:
    """Pure backward scheduling logic."""

    @staticmethod
    def schedule(required_seconds: int, window: ChargingWindow) -> SchedulePlan:
        """Compute the final duration and start time for a charge.

        Algorithm:
        1. Window span (wrapping windows add the time before midnight)
        2. Clamp the duration to the span
        3. Start = end - duration, modulo one day
        4. If that start falls outside the window (degenerate window),
           charge for the whole window from its opening
        5. A zero duration yields a no-op plan

        Args:
            required_seconds: Charge duration wanted (>= 0)
            window: Charging window

        Returns:
            SchedulePlan with final duration and start time
        """
        span = window.span_seconds
        duration = min(max(0, required_seconds), span)

        if duration == 0:
            return SchedulePlan(duration_seconds=0, start_of_day=window.end_of_day)

        start = (window.end_of_day - duration + SECONDS_PER_DAY) % SECONDS_PER_DAY

        if not window.contains(start) and span > 0:
            start = window.start_of_day
            duration = span

        return SchedulePlan(duration_seconds=duration, start_of_day=start)

    @staticmethod
    def actions_for(
        plan: SchedulePlan, switch_ids: tuple[int, ...]
    ) -> list[ScheduledAction]:
        """Expand a plan into one action per switch."""
        if plan.is_noop:
            return []
        return [
            ScheduledAction(
                switch_id=switch_id,
                start_of_day=plan.start_of_day,
                duration_seconds=plan.duration_seconds,
            )
            for switch_id in switch_ids
        ]
