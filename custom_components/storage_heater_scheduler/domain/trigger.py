"""Once-per-day trigger state machine.

Evaluated on a fast repeating tick (one minute in production) but fires the
decision cycle at most once per calendar day:

    Idle     + tick at fetch time -> fire, RanToday
    RanToday + tick at 00:01      -> Idle
    anything else                 -> no change

Times are compared as whole minutes of the day.
"""

from __future__ import annotations

from datetime import date

from ..const import TRIGGER_RESET_TIME
from ..models import TriggerState
from .scheduler import parse_time_of_day


def _minute_of_day(seconds_of_day: int) -> int:
    return seconds_of_day // 60


class DailyTrigger:
    """Decides on each tick whether today's decision cycle should run."""

    def __init__(
        self,
        fetch_time_seconds: int,
        state: TriggerState | None = None,
        reset_time_seconds: int | None = None,
    ) -> None:
        """Initialize the trigger.

        Args:
            fetch_time_seconds: Daily fetch time as seconds-of-day
            state: Shared trigger state (a fresh Idle state if omitted)
            reset_time_seconds: When RanToday falls back to Idle (00:01)
        """
        self.state = state if state is not None else TriggerState()
        self._fetch_minute = _minute_of_day(fetch_time_seconds)
        if reset_time_seconds is None:
            reset_time_seconds = parse_time_of_day(TRIGGER_RESET_TIME)
        self._reset_minute = _minute_of_day(reset_time_seconds)

    @property
    def has_run_today(self) -> bool:
        """True while in the RanToday state."""
        return self.state.has_run_today

    def tick(self, seconds_of_day: int, today: date) -> bool:
        """Evaluate one tick.

        Returns:
            True if the decision cycle should run now
        """
        minute = _minute_of_day(seconds_of_day)

        if self.state.has_run_today:
            # A run that itself happened at the reset minute stays latched.
            if minute == self._reset_minute and self.state.last_run_date != today:
                self.state.has_run_today = False
            return False

        if minute == self._fetch_minute:
            self._mark_run(today)
            return True

        return False

    def startup_check(self, seconds_of_day: int, today: date) -> bool:
        """Immediate check run once at initialization.

        Covers a start after today's fetch time has already passed.
        """
        if self.state.has_run_today:
            return False
        if _minute_of_day(seconds_of_day) >= self._fetch_minute:
            self._mark_run(today)
            return True
        return False

    def _mark_run(self, today: date) -> None:
        self.state.has_run_today = True
        self.state.last_run_date = today
