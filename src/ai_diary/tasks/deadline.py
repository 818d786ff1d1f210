# src/ai_diary/tasks/deadline.py

from __future__ import annotations

"""
Deadline composition for the task editor.

Date and time come from two separate pickers. Each picker session ends with
confirm or cancel, and confirming one half must never wipe the half that was
confirmed earlier. The draft keeps four explicit fields so that rule can be
checked instead of being spread over UI flags.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from enum import Enum

from ..core.errors import InvalidLocalState
from ..core.ports import Clock

logger = logging.getLogger(__name__)


class PickerMode(str, Enum):
    IDLE = "idle"
    PICKING_DATE = "picking_date"
    PICKING_TIME = "picking_time"


@dataclass(slots=True)
class DeadlineDraft:
    confirmed_date: date | None = None
    confirmed_time: time | None = None
    pending_date: date | None = None
    pending_time: time | None = None

    def check(self) -> None:
        if self.pending_date is not None and self.pending_time is not None:
            raise InvalidLocalState("date and time cannot be pending at the same time")


def _to_minutes(t: time) -> time:
    return time(t.hour, t.minute)


class DeadlineComposer:
    """
    IDLE -> PICKING_DATE | PICKING_TIME -> IDLE (confirm or cancel).

    If only a date is confirmed, the deadline takes the current clock time
    (hours and minutes), not midnight. Confirming a time with no date yet
    pins the date to today. Dates before today are rejected, except the date
    of a deadline passed in as `initial`.

    `tz` fixes the zone deadlines are composed in; None means the local zone
    of the machine, resolved per date so DST offsets come out right.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
        initial: datetime | None = None,
    ) -> None:
        self._clock: Clock = clock or datetime.now
        self._tz = tz
        self._mode = PickerMode.IDLE
        self._draft = DeadlineDraft()
        self._seeded_date: date | None = None

        if initial is not None:
            local = self._localize(initial)
            self._seeded_date = local.date()
            self._draft.confirmed_date = local.date()
            self._draft.confirmed_time = _to_minutes(local.time())

    # ---- state ----

    @property
    def mode(self) -> PickerMode:
        return self._mode

    @property
    def draft(self) -> DeadlineDraft:
        return DeadlineDraft(
            confirmed_date=self._draft.confirmed_date,
            confirmed_time=self._draft.confirmed_time,
            pending_date=self._draft.pending_date,
            pending_time=self._draft.pending_time,
        )

    def _localize(self, dt: datetime) -> datetime:
        return dt.astimezone(self._tz) if self._tz is not None else dt.astimezone()

    def _now(self) -> datetime:
        return self._localize(self._clock())

    def _compose(self, d: date, t: time) -> datetime:
        if self._tz is not None:
            return datetime.combine(d, t, tzinfo=self._tz)
        return datetime.combine(d, t).astimezone()

    # ---- pickers ----

    def open_date_picker(self) -> bool:
        if self._mode is not PickerMode.IDLE:
            logger.debug("open_date_picker ignored: %s is open", self._mode.value)
            return False
        self._mode = PickerMode.PICKING_DATE
        return True

    def open_time_picker(self) -> bool:
        if self._mode is not PickerMode.IDLE:
            logger.debug("open_time_picker ignored: %s is open", self._mode.value)
            return False
        self._mode = PickerMode.PICKING_TIME
        return True

    def select_pending_date(self, value: date) -> None:
        if self._mode is not PickerMode.PICKING_DATE:
            raise InvalidLocalState("date picker is not open")
        if isinstance(value, datetime):
            value = self._localize(value).date()
        if value < self._now().date() and value != self._seeded_date:
            raise InvalidLocalState(f"deadline date {value.isoformat()} is in the past")
        self._draft.pending_date = value
        self._draft.check()

    def select_pending_time(self, value: time | datetime) -> None:
        if self._mode is not PickerMode.PICKING_TIME:
            raise InvalidLocalState("time picker is not open")
        if isinstance(value, datetime):
            value = self._localize(value).time()
        self._draft.pending_time = _to_minutes(value)
        self._draft.check()

    def confirm_date(self) -> datetime | None:
        pending = self._draft.pending_date
        if pending is None:
            raise InvalidLocalState("no pending date to confirm")

        # Any confirmed time is kept as is.
        self._draft.confirmed_date = pending
        self._draft.pending_date = None
        self._mode = PickerMode.IDLE
        return self.current_deadline()

    def confirm_time(self) -> datetime | None:
        pending = self._draft.pending_time
        if pending is None:
            raise InvalidLocalState("no pending time to confirm")

        if self._draft.confirmed_date is None:
            self._draft.confirmed_date = self._now().date()
        self._draft.confirmed_time = pending
        self._draft.pending_time = None
        self._mode = PickerMode.IDLE
        return self.current_deadline()

    def cancel(self) -> None:
        """Drop whatever is pending; confirmed values stay."""
        self._draft.pending_date = None
        self._draft.pending_time = None
        self._mode = PickerMode.IDLE

    # ---- result ----

    def current_deadline(self) -> datetime | None:
        d = self._draft.confirmed_date
        if d is None:
            return None
        t = self._draft.confirmed_time
        if t is None:
            t = _to_minutes(self._now().time())
        return self._compose(d, t)

    def clear(self) -> None:
        """Remove the deadline altogether (both confirmed halves)."""
        self._draft.confirmed_date = None
        self._draft.confirmed_time = None

    def commit(self) -> datetime | None:
        """End the authoring session and hand back the deadline to submit."""
        value = self.current_deadline()
        self.discard()
        return value

    def discard(self) -> None:
        self._draft = DeadlineDraft()
        self._seeded_date = None
        self._mode = PickerMode.IDLE
