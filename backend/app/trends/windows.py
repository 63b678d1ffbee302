"""Rolling time-window filter applied to sessions and, through them, swings."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Sequence, Tuple, TypeVar, Union

from backend.app.trends.records import SessionSummary, Swing
from backend.app.trends.thresholds import WINDOW_DAYS

SwingT = TypeVar("SwingT", bound=Swing)


class TimeWindow(str, Enum):
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        return WINDOW_DAYS.get(self.value)

    @classmethod
    def parse(cls, value: Union[str, "TimeWindow"]) -> "TimeWindow":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(w.value for w in cls)
            raise ValueError(f"Unknown time window '{value}' (expected one of: {allowed})") from exc


def _as_datetime(now: Union[date, datetime]) -> datetime:
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)


def window_cutoff(window: TimeWindow, now: Union[date, datetime]) -> Optional[datetime]:
    """Earliest instant kept by a bounded window; None for ALL."""
    days = window.days
    if days is None:
        return None
    return _as_datetime(now) - timedelta(days=days)


def _session_start(session_date: date, reference: datetime) -> datetime:
    # Session dates carry no time; compare them as midnight in the reference timezone.
    return datetime.combine(session_date, time.min, tzinfo=reference.tzinfo)


def filter_by_window(
    sessions: Sequence[SessionSummary],
    swings: Sequence[SwingT],
    window: Union[str, TimeWindow],
    now: Union[date, datetime],
) -> Tuple[Sequence[SessionSummary], Sequence[SwingT]]:
    """Return (sessions on/after the cutoff, swings owned by those sessions).

    ALL returns both inputs untouched, including sessions without a usable
    date. Bounded windows drop dateless sessions.
    """
    window = TimeWindow.parse(window)
    cutoff = window_cutoff(window, now)
    if cutoff is None:
        return sessions, swings

    kept = [
        s
        for s in sessions
        if s.session_date is not None and _session_start(s.session_date, cutoff) >= cutoff
    ]
    kept_ids = {s.session_id for s in kept}
    kept_swings = [sw for sw in swings if sw.session_id in kept_ids]
    return kept, kept_swings
