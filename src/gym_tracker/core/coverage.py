"""
Weekly muscle coverage.

A coverage window is a half-open range [start, end). Weeks start on Monday
at 00:00 local time. Navigation never goes past the current week.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .config import WEEK_DAYS
from .models import Session
from .muscles import slugs_to_groups
from .sessions import SessionRepository
from .store import StoreContext, to_millis


def aggregate(sessions: list[Session], window_start: datetime, window_end: datetime) -> set[str]:
    """Union of ``muscles_worked`` over sessions started inside the window."""
    start_ms, end_ms = to_millis(window_start), to_millis(window_end)
    slugs: set[str] = set()
    for s in sessions:
        if start_ms <= s.started_at < end_ms:
            slugs.update(s.muscles_worked)
    return slugs


def aggregate_groups(sessions: list[Session], window_start: datetime, window_end: datetime) -> set[str]:
    """Like ``aggregate`` but bucketed into general muscle groups."""
    return slugs_to_groups(aggregate(sessions, window_start, window_end))


def week_start(now: datetime) -> datetime:
    """Most recent Monday 00:00 at or before ``now``."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=midnight.weekday())


def week_window(now: datetime, offset_weeks: int = 0) -> tuple[datetime, datetime]:
    """
    Window of the week ``offset_weeks`` away from the current one.

    Negative offsets go back in time. Positive offsets are clamped to 0.
    """
    offset = min(offset_weeks, 0)
    start = week_start(now) + timedelta(days=WEEK_DAYS * offset)
    return start, start + timedelta(days=WEEK_DAYS)


def shift_week(window_start: datetime, weeks: int, now: datetime) -> tuple[datetime, datetime]:
    """Move a window by whole weeks, never beyond the current week."""
    start = window_start + timedelta(days=WEEK_DAYS * weeks)
    current = week_start(now)
    if start > current:
        start = current
    return start, start + timedelta(days=WEEK_DAYS)


@dataclass
class CoverageWeek:
    """Muscles trained in one week window."""

    start: datetime
    end: datetime
    slugs: set[str] = field(default_factory=set)
    groups: set[str] = field(default_factory=set)
    sessions: list[Session] = field(default_factory=list)


class CoverageService:
    """Reads the sessions of a week through the store and aggregates them."""

    def __init__(self, ctx: StoreContext, sessions: SessionRepository | None = None):
        self.ctx = ctx
        self.sessions = sessions or SessionRepository(ctx)

    def week(self, offset_weeks: int = 0) -> CoverageWeek:
        """Coverage for the current week (0) or an earlier one (negative)."""
        start, end = week_window(self.ctx.now(), offset_weeks)
        sessions = self.sessions.in_range(to_millis(start), to_millis(end))
        return CoverageWeek(
            start=start,
            end=end,
            slugs=aggregate(sessions, start, end),
            groups=aggregate_groups(sessions, start, end),
            sessions=sessions,
        )
