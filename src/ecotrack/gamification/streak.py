"""Daily streak calculation: consecutive UTC calendar days with at least one action."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone


def action_day(ts: datetime) -> date:
    """UTC calendar day of a timestamp. Naive timestamps are taken as UTC."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date()


def utc_today(now: datetime | None = None) -> date:
    """Current UTC calendar day."""
    if now is None:
        now = datetime.now(timezone.utc)
    return action_day(now)


def calculate_streak(timestamps: Iterable[datetime], today: date) -> int:
    """Count consecutive days with activity, ending today or yesterday.

    If there is an action today the streak starts at 1 and continues back
    from yesterday. Otherwise the chain has to start at yesterday. The scan
    stops at the first missing day.

    Days after ``today`` are dropped before the scan rather than ending it,
    so a clock-skewed future action does not reset an otherwise live streak
    ({tomorrow, today} counts 1, not 0).
    """
    days = sorted({action_day(ts) for ts in timestamps if action_day(ts) <= today}, reverse=True)
    if not days:
        return 0

    streak = 0
    remaining = days
    if days[0] == today:
        streak = 1
        remaining = days[1:]

    expected = today - timedelta(days=1)
    for day in remaining:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)

    return streak
