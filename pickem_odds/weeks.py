from __future__ import annotations

import datetime as _dt
from typing import Tuple

REGULAR_SEASON_WEEKS = 18
MAX_WEEK = 22  # 18 regular season weeks + 4 playoff rounds


def utcnow() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def parse_utc(value) -> _dt.datetime | None:
    """Parse an ISO timestamp (with trailing Z) or datetime into an aware UTC datetime.

    The Odds API returns e.g. '2025-09-07T17:00:00Z', ESPN '2025-09-07T17:00Z'.
    Naive datetimes are assumed to be UTC. Returns None for empty input.
    """
    if value is None or value == "":
        return None
    if isinstance(value, _dt.datetime):
        dt = value
    else:
        ts = str(value).strip()
        if ts.endswith("Z"):
            ts = ts[:-1] + "+00:00"
        dt = _dt.datetime.fromisoformat(ts)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=_dt.timezone.utc)
    return dt.astimezone(_dt.timezone.utc)


def _first_weekday(year: int, month: int, weekday: int) -> _dt.datetime:
    base = _dt.datetime(year, month, 1, tzinfo=_dt.timezone.utc)
    delta = (weekday - base.weekday()) % 7
    return base + _dt.timedelta(days=delta)


def season_kickoff(season: int) -> _dt.datetime:
    """Thursday after Labor Day (first Monday of September), 00:00 UTC."""
    labor_day = _first_weekday(season, 9, 0)
    return labor_day + _dt.timedelta(days=3)


def week_window(season: int, week: int) -> Tuple[_dt.datetime, _dt.datetime]:
    """Return [Tue 00:00, next Tue 00:00) for a season week."""
    start = season_kickoff(season) - _dt.timedelta(days=2) + _dt.timedelta(weeks=week - 1)
    return start, start + _dt.timedelta(weeks=1)


def current_week(now: _dt.datetime | None = None) -> Tuple[int, int]:
    """Compute (season, week) for an instant.

    Rule: weeks flip on Tuesday. Anything before the first week (preseason,
    the off-season after March) maps to week 1; past the Super Bowl stays at 22.
    """
    now = parse_utc(now) if now is not None else utcnow()
    season = now.year if now.month >= 3 else now.year - 1
    first_tuesday, _ = week_window(season, 1)
    if now < first_tuesday:
        return season, 1
    week = (now - first_tuesday).days // 7 + 1
    return season, min(week, MAX_WEEK)


def espn_season_type(week: int) -> Tuple[int, int]:
    """ESPN addresses playoffs as seasontype=3 with weeks 1-4."""
    if week <= REGULAR_SEASON_WEEKS:
        return 2, week
    return 3, week - REGULAR_SEASON_WEEKS
