from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import datetime as _dt

from .weeks import parse_utc


class Mode(str, Enum):
    MANUAL = "manual"
    DAILY = "daily"
    BOOTSTRAP = "bootstrap"


class Bucket(str, Enum):
    MISSING_LOCKED = "missingLocked"
    ALREADY_LOCKED = "alreadyLocked"
    ELIGIBLE = "eligible"
    NOT_ELIGIBLE = "notEligible"


GAME_STATUSES = ("scheduled", "live", "final")


def make_game_id(season: int, week: int, away_team: str, home_team: str) -> str:
    return f"{season}-W{week:02d}-{away_team}-{home_team}"


def make_week_id(season: int, week: int) -> str:
    return f"{season}_W{week:02d}"


def _iso(ts: Optional[_dt.datetime]) -> Optional[str]:
    if ts is None:
        return None
    return ts.isoformat().replace("+00:00", "Z")


@dataclass
class Game:
    season: int
    week: int
    game_id: str
    kickoff: _dt.datetime
    home_team: str
    away_team: str
    status: str = "scheduled"
    odds_event_id: Optional[str] = None

    @classmethod
    def create(cls, season: int, week: int, away_team: str, home_team: str, kickoff, status: str = "scheduled") -> "Game":
        return cls(
            season=season,
            week=week,
            game_id=make_game_id(season, week, away_team, home_team),
            kickoff=parse_utc(kickoff),
            home_team=home_team,
            away_team=away_team,
            status=status,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "week": self.week,
            "gameId": self.game_id,
            "kickoffUtc": self.kickoff,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "status": self.status,
            "oddsEventId": self.odds_event_id,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Game":
        return cls(
            season=int(d["season"]),
            week=int(d["week"]),
            game_id=d["gameId"],
            kickoff=parse_utc(d["kickoffUtc"]),
            home_team=d["homeTeam"],
            away_team=d["awayTeam"],
            status=d.get("status") if d.get("status") in GAME_STATUSES else "scheduled",
            odds_event_id=d.get("oddsEventId"),
        )


@dataclass
class OddsRecord:
    game_id: str
    data: Any
    fetched_at: _dt.datetime
    locked: bool
    market: str = "spreads"
    provider: str = "oddsapi"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gameId": self.game_id,
            "market": self.market,
            "provider": self.provider,
            "data": self.data,
            "fetchedAt": self.fetched_at,
            "locked": self.locked,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OddsRecord":
        return cls(
            game_id=d["gameId"],
            data=d.get("data"),
            fetched_at=parse_utc(d.get("fetchedAt")),
            locked=bool(d.get("locked", False)),
            market=d.get("market") or "spreads",
            provider=d.get("provider") or "oddsapi",
        )


@dataclass
class WeekMeta:
    season: int
    week: int
    has_any_odds: bool = False
    last_odds_fetch_at: Optional[_dt.datetime] = None

    @property
    def week_id(self) -> str:
        return make_week_id(self.season, self.week)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "season": self.season,
            "week": self.week,
            "hasAnyOdds": self.has_any_odds,
            "lastOddsFetchAt": self.last_odds_fetch_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WeekMeta":
        return cls(
            season=int(d["season"]),
            week=int(d["week"]),
            has_any_odds=bool(d.get("hasAnyOdds", False)),
            last_odds_fetch_at=parse_utc(d.get("lastOddsFetchAt")),
        )


@dataclass
class UsageCounter:
    used: int = 0
    remaining: int = 0
    last_cost: int = 0
    last_request_at: Optional[_dt.datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used": self.used,
            "remaining": self.remaining,
            "lastCost": self.last_cost,
            "lastRequestAt": self.last_request_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UsageCounter":
        return cls(
            used=int(d.get("used") or 0),
            remaining=int(d.get("remaining") or 0),
            last_cost=int(d.get("lastCost") or 0),
            last_request_at=parse_utc(d.get("lastRequestAt")),
        )


@dataclass
class RefreshRequest:
    mode: Mode = Mode.MANUAL
    season: Optional[int] = None
    week: Optional[int] = None


@dataclass
class RefreshResult:
    success: bool
    season: int
    week: int
    fetched: Dict[str, int] = field(default_factory=lambda: {Bucket.MISSING_LOCKED.value: 0, Bucket.ELIGIBLE.value: 0})
    skipped: Dict[str, int] = field(default_factory=lambda: {Bucket.ALREADY_LOCKED.value: 0, Bucket.NOT_ELIGIBLE.value: 0})
    usage: Dict[str, int] = field(default_factory=lambda: {"remaining": 0, "cost": 0})
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "success": self.success,
            "week": self.week,
            "season": self.season,
            "fetched": dict(self.fetched),
            "skipped": dict(self.skipped),
            "usage": dict(self.usage),
        }
        if self.error is not None:
            out["error"] = self.error
        return out


def to_json_ready(value: Any) -> Any:
    """Convert datetimes inside dicts/lists to ISO strings for JSON output."""
    if isinstance(value, _dt.datetime):
        return _iso(parse_utc(value))
    if isinstance(value, dict):
        return {k: to_json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_ready(v) for v in value]
    return value
