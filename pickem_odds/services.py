from __future__ import annotations

from typing import Callable, Dict, List, Optional
import datetime as dt
import time

from .errors import OddsProviderError, PickemError
from .models import Bucket, Game, Mode, OddsRecord, RefreshRequest, RefreshResult, WeekMeta
from .odds_client import OddsApiClient
from .policy import bootstrap_skip, match_events, partition, plan_writes, should_fetch
from .store import DocumentStore
from .weeks import current_week, utcnow
from . import ratelimit

ScheduleSource = Callable[[int, int], List[Game]]


def _freshness(fetched_at: Optional[dt.datetime], now: dt.datetime) -> str:
    if fetched_at is None:
        return "never"
    age_minutes = int((now - fetched_at).total_seconds() // 60)
    if age_minutes < 1:
        return "Just now"
    if age_minutes < 60:
        return f"{age_minutes}m ago"
    age_hours = age_minutes // 60
    if age_hours < 24:
        return f"{age_hours}h ago"
    return f"{age_hours // 24}d ago"


def summarize_spread(record: OddsRecord, now: Optional[dt.datetime] = None) -> Optional[dict]:
    """Home/away spread from the first bookmaker's spreads market of a stored event."""
    data = record.data if isinstance(record.data, dict) else {}
    books = data.get("bookmakers") or []
    if not books:
        return None
    markets = books[0].get("markets") or []
    market = next((m for m in markets if m.get("key") == "spreads"), None)
    if not market or not market.get("outcomes"):
        return None
    outcomes = market["outcomes"]
    home = next((o for o in outcomes if o.get("name") == data.get("home_team")), {})
    away = next((o for o in outcomes if o.get("name") == data.get("away_team")), {})
    return {
        "gameId": record.game_id,
        "spreadHome": home.get("point", 0),
        "spreadAway": away.get("point", 0),
        "homeOdds": home.get("price", 0),
        "awayOdds": away.get("price", 0),
        "provider": books[0].get("title") or "The Odds API",
        "fetchedAt": record.fetched_at,
        "locked": record.locked,
        "freshness": _freshness(record.fetched_at, now or utcnow()),
    }


class OddsRefreshService:
    """
    Runs one odds refresh for a season week: classify games, call the provider
    at most once, and persist the result as a single batch.
    """

    def __init__(self, store: DocumentStore, client: Optional[OddsApiClient] = None, schedule: Optional[ScheduleSource] = None):
        self.store = store
        self.client = client or OddsApiClient()
        self.schedule = schedule

    def _usage_echo(self) -> Dict[str, int]:
        usage = self.store.get_usage()
        ratelimit.record(usage, "store")
        return {"remaining": usage.remaining if usage else 0, "cost": 0}

    def load_games(self, season: int, week: int) -> List[Game]:
        games = self.store.get_games(season, week)
        if games or self.schedule is None:
            return games
        print(f"[refresh] no games stored for {season} W{week:02d}; syncing schedule")
        return self.sync_schedule(season, week)

    def sync_schedule(self, season: int, week: int) -> List[Game]:
        if self.schedule is None:
            raise PickemError("no schedule source configured")
        games = self.schedule(season, week)
        self.store.save_games(games)
        print(f"[refresh] schedule synced season={season} week={week} games={len(games)}")
        return games

    def refresh(self, request: RefreshRequest, now: Optional[dt.datetime] = None) -> RefreshResult:
        now = now or utcnow()
        mode = Mode(request.mode)
        if request.season is None or request.week is None:
            cur_season, cur_week = current_week(now)
            season = request.season if request.season is not None else cur_season
            week = request.week if request.week is not None else cur_week
        else:
            season, week = request.season, request.week
        t0 = time.time()
        print(f"[refresh] start season={season} week={week} mode={mode.value}")

        week_meta = self.store.get_week_meta(season, week)
        if bootstrap_skip(mode, week_meta):
            print(f"[refresh] bootstrap skip: week {season} W{week:02d} already has odds")
            return RefreshResult(success=True, season=season, week=week, usage=self._usage_echo())

        games = self.load_games(season, week)
        existing = self.store.get_odds([g.game_id for g in games])
        parts = partition(games, existing.keys(), now)
        counts = parts.counts()
        print(f"[refresh] partition games={len(games)} {counts}")
        skipped = {
            Bucket.ALREADY_LOCKED.value: counts[Bucket.ALREADY_LOCKED.value],
            Bucket.NOT_ELIGIBLE.value: counts[Bucket.NOT_ELIGIBLE.value],
        }

        if not should_fetch(parts, mode):
            print("[refresh] nothing to fetch")
            return RefreshResult(success=True, season=season, week=week, skipped=skipped, usage=self._usage_echo())

        try:
            fetch = self.client.get_week_odds(now=now)
        except OddsProviderError as e:
            print(f"[refresh] provider failed: {e}")
            return RefreshResult(success=False, season=season, week=week, skipped=skipped,
                                 usage=self._usage_echo(), error=str(e))

        matches = match_events(games, fetch.events)
        records = plan_writes(parts, matches, mode, now)
        print(f"[refresh] provider events={len(fetch.events)} matched={len(matches)} planned_writes={len(records)}")

        written = set(self.store.commit_refresh(
            records,
            WeekMeta(
                season=season,
                week=week,
                has_any_odds=bool(week_meta and week_meta.has_any_odds) or bool(records),
                last_odds_fetch_at=now,
            ),
            fetch.usage,
        ))
        fetched = {
            Bucket.MISSING_LOCKED.value: sum(1 for r in records if r.locked and r.game_id in written),
            Bucket.ELIGIBLE.value: sum(1 for r in records if not r.locked and r.game_id in written),
        }
        print(f"[refresh] done fetched={fetched} skipped={skipped} rl={ratelimit.format_status()} dt={(time.time()-t0):.2f}s")
        return RefreshResult(
            success=True,
            season=season,
            week=week,
            fetched=fetched,
            skipped=skipped,
            usage=self._usage_echo() if fetch.usage is None else {"remaining": fetch.usage.remaining, "cost": fetch.usage.last_cost},
        )

    def week_odds(self, season: int, week: int, now: Optional[dt.datetime] = None) -> dict:
        now = now or utcnow()
        games = self.store.get_games(season, week)
        odds = self.store.get_odds([g.game_id for g in games])
        meta = self.store.get_week_meta(season, week)
        rows = []
        for g in games:
            rec = odds.get(g.game_id)
            rows.append({
                "gameId": g.game_id,
                "awayTeam": g.away_team,
                "homeTeam": g.home_team,
                "kickoffUtc": g.kickoff,
                "status": g.status,
                "odds": summarize_spread(rec, now) if rec else None,
            })
        return {
            "season": season,
            "week": week,
            "hasAnyOdds": bool(meta and meta.has_any_odds),
            "lastOddsFetchAt": meta.last_odds_fetch_at if meta else None,
            "games": rows,
        }
