"""Odds refresh policy.

Given a week's games, the ids that already have an odds record and the current
instant, sort every game into exactly one bucket:

- missingLocked: kickoff passed and no record yet. Last chance to capture the
  line; written once with locked=True.
- alreadyLocked: kickoff passed and a record exists. Never touched again.
- eligible: kickoff still ahead. Refreshed on every call, written locked=False.
- notEligible: kept as an explicit bucket, not reachable with the rules above.

Nothing here performs I/O; the service layer reads and writes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set
import datetime as _dt

from config import MATCH_WINDOW_HOURS
from .models import Bucket, Game, Mode, OddsRecord, WeekMeta
from .teams import to_abbreviation
from .weeks import parse_utc

# All three modes include eligible games; bootstrap only adds the week pre-check.
MODES_INCLUDING_ELIGIBLE = frozenset({Mode.MANUAL, Mode.DAILY, Mode.BOOTSTRAP})


@dataclass
class Partition:
    missing_locked: List[Game] = field(default_factory=list)
    already_locked: List[Game] = field(default_factory=list)
    eligible: List[Game] = field(default_factory=list)
    not_eligible: List[Game] = field(default_factory=list)

    def bucket(self, which: Bucket) -> List[Game]:
        return {
            Bucket.MISSING_LOCKED: self.missing_locked,
            Bucket.ALREADY_LOCKED: self.already_locked,
            Bucket.ELIGIBLE: self.eligible,
            Bucket.NOT_ELIGIBLE: self.not_eligible,
        }[which]

    def counts(self) -> Dict[str, int]:
        return {b.value: len(self.bucket(b)) for b in Bucket}


def classify_game(game: Game, existing_ids: Set[str], now: _dt.datetime) -> Bucket:
    # no kickoff time yet counts as not started
    started = game.kickoff is not None and game.kickoff < now
    has_odds = game.game_id in existing_ids
    if started and not has_odds:
        return Bucket.MISSING_LOCKED
    elif started and has_odds:
        return Bucket.ALREADY_LOCKED
    elif not started:
        return Bucket.ELIGIBLE
    return Bucket.NOT_ELIGIBLE


def partition(games: Iterable[Game], existing_ids: Iterable[str], now: _dt.datetime) -> Partition:
    existing = set(existing_ids)
    out = Partition()
    for g in games:
        out.bucket(classify_game(g, existing, now)).append(g)
    return out


def includes_eligible(mode: Mode) -> bool:
    return Mode(mode) in MODES_INCLUDING_ELIGIBLE


def should_fetch(parts: Partition, mode: Mode) -> bool:
    if parts.missing_locked:
        return True
    return includes_eligible(mode) and bool(parts.eligible)


def bootstrap_skip(mode: Mode, week_meta: Optional[WeekMeta]) -> bool:
    """Bootstrap acts at most once per week: skip when odds were ever fetched."""
    return Mode(mode) is Mode.BOOTSTRAP and week_meta is not None and week_meta.has_any_odds


def _event_teams(event: dict) -> tuple[str, str]:
    return to_abbreviation(event.get("away_team") or ""), to_abbreviation(event.get("home_team") or "")


def _close_enough(game: Game, event: dict) -> bool:
    try:
        commence = parse_utc(event.get("commence_time"))
    except ValueError:
        commence = None
    if commence is None or game.kickoff is None:
        return True
    return abs(commence - game.kickoff) <= _dt.timedelta(hours=MATCH_WINDOW_HOURS)


def match_events(games: Iterable[Game], events: Iterable[dict]) -> Dict[str, dict]:
    """Map game_id -> provider event.

    A game carrying a provider event id matches that event directly; otherwise
    the event's translated (away, home) pair must equal the game's, either way
    round for neutral-site listings. Events matching no game are dropped.
    """
    events = [e for e in events if isinstance(e, dict)]
    by_event_id = {e.get("id"): e for e in events if e.get("id")}
    by_pair: Dict[frozenset, List[dict]] = {}
    for e in events:
        away, home = _event_teams(e)
        by_pair.setdefault(frozenset((away, home)), []).append(e)

    out: Dict[str, dict] = {}
    for g in games:
        if g.odds_event_id and g.odds_event_id in by_event_id:
            out[g.game_id] = by_event_id[g.odds_event_id]
            continue
        for e in by_pair.get(frozenset((g.away_team, g.home_team)), []):
            if _close_enough(g, e):
                out[g.game_id] = e
                break
    return out


def plan_writes(parts: Partition, matches: Dict[str, dict], mode: Mode, now: _dt.datetime) -> List[OddsRecord]:
    """Build the odds records one fetch should persist.

    missingLocked games are written locked=True, eligible games locked=False
    (only when the mode includes them). Games without a provider event are skipped.
    """
    records: List[OddsRecord] = []
    for g in parts.missing_locked:
        evt = matches.get(g.game_id)
        if evt is not None:
            records.append(OddsRecord(game_id=g.game_id, data=evt, fetched_at=now, locked=True))
    if includes_eligible(mode):
        for g in parts.eligible:
            evt = matches.get(g.game_id)
            if evt is not None:
                records.append(OddsRecord(game_id=g.game_id, data=evt, fetched_at=now, locked=False))
    return records
