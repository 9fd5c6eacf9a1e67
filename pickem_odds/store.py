from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from .models import Game, OddsRecord, UsageCounter, WeekMeta, make_week_id

_NO_KICKOFF = datetime.max.replace(tzinfo=timezone.utc)


def game_order(g: Game):
    """Sort key: kickoff, then game id; games without a kickoff go last."""
    return (g.kickoff or _NO_KICKOFF, g.game_id)


class DocumentStore(ABC):
    """Persistence used by the refresh: games, odds, weeks and the usage singleton.

    commit_refresh must write odds, week meta and usage as one atomic batch and
    must never overwrite an odds record that is already locked.
    """

    @abstractmethod
    def get_games(self, season: int, week: int) -> List[Game]:
        pass

    @abstractmethod
    def save_games(self, games: Iterable[Game]) -> None:
        pass

    @abstractmethod
    def get_odds(self, game_ids: Iterable[str]) -> Dict[str, OddsRecord]:
        pass

    @abstractmethod
    def get_week_meta(self, season: int, week: int) -> Optional[WeekMeta]:
        pass

    @abstractmethod
    def get_usage(self) -> Optional[UsageCounter]:
        pass

    @abstractmethod
    def commit_refresh(self, records: List[OddsRecord], week_meta: WeekMeta, usage: Optional[UsageCounter]) -> List[str]:
        """Persist one fetch. Returns the game ids actually written."""
        pass


class MemoryStore(DocumentStore):
    """Dict-backed store for tests and local runs."""

    def __init__(self):
        self._lock = threading.RLock()
        self.games: Dict[str, Game] = {}
        self.odds: Dict[str, OddsRecord] = {}
        self.weeks: Dict[str, WeekMeta] = {}
        self.usage: Optional[UsageCounter] = None
        self.commits = 0

    def get_games(self, season: int, week: int) -> List[Game]:
        with self._lock:
            games = [g for g in self.games.values() if g.season == season and g.week == week]
        return sorted((copy.deepcopy(g) for g in games), key=game_order)

    def save_games(self, games: Iterable[Game]) -> None:
        with self._lock:
            for g in games:
                self.games[g.game_id] = copy.deepcopy(g)

    def get_odds(self, game_ids: Iterable[str]) -> Dict[str, OddsRecord]:
        with self._lock:
            return {gid: copy.deepcopy(self.odds[gid]) for gid in game_ids if gid in self.odds}

    def get_week_meta(self, season: int, week: int) -> Optional[WeekMeta]:
        with self._lock:
            meta = self.weeks.get(make_week_id(season, week))
            return copy.deepcopy(meta)

    def get_usage(self) -> Optional[UsageCounter]:
        with self._lock:
            return copy.deepcopy(self.usage)

    def commit_refresh(self, records: List[OddsRecord], week_meta: WeekMeta, usage: Optional[UsageCounter]) -> List[str]:
        with self._lock:
            written: List[str] = []
            staged: Dict[str, OddsRecord] = {}
            for rec in records:
                current = self.odds.get(rec.game_id)
                if current is not None and current.locked:
                    continue
                staged[rec.game_id] = copy.deepcopy(rec)
                written.append(rec.game_id)
            self.odds.update(staged)
            self.weeks[week_meta.week_id] = copy.deepcopy(week_meta)
            if usage is not None:
                self.usage = copy.deepcopy(usage)
            self.commits += 1
            return written
