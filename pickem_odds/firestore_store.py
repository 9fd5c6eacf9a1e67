from __future__ import annotations

import json
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional

import firebase_admin
from firebase_admin import credentials as fb_credentials, firestore as fb_firestore
from google.api_core import exceptions as gexc
from google.cloud.firestore_v1 import FieldFilter

from config import FIREBASE_CREDENTIALS, FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID
from .errors import StoreError
from .models import Game, OddsRecord, UsageCounter, WeekMeta, make_week_id
from .store import DocumentStore, game_order

GAMES = "games"
ODDS = "odds"
WEEKS = "weeks"
SYSTEM = "system"
USAGE_DOC = "usage"


def _log(msg: str):
    if os.getenv("API_DEBUG") in ("1", "true", "True"):
        print(f"[firestore] {msg}", flush=True)


def init_client():
    """Initialize firebase-admin once and return a Firestore client."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        if FIREBASE_CREDENTIALS:
            cred = fb_credentials.Certificate(json.loads(FIREBASE_CREDENTIALS))
        elif FIREBASE_CREDENTIALS_PATH:
            cred = fb_credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
        else:
            cred = fb_credentials.ApplicationDefault()
        options = {"projectId": FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
        app = firebase_admin.initialize_app(cred, options)
        print("[firestore] connected", flush=True)
    return fb_firestore.client(app)


@contextmanager
def _wrap(op: str):
    try:
        yield
    except gexc.GoogleAPICallError as e:
        raise StoreError(f"firestore {op} failed: {e}") from e
    except gexc.RetryError as e:
        raise StoreError(f"firestore {op} timed out: {e}") from e


class FirestoreStore(DocumentStore):
    """Collections: games/{gameId}, odds/{gameId}, weeks/{season}_W{ww}, system/usage."""

    def __init__(self, client=None, max_workers: int = 8):
        self.db = client if client is not None else init_client()
        self.max_workers = max_workers

    def get_games(self, season: int, week: int) -> List[Game]:
        with _wrap("games query"):
            q = (
                self.db.collection(GAMES)
                .where(filter=FieldFilter("season", "==", season))
                .where(filter=FieldFilter("week", "==", week))
            )
            games = [Game.from_dict(snap.to_dict()) for snap in q.stream()]
        return sorted(games, key=game_order)

    def save_games(self, games: Iterable[Game]) -> None:
        with _wrap("games write"):
            batch = self.db.batch()
            n = 0
            for g in games:
                batch.set(self.db.collection(GAMES).document(g.game_id), g.to_dict(), merge=True)
                n += 1
            if n:
                batch.commit()
        _log(f"saved games={n}")

    def get_odds(self, game_ids: Iterable[str]) -> Dict[str, OddsRecord]:
        ids = list(game_ids)
        if not ids:
            return {}

        def task(gid: str):
            return gid, self.db.collection(ODDS).document(gid).get()

        out: Dict[str, OddsRecord] = {}
        with _wrap("odds read"):
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(ids))) as ex:
                for gid, snap in ex.map(task, ids):
                    if snap.exists:
                        out[gid] = OddsRecord.from_dict(snap.to_dict())
        _log(f"odds read ids={len(ids)} found={len(out)}")
        return out

    def get_week_meta(self, season: int, week: int) -> Optional[WeekMeta]:
        with _wrap("week read"):
            snap = self.db.collection(WEEKS).document(make_week_id(season, week)).get()
        if not snap.exists:
            return None
        return WeekMeta.from_dict(snap.to_dict())

    def get_usage(self) -> Optional[UsageCounter]:
        with _wrap("usage read"):
            snap = self.db.collection(SYSTEM).document(USAGE_DOC).get()
        if not snap.exists:
            return None
        return UsageCounter.from_dict(snap.to_dict())

    def commit_refresh(self, records: List[OddsRecord], week_meta: WeekMeta, usage: Optional[UsageCounter]) -> List[str]:
        db = self.db
        odds_refs = [(rec, db.collection(ODDS).document(rec.game_id)) for rec in records]
        week_ref = db.collection(WEEKS).document(week_meta.week_id)
        usage_ref = db.collection(SYSTEM).document(USAGE_DOC)

        @fb_firestore.transactional
        def _commit(transaction) -> List[str]:
            # All reads before any write; locked records are re-checked here so two
            # concurrent refreshes cannot both lock the same game.
            locked_now = set()
            for rec, ref in odds_refs:
                snap = ref.get(transaction=transaction)
                if snap.exists and (snap.to_dict() or {}).get("locked"):
                    locked_now.add(rec.game_id)
            written: List[str] = []
            for rec, ref in odds_refs:
                if rec.game_id in locked_now:
                    continue
                transaction.set(ref, rec.to_dict())
                written.append(rec.game_id)
            transaction.set(week_ref, week_meta.to_dict(), merge=True)
            if usage is not None:
                transaction.set(usage_ref, usage.to_dict(), merge=True)
            return written

        with _wrap("refresh commit"):
            written = _commit(db.transaction())
        _log(f"commit week={week_meta.week_id} records={len(records)} written={len(written)}")
        return written
