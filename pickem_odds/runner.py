from __future__ import annotations

import argparse
import json
import os

import espn_api

from .models import Mode, RefreshRequest, to_json_ready
from .services import OddsRefreshService
from .store import MemoryStore
from .weeks import current_week
from . import ratelimit


def _print_header(msg: str):
    print("\n" + "=" * 80)
    print(msg)
    print("=" * 80)


def _print_ratelimit(tag: str = ""):
    status = ratelimit.format_status()
    if tag:
        print(f"[RateLimit] {tag} | {status}")
    else:
        print(f"[RateLimit] {status}")


def _build_service(memory: bool) -> OddsRefreshService:
    if memory:
        store = MemoryStore()
    else:
        from .firestore_store import FirestoreStore
        store = FirestoreStore()
    return OddsRefreshService(store, schedule=espn_api.get_week_games)


def _resolve_week(args):
    season, week = current_week()
    return args.season or season, args.week or week


def cmd_refresh(args):
    service = _build_service(args.memory)
    season, week = _resolve_week(args)
    _print_header(f"Odds refresh season={season} week={week} mode={args.mode}")
    result = service.refresh(RefreshRequest(mode=Mode(args.mode), season=season, week=week))
    print(json.dumps(result.to_dict(), indent=2))
    _print_ratelimit("after refresh")
    return 0 if result.success else 1


def cmd_daily(args):
    from .scheduler import run_daily
    service = _build_service(args.memory)
    _print_header("Daily odds trigger")
    out = run_daily(service)
    print(json.dumps(out, indent=2))
    return 0 if not out["ran"] or out["result"]["success"] else 1


def cmd_sync(args):
    service = _build_service(args.memory)
    season, week = _resolve_week(args)
    _print_header(f"Schedule sync season={season} week={week}")
    games = service.sync_schedule(season, week)
    for g in games:
        print(f"  - {g.game_id} | {g.away_team} @ {g.home_team} | {g.kickoff.isoformat() if g.kickoff else 'TBD'} | {g.status}")
    return 0


def cmd_show(args):
    service = _build_service(args.memory)
    season, week = _resolve_week(args)
    print(json.dumps(to_json_ready(service.week_odds(season, week)), indent=2))
    return 0


def cmd_serve(args):
    from . import api
    api.configure(_build_service(args.memory))
    api.serve(args.host, args.port, args.debug)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Pick'em odds refresh tools")
    parser.add_argument("--memory", action="store_true", help="Use an in-memory store instead of Firestore")
    parser.add_argument("--debug", action="store_true", help="Verbose debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def week_args(p):
        p.add_argument("--season", type=int, default=None, help="Season year, e.g. 2025 (default: current)")
        p.add_argument("--week", type=int, default=None, help="Week 1-22 (default: current)")

    p = sub.add_parser("refresh", help="Run one odds refresh")
    week_args(p)
    p.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.MANUAL.value)
    p.set_defaults(func=cmd_refresh)

    p = sub.add_parser("daily", help="Hourly cron target; refreshes once a day")
    p.set_defaults(func=cmd_daily)

    p = sub.add_parser("sync", help="Load the week's schedule from ESPN into the store")
    week_args(p)
    p.set_defaults(func=cmd_sync)

    p = sub.add_parser("show", help="Print stored spreads for a week")
    week_args(p)
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    if args.debug:
        os.environ["API_DEBUG"] = "1"
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
