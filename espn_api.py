import requests
from config import ESPN_SCOREBOARD_URL, REQ_TIMEOUT
from pickem_odds.errors import ScheduleError
from pickem_odds.models import Game
from pickem_odds.teams import normalize_abbreviation
from pickem_odds.weeks import espn_season_type

STATUS_MAP = {
    "STATUS_SCHEDULED": "scheduled",
    "STATUS_IN_PROGRESS": "live",
    "STATUS_HALFTIME": "live",
    "STATUS_END_PERIOD": "live",
    "STATUS_FINAL": "final",
    "STATUS_FINAL_OVERTIME": "final",
}


def map_status(espn_status):
    return STATUS_MAP.get(espn_status, "scheduled")


def get_scoreboard(season, week):
    """
    Fetch the raw ESPN scoreboard for a season week.
    Regular season weeks are seasontype=2; playoff weeks 19-22 are seasontype=3, weeks 1-4.
    """
    season_type, espn_week = espn_season_type(week)
    params = {"seasontype": season_type, "week": espn_week, "dates": season}
    try:
        response = requests.get(ESPN_SCOREBOARD_URL, params=params, timeout=REQ_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        raise ScheduleError(f"ESPN API error: {e}") from e
    except ValueError as e:
        raise ScheduleError(f"ESPN API returned invalid JSON: {e}") from e


def parse_scoreboard(data, season, week):
    """
    Turn an ESPN scoreboard payload into Game objects.
    Events without both a home and an away competitor are skipped.
    """
    games = []
    for event in (data or {}).get("events", []) or []:
        competitions = event.get("competitions") or []
        if not competitions:
            continue
        competition = competitions[0]
        competitors = competition.get("competitors") or []
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if not home or not away:
            continue
        status = ((competition.get("status") or {}).get("type") or {}).get("name")
        games.append(Game.create(
            season=season,
            week=week,
            away_team=normalize_abbreviation(away["team"]["abbreviation"]),
            home_team=normalize_abbreviation(home["team"]["abbreviation"]),
            kickoff=event.get("date"),
            status=map_status(status),
        ))
    return games


def get_week_games(season, week):
    """
    Fetch the schedule for a season week as Game objects.
    """
    data = get_scoreboard(season, week)
    try:
        return parse_scoreboard(data, season, week)
    except (KeyError, TypeError, ValueError) as e:
        raise ScheduleError(f"unexpected ESPN scoreboard shape: {e}") from e
