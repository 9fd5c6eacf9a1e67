import os
from dotenv import load_dotenv

# Load environment variables from the .env file
load_dotenv()

# API configuration for The Odds API
ODDS_API_KEY = os.getenv('ODDS_API_KEY')
BASE_URL = 'https://api.the-odds-api.com/v4'
ODDS_API_URL = os.getenv('ODDS_API_URL', f'{BASE_URL}/sports/americanfootball_nfl/odds')
ODDS_REGIONS = os.getenv('ODDS_REGIONS', 'us')
ODDS_MARKETS = os.getenv('ODDS_MARKETS', 'spreads')

# Allow overriding request timeouts via env; default (connect=5s, read=20s)
_conn_to = float(os.getenv('ODDS_CONNECT_TIMEOUT', '5') or 5)
_read_to = float(os.getenv('ODDS_READ_TIMEOUT', '20') or 20)
REQ_TIMEOUT = (_conn_to, _read_to)  # (connect, read) seconds

# ESPN scoreboard, used to build the weekly schedule
ESPN_SCOREBOARD_URL = os.getenv('ESPN_SCOREBOARD_URL', 'https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard')

# Firestore service account: either inline JSON or a path to the key file.
# Falls back to application default credentials when neither is set.
FIREBASE_CREDENTIALS = os.getenv('FIREBASE_CREDENTIALS', '').strip()
FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH', '').strip()
FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')

# Daily trigger: the cron fires hourly, the refresh runs once at this local hour
DAILY_REFRESH_HOUR = int(os.getenv('DAILY_REFRESH_HOUR', '11'))
DAILY_REFRESH_TZ = os.getenv('DAILY_REFRESH_TZ', 'America/Chicago')

# Provider events further than this from a game's kickoff are not the same game
MATCH_WINDOW_HOURS = int(os.getenv('MATCH_WINDOW_HOURS', '72'))

# Odds API full team names -> our abbreviations
ODDSAPI_TO_ABBR = {
    "Arizona Cardinals": "ARI",
    "Atlanta Falcons": "ATL",
    "Baltimore Ravens": "BAL",
    "Buffalo Bills": "BUF",
    "Carolina Panthers": "CAR",
    "Chicago Bears": "CHI",
    "Cincinnati Bengals": "CIN",
    "Cleveland Browns": "CLE",
    "Dallas Cowboys": "DAL",
    "Denver Broncos": "DEN",
    "Detroit Lions": "DET",
    "Green Bay Packers": "GB",
    "Houston Texans": "HOU",
    "Indianapolis Colts": "IND",
    "Jacksonville Jaguars": "JAX",
    "Kansas City Chiefs": "KC",
    "Las Vegas Raiders": "LV",
    "Los Angeles Chargers": "LAC",
    "Los Angeles Rams": "LAR",
    "Miami Dolphins": "MIA",
    "Minnesota Vikings": "MIN",
    "New England Patriots": "NE",
    "New Orleans Saints": "NO",
    "New York Giants": "NYG",
    "New York Jets": "NYJ",
    "Philadelphia Eagles": "PHI",
    "Pittsburgh Steelers": "PIT",
    "San Francisco 49ers": "SF",
    "Seattle Seahawks": "SEA",
    "Tampa Bay Buccaneers": "TB",
    "Tennessee Titans": "TEN",
    "Washington Commanders": "WAS",
}

# ESPN abbreviations that differ from ours. Left side is ESPN, right side is ours.
ESPN_ABBR_ALIASES = {
    "WSH": "WAS",
    "LA": "LAR",
    "JAC": "JAX",
}
