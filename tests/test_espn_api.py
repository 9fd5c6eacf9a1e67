import os
import sys
import unittest
import datetime as dt
from unittest.mock import Mock, patch

import requests

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import espn_api
from pickem_odds.errors import ScheduleError


def competitor(abbr, side):
    return {"homeAway": side, "team": {"abbreviation": abbr}}


SCOREBOARD = {
    "events": [
        {
            "date": "2025-09-21T17:00Z",
            "competitions": [{
                "competitors": [competitor("BUF", "home"), competitor("KC", "away")],
                "status": {"type": {"name": "STATUS_FINAL"}},
            }],
        },
        {
            "date": "2025-09-22T00:20Z",
            "competitions": [{
                "competitors": [competitor("WSH", "home"), competitor("LAR", "away")],
                "status": {"type": {"name": "STATUS_HALFTIME"}},
            }],
        },
        {"date": "2025-09-22T00:20Z", "competitions": []},
        {
            "competitions": [{
                "competitors": [competitor("SEA", "home"), competitor("SF", "away")],
                "status": {"type": {"name": "STATUS_SCHEDULED"}},
            }],
        },
    ]
}


class EspnScheduleTestCase(unittest.TestCase):
    def test_parse_scoreboard(self):
        games = espn_api.parse_scoreboard(SCOREBOARD, 2025, 3)
        self.assertEqual([g.game_id for g in games], ["2025-W03-KC-BUF", "2025-W03-LAR-WAS", "2025-W03-SF-SEA"])
        self.assertEqual(games[0].kickoff, dt.datetime(2025, 9, 21, 17, 0, tzinfo=dt.timezone.utc))
        self.assertEqual(games[0].status, "final")
        self.assertEqual(games[1].status, "live")
        self.assertEqual(games[1].home_team, "WAS")
        self.assertIsNone(games[2].kickoff)

    def test_status_mapping_defaults_to_scheduled(self):
        self.assertEqual(espn_api.map_status("STATUS_POSTPONED"), "scheduled")
        self.assertEqual(espn_api.map_status(None), "scheduled")

    @patch('espn_api.requests.get')
    def test_playoff_week_uses_season_type_3(self, mock_get):
        mock_get.return_value = Mock(json=Mock(return_value={"events": []}), raise_for_status=Mock())
        self.assertEqual(espn_api.get_week_games(2025, 20), [])
        _, kwargs = mock_get.call_args
        self.assertEqual(kwargs["params"]["seasontype"], 3)
        self.assertEqual(kwargs["params"]["week"], 2)

    @patch('espn_api.requests.get')
    def test_errors_raise_schedule_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("down")
        with self.assertRaises(ScheduleError):
            espn_api.get_week_games(2025, 3)


if __name__ == '__main__':
    unittest.main()
