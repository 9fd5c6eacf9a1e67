import os
import sys
import unittest
import datetime as dt
from unittest.mock import Mock

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from pickem_odds.models import Mode, RefreshResult
from pickem_odds.scheduler import run_daily

UTC = dt.timezone.utc


class DailyTriggerTestCase(unittest.TestCase):
    def setUp(self):
        self.service = Mock()
        self.service.refresh.return_value = RefreshResult(success=True, season=2025, week=3)

    def test_runs_at_eleven_chicago(self):
        # 16:00 UTC is 11:00 CDT in September
        now = dt.datetime(2025, 9, 18, 16, 5, tzinfo=UTC)
        out = run_daily(self.service, now=now, hour=11, tz="America/Chicago")
        self.assertTrue(out["ran"])
        request = self.service.refresh.call_args[0][0]
        self.assertEqual(request.mode, Mode.DAILY)
        self.assertIsNone(request.season)
        self.assertTrue(out["result"]["success"])

    def test_skips_other_hours(self):
        now = dt.datetime(2025, 9, 18, 11, 0, tzinfo=UTC)
        out = run_daily(self.service, now=now, hour=11, tz="America/Chicago")
        self.assertFalse(out["ran"])
        self.assertIn("skipping", out["message"])
        self.service.refresh.assert_not_called()


if __name__ == '__main__':
    unittest.main()
