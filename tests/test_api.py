import io
import os
import sys
import json
import time
import threading
import unittest
import datetime as dt
from unittest.mock import Mock, patch

# Ensure project root is on sys.path so 'pickem_odds' can be imported when tests
# are executed from the tests/ directory or other working dirs.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from pickem_odds import api
from pickem_odds.api import application, parse_refresh_request
from pickem_odds.errors import OddsProviderError, RequestError, StoreError
from pickem_odds.models import Game, Mode, UsageCounter
from pickem_odds.odds_client import OddsFetch
from pickem_odds.services import OddsRefreshService
from pickem_odds.store import MemoryStore


def wsgi_call(method: str, path: str, body: bytes = b''):
    """Call the WSGI app and return (status, headers, body_json)."""
    environ = {
        'REQUEST_METHOD': method,
        'PATH_INFO': path.split('?', 1)[0],
        'QUERY_STRING': (path.split('?', 1)[1] if '?' in path else ''),
        'CONTENT_LENGTH': str(len(body)),
        'wsgi.input': io.BytesIO(body),
        'wsgi.url_scheme': 'http',
        'SERVER_NAME': 'testserver',
        'SERVER_PORT': '80',
    }
    resp = {}

    def start_response(status, headers):
        resp['status'] = status
        resp['headers'] = headers

    body_chunks = application(environ, start_response)
    raw = b''.join(body_chunks)
    try:
        payload = json.loads(raw.decode('utf-8'))
    except ValueError:
        payload = None
    return resp['status'], dict(resp['headers']), payload


def post_json(path: str, payload):
    return wsgi_call('POST', path, json.dumps(payload).encode('utf-8'))


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        kickoff = dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=2)
        self.game = Game.create(2025, 3, "KC", "BUF", kickoff)
        self.store.save_games([self.game])
        self.client = Mock()
        self.client.get_week_odds.return_value = OddsFetch(
            events=[{
                "id": "e1",
                "commence_time": kickoff.isoformat(),
                "home_team": "Buffalo Bills",
                "away_team": "Kansas City Chiefs",
                "bookmakers": [],
            }],
            usage=UsageCounter(used=3, remaining=497, last_cost=1),
        )
        self.service = OddsRefreshService(self.store, self.client)
        api.configure(self.service)

    def tearDown(self):
        api.configure(None)

    def test_health(self):
        status, headers, payload = wsgi_call('GET', '/health')
        self.assertTrue(status.startswith('200'))
        self.assertIn('application/json', headers.get('Content-Type', ''))
        self.assertEqual(payload.get('status'), 'ok')

    def test_refresh_success(self):
        status, headers, payload = post_json('/odds/refresh', {"season": 2025, "week": 3, "mode": "manual"})
        self.assertTrue(status.startswith('200'))
        self.assertEqual(headers.get('Access-Control-Allow-Origin'), '*')
        self.assertEqual(payload, {
            "success": True,
            "week": 3,
            "season": 2025,
            "fetched": {"missingLocked": 0, "eligible": 1},
            "skipped": {"alreadyLocked": 0, "notEligible": 0},
            "usage": {"remaining": 497, "cost": 1},
        })
        self.assertFalse(self.store.odds[self.game.game_id].locked)

    def test_refresh_provider_failure(self):
        self.client.get_week_odds.side_effect = OddsProviderError("Odds API error: 500")
        status, headers, payload = post_json('/odds/refresh', {"season": 2025, "week": 3, "mode": "daily"})
        self.assertTrue(status.startswith('502'))
        self.assertFalse(payload['success'])
        self.assertIn('500', payload['error'])
        self.assertEqual(self.store.odds, {})

    def test_refresh_malformed_body(self):
        for body in (b'{not json', b'[1, 2]'):
            status, _, payload = wsgi_call('POST', '/odds/refresh', body)
            self.assertTrue(status.startswith('400'))
            self.assertFalse(payload['success'])
        status, _, payload = post_json('/odds/refresh', {"mode": "hourly"})
        self.assertTrue(status.startswith('400'))
        self.client.get_week_odds.assert_not_called()

    def test_refresh_store_failure(self):
        with patch.object(self.store, 'get_week_meta', side_effect=StoreError("firestore week read failed")):
            status, _, payload = post_json('/odds/refresh', {"season": 2025, "week": 3, "mode": "manual"})
        self.assertTrue(status.startswith('500'))
        self.assertFalse(payload['success'])
        self.assertIn('firestore', payload['error'])
        self.assertEqual((payload['season'], payload['week']), (2025, 3))
        self.assertEqual(payload['fetched'], {"missingLocked": 0, "eligible": 0})
        self.assertEqual(payload['skipped'], {"alreadyLocked": 0, "notEligible": 0})
        self.assertEqual(payload['usage']['cost'], 0)
        self.assertEqual(self.store.odds, {})

    def test_refresh_requires_post(self):
        status, headers, _ = wsgi_call('GET', '/odds/refresh')
        self.assertTrue(status.startswith('405'))
        status, headers, _ = wsgi_call('OPTIONS', '/odds/refresh')
        self.assertTrue(status.startswith('200'))
        self.assertIn('POST', headers.get('Access-Control-Allow-Methods', ''))

    def test_week_odds(self):
        post_json('/odds/refresh', {"season": 2025, "week": 3, "mode": "manual"})
        status, _, payload = wsgi_call('GET', '/odds?season=2025&week=3')
        self.assertTrue(status.startswith('200'))
        self.assertTrue(payload['hasAnyOdds'])
        self.assertEqual(payload['games'][0]['gameId'], self.game.game_id)
        self.assertTrue(payload['games'][0]['kickoffUtc'].endswith('Z'))

    def test_week_odds_requires_params(self):
        status, _, _ = wsgi_call('GET', '/odds?season=2025')
        self.assertTrue(status.startswith('400'))

    def test_usage(self):
        post_json('/odds/refresh', {"season": 2025, "week": 3, "mode": "manual"})
        status, _, payload = wsgi_call('GET', '/usage')
        self.assertTrue(status.startswith('200'))
        self.assertEqual(payload['usage']['remaining'], 497)

    def test_not_found(self):
        status, headers, payload = wsgi_call('GET', '/nope')
        self.assertTrue(status.startswith('404'))


class LazyServiceTestCase(unittest.TestCase):
    def setUp(self):
        api.configure(None)

    def tearDown(self):
        api.configure(None)

    def test_concurrent_first_requests_build_one_service(self):
        def slow_store():
            time.sleep(0.05)
            return MemoryStore()

        got = []
        with patch('pickem_odds.firestore_store.FirestoreStore', side_effect=slow_store) as store_cls:
            threads = [threading.Thread(target=lambda: got.append(api.get_service())) for _ in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()
        self.assertEqual(store_cls.call_count, 1)
        self.assertEqual(len(got), 4)
        self.assertTrue(all(s is got[0] for s in got))


class ParseRequestTestCase(unittest.TestCase):
    def test_defaults_to_manual(self):
        req = parse_refresh_request(b'')
        self.assertEqual(req.mode, Mode.MANUAL)
        self.assertIsNone(req.season)
        self.assertIsNone(req.week)

    def test_valid(self):
        req = parse_refresh_request(b'{"season": 2025, "week": 19, "mode": "bootstrap"}')
        self.assertEqual((req.season, req.week, req.mode), (2025, 19, Mode.BOOTSTRAP))

    def test_invalid_fields(self):
        for raw in (b'{"week": 0}', b'{"week": 23}', b'{"week": "3"}', b'{"season": true}', b'{"mode": null}'):
            with self.assertRaises(RequestError, msg=raw):
                parse_refresh_request(raw)


if __name__ == '__main__':
    unittest.main()
