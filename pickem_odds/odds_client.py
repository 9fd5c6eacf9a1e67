from __future__ import annotations

import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import ODDS_API_KEY, ODDS_API_URL, ODDS_REGIONS, ODDS_MARKETS, REQ_TIMEOUT
from .errors import OddsProviderError
from .models import UsageCounter
from . import ratelimit


# Every request spends provider credits; a failed call is reported once and
# retried by the caller, never here.
_RETRY = Retry(total=0, read=False, redirect=False, raise_on_status=False)

# Reuse HTTP connections; the refresh makes a single call per invocation
_SESSION = requests.Session()
_SESSION.headers.update({"Accept": "application/json"})
_SESSION.mount("https://", HTTPAdapter(pool_connections=4, pool_maxsize=8, max_retries=_RETRY))
_SESSION.mount("http://", HTTPAdapter(pool_connections=4, pool_maxsize=8, max_retries=_RETRY))


def _log(msg: str):
    if os.getenv("API_DEBUG") in ("1", "true", "True"):
        print(f"[odds] {msg}", flush=True)


@dataclass
class OddsFetch:
    events: List[dict]
    usage: Optional[UsageCounter]


class OddsApiClient:
    """League-wide NFL spreads from The Odds API.

    One call returns every listed game; the credit headers become the usage counter.
    """

    def __init__(self, api_key: Optional[str] = None, url: Optional[str] = None,
                 regions: str = ODDS_REGIONS, markets: str = ODDS_MARKETS,
                 session: Optional[requests.Session] = None, timeout=REQ_TIMEOUT):
        self.api_key = api_key if api_key is not None else ODDS_API_KEY
        self.url = url or ODDS_API_URL
        self.regions = regions
        self.markets = markets
        self.session = session or _SESSION
        self.timeout = timeout

    def get_week_odds(self, now: Optional[datetime] = None) -> OddsFetch:
        if not self.api_key:
            raise OddsProviderError("odds api key not configured")
        params = {
            "apiKey": self.api_key,
            "regions": self.regions,
            "markets": self.markets,
            "oddsFormat": "american",
            "dateFormat": "iso",
        }
        t0 = time.perf_counter()
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data: Any = resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            body = e.response.text[:200] if e.response is not None else ""
            print(f"[odds] provider error status={status} body={body}", flush=True)
            raise OddsProviderError(f"Odds API error: {status} {body}".strip(), status=status) from e
        except requests.RequestException as e:
            print(f"[odds] provider request failed: {e}", flush=True)
            raise OddsProviderError(f"Odds API request failed: {e}") from e
        except ValueError as e:
            raise OddsProviderError(f"Odds API returned invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise OddsProviderError(f"Odds API returned {type(data).__name__}, expected a list of events")

        usage = ratelimit.usage_from_headers(resp.headers, now)
        if usage is None:
            _log("no credit headers on response; usage not updated")
        _log(f"fetched events={len(data)} dt_ms={(time.perf_counter()-t0)*1000.0:.1f} rl={ratelimit.format_status()}")
        return OddsFetch(events=data, usage=usage)
