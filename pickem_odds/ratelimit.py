from __future__ import annotations

from datetime import datetime
from typing import Optional

from .models import UsageCounter
from .weeks import utcnow


_LAST = {
    "remaining": None,   # type: Optional[int]
    "used": None,        # type: Optional[int]
    "cost": None,        # type: Optional[int]
    "source": None,      # 'network' | 'store' | None
    "ts": None,          # datetime
}


def _header_int(headers: dict, *names: str) -> Optional[int]:
    lowered = {str(k).lower(): v for k, v in (headers or {}).items()}
    for name in names:
        v = lowered.get(name)
        if v is None:
            continue
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return None
    return None


def usage_from_headers(headers: dict, now: Optional[datetime] = None) -> Optional[UsageCounter]:
    """Build the usage counter from The Odds API credit headers.

    x-requests-remaining / x-requests-used / x-requests-last; a missing or
    non-numeric value counts as 0. Returns None when none of the three is
    present so the stored counter is left alone.
    """
    rem = _header_int(headers, "x-requests-remaining")
    used = _header_int(headers, "x-requests-used")
    cost = _header_int(headers, "x-requests-last")
    if rem is None and used is None and cost is None:
        return None
    usage = UsageCounter(
        used=used or 0,
        remaining=rem or 0,
        last_cost=cost or 0,
        last_request_at=now or utcnow(),
    )
    record(usage, "network")
    return usage


def record(usage: Optional[UsageCounter], source: str) -> None:
    global _LAST
    if usage is None:
        return
    _LAST.update({
        "remaining": usage.remaining,
        "used": usage.used,
        "cost": usage.last_cost,
        "source": source,
        "ts": usage.last_request_at or utcnow(),
    })


def format_status() -> str:
    """Return a simple percentage of remaining credits, plus last cost and source.

    If we have both remaining and used, percent = remaining / (remaining + used) * 100.
    Otherwise, show ?%.
    """
    rem = _LAST.get("remaining")
    used = _LAST.get("used")
    cost = _LAST.get("cost")
    src = _LAST.get("source") or "n/a"

    pct_str = "?%"
    if isinstance(rem, int) and isinstance(used, int) and (rem + used) > 0:
        pct = (rem / (rem + used)) * 100.0
        pct_str = f"{pct:.1f}%"

    return f"remaining={pct_str}, used={used if used is not None else '?'}, last_cost={cost if cost is not None else '?'}, source={src}"


def get_details() -> dict:
    ts = _LAST.get("ts")
    return {
        "remaining": _LAST.get("remaining"),
        "used": _LAST.get("used"),
        "last_cost": _LAST.get("cost"),
        "source": _LAST.get("source"),
        "ts": ts.isoformat() if ts else None,
    }


def reset() -> None:
    _LAST.update({"remaining": None, "used": None, "cost": None, "source": None, "ts": None})
