from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo
import datetime as dt

from config import DAILY_REFRESH_HOUR, DAILY_REFRESH_TZ
from .models import Mode, RefreshRequest
from .services import OddsRefreshService
from .weeks import utcnow


def run_daily(service: OddsRefreshService, now: Optional[dt.datetime] = None,
              hour: int = DAILY_REFRESH_HOUR, tz: str = DAILY_REFRESH_TZ) -> dict:
    """Hourly cron target: run a daily-mode refresh only at `hour` local time."""
    now = now or utcnow()
    local = now.astimezone(ZoneInfo(tz))
    if local.hour != hour:
        msg = f"Not {hour:02d}:00 {tz} (current: {local.hour:02d}:00), skipping"
        print(f"[daily] {msg}")
        return {"ran": False, "message": msg}

    result = service.refresh(RefreshRequest(mode=Mode.DAILY), now=now)
    print(f"[daily] refresh at {local.strftime('%Y-%m-%d %H:%M')} {tz}: success={result.success}")
    return {
        "ran": True,
        "message": "Daily odds refresh completed" if result.success else "Daily odds refresh failed",
        "time": f"{local.hour:02d}:00 {tz}",
        "result": result.to_dict(),
    }
