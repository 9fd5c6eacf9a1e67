from __future__ import annotations

import json
from urllib.parse import parse_qs
import os
import time
import traceback
import sys
import threading
from wsgiref.simple_server import make_server, WSGIServer, WSGIRequestHandler
from socketserver import ThreadingMixIn
from typing import Callable, Optional

from .errors import OddsProviderError, RequestError, StoreError
from .models import Mode, RefreshRequest, RefreshResult, to_json_ready
from .services import OddsRefreshService
from .weeks import MAX_WEEK, current_week
from . import ratelimit

# Verbose request logging; switched on by serve(debug=True).
_DEBUG_FLAG = False

# Set by configure() or lazily on first request
_SERVICE: Optional[OddsRefreshService] = None
_SERVICE_LOCK = threading.Lock()

_CORS = [
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Headers", "Content-Type"),
    ("Access-Control-Allow-Methods", "GET, POST, OPTIONS"),
]


def configure(service: OddsRefreshService) -> None:
    global _SERVICE
    _SERVICE = service


def get_service() -> OddsRefreshService:
    global _SERVICE
    if _SERVICE is not None:
        return _SERVICE
    # request threads race here on the first hit; firebase-admin initializes once
    with _SERVICE_LOCK:
        if _SERVICE is None:
            import espn_api
            from .firestore_store import FirestoreStore
            _SERVICE = OddsRefreshService(FirestoreStore(), schedule=espn_api.get_week_games)
    return _SERVICE


def _json_response(start_response: Callable, status: str, payload: dict, headers_extra: list[tuple[str, str]] | None = None):
    body = json.dumps(to_json_ready(payload), indent=2).encode("utf-8")
    headers = [("Content-Type", "application/json; charset=utf-8"), ("Content-Length", str(len(body)))] + _CORS
    if headers_extra:
        headers.extend(headers_extra)
    start_response(status, headers)
    return [body]


def _debug_enabled() -> bool:
    return bool(_DEBUG_FLAG) or os.getenv('API_DEBUG') in ('1', 'true', 'True')


def set_debug(flag: bool) -> None:
    global _DEBUG_FLAG
    _DEBUG_FLAG = bool(flag)


def _dprint(*args):
    if _debug_enabled():
        print(*args, flush=True)


def _read_body(environ) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    stream = environ.get("wsgi.input")
    if length <= 0 or stream is None:
        return b""
    return stream.read(length)


def _int_field(body: dict, name: str, lo: int, hi: int) -> Optional[int]:
    value = body.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RequestError(f"{name} must be an integer")
    if not lo <= value <= hi:
        raise RequestError(f"{name} must be between {lo} and {hi}")
    return value


def parse_refresh_request(raw: bytes) -> RefreshRequest:
    """Validate a refresh body: {season?, week?, mode}. Missing mode means manual."""
    if not raw or not raw.strip():
        body = {}
    else:
        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise RequestError(f"invalid JSON body: {e}") from e
    if not isinstance(body, dict):
        raise RequestError("body must be a JSON object")
    mode = body.get("mode", Mode.MANUAL.value)
    try:
        mode = Mode(mode)
    except ValueError:
        raise RequestError(f"mode must be one of {', '.join(m.value for m in Mode)}") from None
    return RefreshRequest(
        mode=mode,
        season=_int_field(body, "season", 1920, 2100),
        week=_int_field(body, "week", 1, MAX_WEEK),
    )


def _handle_refresh(environ, start_response):
    try:
        req = parse_refresh_request(_read_body(environ))
    except RequestError as e:
        _dprint(f"[api] bad refresh request: {e}")
        return _json_response(start_response, "400 Bad Request", {"success": False, "error": str(e)})

    t0 = time.time()
    try:
        result = get_service().refresh(req)
    except StoreError as e:
        print(f"[api] store error during refresh: {e}")
        season, week = current_week()
        failed = RefreshResult(
            success=False,
            season=req.season if req.season is not None else season,
            week=req.week if req.week is not None else week,
            usage={"remaining": ratelimit.get_details()["remaining"] or 0, "cost": 0},
            error=str(e),
        )
        return _json_response(start_response, "500 Internal Server Error", failed.to_dict())
    _dprint(f"[api] refresh done success={result.success} dt={(time.time()-t0):.2f}s")
    status = "200 OK" if result.success else "502 Bad Gateway"
    return _json_response(start_response, status, result.to_dict())


def application(environ, start_response):
    path = environ.get("PATH_INFO", "/")
    method = environ.get("REQUEST_METHOD", "GET")
    qs = parse_qs(environ.get("QUERY_STRING", ""))

    def q(name: str, default: str = "") -> str:
        v = qs.get(name)
        return v[0] if v else default

    _dprint(f"[api] {method} {path} qs={qs}")

    try:
        if method == "OPTIONS":
            start_response("200 OK", [("Content-Length", "0")] + _CORS)
            return [b""]

        if path == "/health":
            return _json_response(start_response, "200 OK", {"status": "ok", "ratelimit": ratelimit.format_status(), "ratelimit_info": ratelimit.get_details()})

        if path == "/odds/refresh":
            if method != "POST":
                return _json_response(start_response, "405 Method Not Allowed", {"error": "method_not_allowed"}, [("Allow", "POST, OPTIONS")])
            return _handle_refresh(environ, start_response)

        if path == "/odds":
            try:
                season = int(q("season"))
                week = int(q("week"))
            except ValueError:
                return _json_response(start_response, "400 Bad Request", {"error": "season and week are required integers"})
            return _json_response(start_response, "200 OK", get_service().week_odds(season, week))

        if path == "/usage":
            usage = get_service().store.get_usage()
            return _json_response(start_response, "200 OK", {"usage": usage.to_dict() if usage else None})

        return _json_response(start_response, "404 Not Found", {"error": "not_found", "path": path})

    except OddsProviderError as e:
        print(f"[api] provider error: {e}")
        return _json_response(start_response, "502 Bad Gateway", {"success": False, "error": str(e)})
    except StoreError as e:
        print(f"[api] store error: {e}")
        return _json_response(start_response, "500 Internal Server Error", {"success": False, "error": str(e)})
    except Exception as e:
        if _debug_enabled():
            _dprint("[api] error:")
            traceback.print_exc()
        else:
            print(f"[api] error: {e}")
        return _json_response(start_response, "500 Internal Server Error", {"success": False, "error": str(e), "ratelimit": ratelimit.format_status()})


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True
    allow_reuse_address = True


class DebugRequestHandler(WSGIRequestHandler):
    def log_message(self, format, *args):  # noqa: A003
        if _debug_enabled():
            reqline = getattr(self, 'requestline', '-')
            print(f"[api] {self.address_string()} \"{reqline}\" {format % args}", flush=True)


def serve(host: str = "127.0.0.1", port: int = 8000, debug: bool = False) -> None:
    # Ensure immediate console output (line-buffered stdout/stderr)
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, "reconfigure"):
            stream.reconfigure(line_buffering=True, write_through=True)
    set_debug(debug)
    if debug:
        # odds_client and firestore_store read API_DEBUG themselves
        os.environ['API_DEBUG'] = '1'

    print("""
Starting Pick'em Odds API
Endpoints:
  GET  /health
  GET  /usage
  GET  /odds?season=&week=
  POST /odds/refresh  {"season"?, "week"?, "mode": "manual"|"daily"|"bootstrap"}
""")
    with make_server(host, port, application, server_class=ThreadingWSGIServer, handler_class=DebugRequestHandler) as httpd:
        print(f"[api] Serving (threaded) on http://{host}:{port}", flush=True)
        print(f"[api] Debug logging: {'ON' if _debug_enabled() else 'OFF'} (use --debug to enable)", flush=True)
        httpd.serve_forever()


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Pick'em odds API (stdlib server)")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--debug", action="store_true", help="Enable verbose API debug logging")
    args = parser.parse_args()
    serve(args.host, args.port, args.debug)


if __name__ == "__main__":
    main()
