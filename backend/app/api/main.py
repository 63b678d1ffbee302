from datetime import date, datetime
import logging
import os
from time import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from starlette.requests import Request

from backend.app.core.config import settings
from backend.app.core.logging import configure_logging
from backend.app.db.session import SessionLocal
from backend.app.trends.engine import (
    build_trends_report,
    load_athlete_trends,
    make_source,
    no_data_payload,
    report_payload,
    session_payload,
)
from backend.app.trends.records import AthleteTrendData
from backend.app.trends.windows import TimeWindow, filter_by_window

configure_logging(settings.log_level)

app = FastAPI(title="Batted Ball Trends", version="0.1.0")

logger = logging.getLogger(__name__)

_TRENDS_CACHE_CONTROL = "private, max-age=0, stale-while-revalidate=60"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# athlete_id -> (expires_at, load-cycle result). Window changes reuse the cached
# per-session aggregates instead of re-reading every swing.
_TRENDS_CACHE: dict[str, tuple[float, AthleteTrendData]] = {}


def _init_sentry() -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        return

    try:
        traces_sample_rate = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))
    except ValueError:
        traces_sample_rate = 0.1

    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
        release=os.getenv("SENTRY_RELEASE") or "unknown",
        traces_sample_rate=traces_sample_rate,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
    )


_init_sentry()


@app.middleware("http")
async def sentry_request_context(request: Request, call_next):
    scope = sentry_sdk.get_current_scope()
    scope.set_tag("method", request.method)
    scope.set_tag("path", request.url.path)
    athlete_id = request.path_params.get("athlete_id")
    if athlete_id is not None:
        scope.set_tag("athlete_id", str(athlete_id))
    return await call_next(request)


def _trends_cache_get(athlete_id: str) -> tuple[bool, Optional[AthleteTrendData]]:
    cached = _TRENDS_CACHE.get(athlete_id)
    if not cached:
        return False, None
    expires_at, payload = cached
    if time() < expires_at:
        return True, payload
    _TRENDS_CACHE.pop(athlete_id, None)
    return False, None


def _trends_cache_set(athlete_id: str, payload: Optional[AthleteTrendData]) -> None:
    # Missing athletes and partial loads are never cached, so the next request retries the store.
    if payload is None or not payload.complete:
        return
    now = time()
    for key in [k for k, (expires_at, _) in _TRENDS_CACHE.items() if expires_at <= now]:
        _TRENDS_CACHE.pop(key, None)
    _TRENDS_CACHE[athlete_id] = (now + settings.trends_cache_ttl_seconds, payload)


def _load_trends(athlete_id: str, refresh: bool = False) -> Optional[AthleteTrendData]:
    if refresh:
        _TRENDS_CACHE.pop(athlete_id, None)
    hit, cached = _trends_cache_get(athlete_id)
    if hit:
        return cached
    session = SessionLocal()
    try:
        data = load_athlete_trends(make_source(session), athlete_id)
    finally:
        session.close()
    _trends_cache_set(athlete_id, data)
    return data


def _parse_window(window: Optional[str]) -> TimeWindow:
    try:
        return TimeWindow.parse(window or settings.default_time_window)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _reference_now(as_of_date: Optional[date]) -> datetime:
    # An explicit as_of_date is taken as that day's midnight; otherwise wall-clock now.
    if as_of_date is not None:
        return datetime.combine(as_of_date, datetime.min.time())
    return datetime.now()


@app.get("/")
def root(response: Response):
    response.headers["Cache-Control"] = "public, max-age=120"
    return {"status": "ok", "message": "Batted Ball Trends API is running"}


@app.get("/health")
def healthcheck():
    return {"status": "ok", "env": settings.app_env}


@app.get("/api/athletes/{athlete_id}/sessions")
def get_athlete_sessions(
    athlete_id: str,
    response: Response,
    window: Optional[str] = None,
    as_of_date: Optional[date] = None,
    refresh: bool = False,
):
    time_window = _parse_window(window)
    try:
        data = _load_trends(athlete_id, refresh=refresh)
        if data is None:
            return no_data_payload(athlete_id, time_window)
        sessions, _ = filter_by_window(data.sessions, (), time_window, _reference_now(as_of_date))
        response.headers["Cache-Control"] = _TRENDS_CACHE_CONTROL
        return {
            "status": "ok",
            "athlete_id": data.athlete_id,
            "window": time_window.value,
            "complete": data.complete,
            "sessions": [session_payload(s) for s in sessions],
        }
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.get("/api/athletes/{athlete_id}/batted-ball-trends")
def get_batted_ball_trends(
    athlete_id: str,
    response: Response,
    window: Optional[str] = None,
    as_of_date: Optional[date] = None,
    grid_size: Optional[int] = Query(default=None, ge=1, le=48),
    refresh: bool = False,
):
    started = time()
    time_window = _parse_window(window)
    try:
        data = _load_trends(athlete_id, refresh=refresh)
        if data is None:
            return no_data_payload(athlete_id, time_window)
        report = build_trends_report(data, time_window, _reference_now(as_of_date), grid_size=grid_size)
        response.headers["Cache-Control"] = _TRENDS_CACHE_CONTROL
        return report_payload(report)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    finally:
        duration = time() - started
        if duration > 2:
            logger.warning("Slow request: /api/athletes/%s/batted-ball-trends %.3fs", athlete_id, duration)
        else:
            logger.debug("Request: /api/athletes/%s/batted-ball-trends %.3fs", athlete_id, duration)


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=settings.uvicorn_host, port=settings.uvicorn_port)


if __name__ == "__main__":
    main()
