import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse

from statuspage.api_schemas import (
    AlertTestResponse,
    CheckOutcomeResponse,
    ConfigResponse,
    HealthResponse,
    RegistryNormalizedResponse,
    RunResponse,
    StatusSummaryResponse,
)
from statuspage.config import Settings
from statuspage.errors import ConfigurationError, NotifierDeliveryError
from statuspage.registry import describe_registry, load_registry
from statuspage.runner import RunResult, build_notifier, loop_forever, run_once

logger = logging.getLogger(__name__)
settings = Settings.from_env()

_latest_lock = threading.Lock()
latest: RunResult | None = None


def _set_latest(result: RunResult) -> None:
    global latest
    with _latest_lock:
        latest = result


def _get_latest() -> RunResult | None:
    with _latest_lock:
        return latest


def _require_latest() -> RunResult:
    result = _get_latest()
    if result is None:
        raise HTTPException(status_code=503, detail="No run has completed yet")
    return result


def _load_registry_or_500():
    try:
        return load_registry(settings.registry_path)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _run_response(result: RunResult) -> dict:
    return {
        "started_at": result.timing.started_at,
        "duration_ms": result.timing.duration_ms,
        "total": result.report.total,
        "failed": result.failed,
        "retried": sorted(result.retried),
        "report_path": result.report_path,
    }


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging.basicConfig(level=settings.log_level)
    stop = threading.Event()
    t = threading.Thread(
        target=loop_forever,
        args=(settings.validate(),),
        kwargs={"on_result": _set_latest, "stop": stop},
        daemon=True,
    )
    t.start()
    yield
    stop.set()


app = FastAPI(
    title="Status Page",
    version="1.0.0",
    description=(
        "Availability monitor that loads named HTTP checks from checks.yml, "
        "probes them concurrently, re-checks failures once, and serves the "
        "resulting status report."
    ),
    lifespan=lifespan,
)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by probes and orchestration.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/config",
    response_model=ConfigResponse,
    tags=["system"],
    summary="Current Effective Config",
    description="Returns non-secret runtime config values.",
)
def config():
    return {
        "registry_path": settings.registry_path,
        "max_concurrent_checks": settings.max_concurrent_checks,
        "timeout_s": settings.timeout_s,
        "retry_delay_s": settings.retry_delay_s,
        "callback_configured": bool(settings.callback_url),
        "alerts_enabled": settings.alerts_enabled,
        "verify_tls": settings.verify_tls,
        "interval": settings.monitor_interval,
    }


@app.get(
    "/api/registry",
    response_model=RegistryNormalizedResponse,
    tags=["registry"],
    summary="Normalized Registry",
    description="Returns checks with their resolved expected status, keyed by name.",
)
def registry_normalized():
    reg = _load_registry_or_500()
    return {
        "title": reg.title,
        "default_expected_status": reg.defaults.expected_status,
        "checks": describe_registry(reg),
        "count": len(reg.checks),
    }


@app.get(
    "/api/status/checks",
    response_model=dict[str, CheckOutcomeResponse],
    tags=["status"],
    summary="Latest Check Outcomes",
    description="Final outcome per check name from the most recent run.",
)
def status_checks():
    return _require_latest().store.snapshot()


@app.get(
    "/api/status/summary",
    response_model=StatusSummaryResponse,
    tags=["status"],
    summary="Status Summary",
    description="Aggregate counts and list of checks that failed the most recent run.",
)
def status_summary():
    return _require_latest().store.summary()


@app.get(
    "/api/report",
    response_class=HTMLResponse,
    tags=["status"],
    summary="Status Report",
    description="HTML status report of the most recent run.",
)
def report():
    return HTMLResponse(_require_latest().html)


@app.post(
    "/api/runs",
    response_model=RunResponse,
    tags=["status"],
    summary="Run Checks Now",
    description="Runs every check, the retry pass and notifications, then returns the summary.",
)
def trigger_run():
    reg = _load_registry_or_500()
    try:
        result = run_once(reg, settings)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    _set_latest(result)
    return _run_response(result)


@app.post(
    "/api/alerts/test",
    response_model=AlertTestResponse,
    tags=["alerts"],
    summary="Send Test Alert",
    description="Sends a test ntfy notification for a specific check name.",
)
def alerts_test(
    name: str = Query(
        ...,
        min_length=1,
        description="Check name from /api/registry to use as test context",
    )
):
    notifier = build_notifier(settings)
    if notifier is None:
        raise HTTPException(
            status_code=400,
            detail="NTFY_URL and NTFY_TOPIC must be configured",
        )

    reg = _load_registry_or_500()
    url = reg.url_for(name)
    if url is None:
        raise HTTPException(status_code=404, detail=f"Unknown check: {name}")

    message = (
        "This is a test notification from statuspage.\n"
        f"Check: {name}\n"
        f"Target: {url}"
    )
    try:
        notifier.send_down(title=f"[TEST] {name}", message=message)
    except NotifierDeliveryError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"ok": True, "check_name": name, "channel": "ntfy"}
