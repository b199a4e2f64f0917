from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from statuspage.api_schemas import ReportData
from statuspage.checks.http_check import probe
from statuspage.config import Settings
from statuspage.dispatcher import Dispatcher, ProbeFn
from statuspage.models import Registry, RunTiming
from statuspage.notifier import NotifyResult, NtfyConfig, NtfyNotifier, notify
from statuspage.reconciler import reconcile
from statuspage.registry import load_registry
from statuspage.reporting import build_report_data, render_report_html
from statuspage.state import ResultStore

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    store: ResultStore
    timing: RunTiming
    report: ReportData
    html: str
    retried: list[str] = field(default_factory=list)
    notifications: NotifyResult = field(default_factory=NotifyResult)
    report_path: str | None = None

    @property
    def failed(self) -> list[str]:
        return sorted(self.store.failed_names())


def build_notifier(settings: Settings) -> NtfyNotifier | None:
    if not settings.ntfy_url or not settings.ntfy_topic:
        return None
    return NtfyNotifier(
        NtfyConfig(base_url=settings.ntfy_url, topic=settings.ntfy_topic),
        timeout_s=settings.timeout_s,
    )


def write_report(html: str, path: str) -> str:
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    # Write then rename so readers never see a half-written page.
    tmp = out.with_name(out.name + ".tmp")
    tmp.write_text(html, encoding="utf-8")
    tmp.replace(out)
    return str(out)


def run_once(
    registry: Registry,
    settings: Settings,
    store: ResultStore | None = None,
    notifier: NtfyNotifier | None = None,
    probe_fn: ProbeFn = probe,
    sleep: Callable[[float], None] = time.sleep,
    write: bool = True,
) -> RunResult:
    settings.validate()
    store = store if store is not None else ResultStore()
    timing = RunTiming.start()

    dispatcher = Dispatcher(
        registry,
        store,
        max_in_flight=settings.max_concurrent_checks,
        timeout_s=settings.timeout_s,
        verify_tls=settings.verify_tls,
        probe_fn=probe_fn,
    )
    dispatcher.dispatch_all()
    logger.info(
        "First pass done: %d checks, %d failed", len(store), len(store.failed_names())
    )

    retried = reconcile(
        store,
        registry,
        retry_delay_s=settings.retry_delay_s,
        max_in_flight=settings.max_concurrent_checks,
        dispatcher=dispatcher,
        sleep=sleep,
    )
    timing.finish()

    report = build_report_data(
        store=store, registry=registry, timing=timing, title=settings.report_title
    )
    html = render_report_html(report)
    report_path = None
    if write:
        try:
            report_path = write_report(html, settings.report_path)
        except OSError as exc:
            # Confirmed failures still go out even when the page cannot be written.
            logger.error("Could not write report to %s: %s", settings.report_path, exc)

    if settings.alerts_enabled and notifier is None:
        notifier = build_notifier(settings)
    notifications = notify(
        store.failed(),
        registry,
        callback_url=settings.callback_url,
        alerts_enabled=settings.alerts_enabled,
        timeout_s=settings.timeout_s,
        alerter=notifier,
    )

    logger.info(
        "Run finished in %sms: %d/%d checks failed",
        timing.duration_ms,
        report.failed_count,
        report.total,
    )
    return RunResult(
        store=store,
        timing=timing,
        report=report,
        html=html,
        retried=retried,
        notifications=notifications,
        report_path=report_path,
    )


def loop_forever(
    settings: Settings,
    on_result: Callable[[RunResult], None] | None = None,
    stop: threading.Event | None = None,
) -> None:
    stop = stop or threading.Event()
    notifier = build_notifier(settings)
    while not stop.is_set():
        start = time.perf_counter()
        try:
            result = run_once(load_registry(settings.registry_path), settings, notifier=notifier)
            if on_result is not None:
                on_result(result)
        except Exception:
            # A broken registry edit should not kill the loop; the next pass retries.
            logger.exception("Status run failed")
        elapsed = time.perf_counter() - start
        stop.wait(max(0.0, settings.monitor_interval - elapsed))
