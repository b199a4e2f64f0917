from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from statuspage.checks.results import Failure
from statuspage.errors import NotifierDeliveryError
from statuspage.formatting import callback_payload, format_failure_alert
from statuspage.models import Registry

logger = logging.getLogger(__name__)

CALLBACK_RETRIES = 3


@dataclass
class NtfyConfig:
    base_url: str
    topic: str
    priority_down: int = 4
    priority_up: int = 2


class NtfyNotifier:
    def __init__(self, cfg: NtfyConfig, timeout_s: float = 5) -> None:
        self.cfg = cfg
        self.timeout_s = timeout_s

    def _post(
        self, title: str, message: str, priority: int, tags: Optional[str] = None
    ) -> None:
        url = f"{self.cfg.base_url.rstrip('/')}/{self.cfg.topic}"
        headers = {
            "Title": title,
            "Priority": str(priority),
        }
        if tags:
            headers["Tags"] = tags  # comma-separated emoji or tag words
        try:
            r = requests.post(
                url, data=message.encode("utf-8"), headers=headers, timeout=self.timeout_s
            )
            r.raise_for_status()
        except requests.RequestException as exc:
            raise NotifierDeliveryError(f"ntfy delivery to {url} failed: {exc}") from exc

    def send_down(self, title: str, message: str) -> None:
        self._post(
            title, message, priority=self.cfg.priority_down, tags="rotating_light,down"
        )


class CallbackClient:
    """POSTs one JSON document per failed check to a callback endpoint."""

    def __init__(self, url: str, timeout_s: float = 5, retries: int = CALLBACK_RETRIES) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.session = requests.Session()
        retry = Retry(
            total=retries,
            backoff_factor=0.5,
            status_forcelist=(502, 503, 504),
            allowed_methods=frozenset({"POST"}),
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def post_failure(self, payload: dict[str, str]) -> None:
        try:
            r = self.session.post(self.url, json=payload, timeout=self.timeout_s)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise NotifierDeliveryError(
                f"callback for {payload.get('name')} to {self.url} failed: {exc}"
            ) from exc

    def close(self) -> None:
        self.session.close()


@dataclass
class NotifyResult:
    delivered: int = 0
    callback_errors: list[str] = field(default_factory=list)
    alerts: list[Future] = field(default_factory=list)


# Shared pool so alerts outlive the notify() call that submitted them.
_alert_pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="alert")


def _log_alert_result(name: str, fut: Future) -> None:
    exc = fut.exception()
    if exc is not None:
        logger.warning("Alert for %s was not delivered: %s", name, exc)


def notify(
    failed: dict[str, Failure],
    registry: Registry,
    callback_url: str | None = None,
    alerts_enabled: bool = False,
    timeout_s: float = 5,
    callback: CallbackClient | None = None,
    alerter: NtfyNotifier | None = None,
) -> NotifyResult:
    result = NotifyResult()
    if not callback_url and not alerts_enabled:
        return result
    if not failed:
        return result

    owns_callback = bool(callback_url) and callback is None
    if owns_callback:
        callback = CallbackClient(callback_url, timeout_s=timeout_s)
    if alerts_enabled and alerter is None:
        logger.warning("Alerts enabled but no ntfy notifier configured; skipping alerts")

    for name in sorted(failed):
        failure = failed[name]
        url = registry.url_for(name)
        expected = registry.expected_status_for(name)

        if callback_url and callback is not None:
            try:
                callback.post_failure(callback_payload(name, url, failure, expected))
                result.delivered += 1
            except NotifierDeliveryError as exc:
                # Delivery problems never affect the run outcome.
                logger.error("%s", exc)
                result.callback_errors.append(str(exc))

        if alerts_enabled and alerter is not None:
            title, message = format_failure_alert(name, url, failure, expected)
            fut = _alert_pool.submit(alerter.send_down, title=title, message=message)
            fut.add_done_callback(lambda f, n=name: _log_alert_result(n, f))
            result.alerts.append(fut)

    if owns_callback:
        callback.close()
    return result
