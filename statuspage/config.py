from __future__ import annotations

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from statuspage.errors import ConfigurationError

load_dotenv()

DEFAULT_REGISTRY_PATH = "checks.yml"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name) or default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    registry_path: str = DEFAULT_REGISTRY_PATH
    max_concurrent_checks: int = 10
    timeout_s: float = 5.0
    retry_delay_s: float = 5.0
    callback_url: str | None = None
    alerts_enabled: bool = False
    verify_tls: bool = False
    report_path: str = "status.html"
    report_title: str | None = None
    ntfy_url: str | None = None
    ntfy_topic: str | None = None
    monitor_interval: int = 60
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            registry_path=os.getenv("STATUSPAGE_REGISTRY_PATH", DEFAULT_REGISTRY_PATH),
            max_concurrent_checks=_env_number("STATUSPAGE_MAX_CONCURRENT_CHECKS", "10", int),
            timeout_s=_env_number("STATUSPAGE_TIMEOUT_S", "5", float),
            retry_delay_s=_env_number("STATUSPAGE_RETRY_DELAY_S", "5", float),
            callback_url=os.getenv("STATUSPAGE_CALLBACK_URL") or None,
            alerts_enabled=_env_bool("STATUSPAGE_ALERTS_ENABLED"),
            verify_tls=_env_bool("STATUSPAGE_VERIFY_TLS"),
            report_path=os.getenv("STATUSPAGE_REPORT_PATH", "status.html"),
            report_title=os.getenv("STATUSPAGE_REPORT_TITLE") or None,
            ntfy_url=os.getenv("NTFY_URL") or None,
            ntfy_topic=os.getenv("NTFY_TOPIC") or None,
            monitor_interval=_env_number("MONITOR_INTERVAL", "60", int),
            log_level=os.getenv("STATUSPAGE_LOG_LEVEL", "INFO").upper(),
        )

    def with_overrides(self, **changes) -> "Settings":
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> "Settings":
        if self.max_concurrent_checks < 1:
            raise ConfigurationError("max_concurrent_checks must be >= 1")
        if self.timeout_s <= 0:
            raise ConfigurationError("timeout_s must be > 0")
        if self.retry_delay_s < 0:
            raise ConfigurationError("retry_delay_s must be >= 0")
        if self.monitor_interval < 1:
            raise ConfigurationError("monitor_interval must be >= 1")
        if self.alerts_enabled and (not self.ntfy_url or not self.ntfy_topic):
            raise ConfigurationError(
                "NTFY_URL and NTFY_TOPIC must be configured when alerts are enabled"
            )
        return self
