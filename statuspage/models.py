from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_TITLE = "Service Status"


@dataclass(frozen=True)
class CheckTarget:
    name: str
    url: str


def serialize_ts(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow_iso() -> str:
    return serialize_ts(datetime.now(timezone.utc)) or ""


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class RunTiming:
    start_ms: int
    end_ms: int | None = None

    @classmethod
    def start(cls) -> "RunTiming":
        return cls(start_ms=epoch_ms())

    def finish(self) -> "RunTiming":
        self.end_ms = epoch_ms()
        return self

    @property
    def duration_ms(self) -> int:
        end = self.end_ms if self.end_ms is not None else epoch_ms()
        return max(0, end - self.start_ms)

    @property
    def started_at(self) -> str:
        return serialize_ts(datetime.fromtimestamp(self.start_ms / 1000, tz=timezone.utc)) or ""


class Defaults(BaseModel):
    expected_status: int = Field(default=200, ge=100, le=599)


class Registry(BaseModel):
    title: str = DEFAULT_TITLE
    defaults: Defaults = Defaults()
    checks: Dict[str, str] = Field(default_factory=dict)
    expected_status: Dict[str, int] = Field(default_factory=dict)

    @field_validator("checks")
    @classmethod
    def _non_blank_checks(cls, v: Dict[str, str]) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for name, url in v.items():
            key = name.strip()
            if not key:
                raise ValueError("check names must not be blank")
            if key in out:
                raise ValueError(f"duplicate check name: {key!r}")
            if not isinstance(url, str) or not url.strip():
                raise ValueError(f"check {name!r} has no url")
            out[key] = url.strip()
        return out

    @field_validator("expected_status")
    @classmethod
    def _valid_codes(cls, v: Dict[str, int]) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for name, code in v.items():
            if not 100 <= code <= 599:
                raise ValueError(f"expected status for {name!r} out of range: {code}")
            if name.strip() in out:
                raise ValueError(f"duplicate expected_status override: {name.strip()!r}")
            out[name.strip()] = code
        return out

    @model_validator(mode="after")
    def _overrides_name_known_checks(self) -> "Registry":
        unknown = sorted(set(self.expected_status) - set(self.checks))
        if unknown:
            raise ValueError(f"expected_status overrides for unknown checks: {', '.join(unknown)}")
        return self

    def targets(self) -> List[CheckTarget]:
        return [CheckTarget(name=name, url=url) for name, url in self.checks.items()]

    def target(self, name: str) -> CheckTarget:
        return CheckTarget(name=name, url=self.checks[name])

    def expected_status_for(self, name: str) -> int:
        return self.expected_status.get(name, self.defaults.expected_status)

    def url_for(self, name: str) -> Optional[str]:
        return self.checks.get(name)
