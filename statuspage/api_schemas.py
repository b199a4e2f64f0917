from __future__ import annotations

from typing import Any, Literal
from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class ConfigResponse(BaseModel):
    registry_path: str
    max_concurrent_checks: int = Field(ge=1)
    timeout_s: float
    retry_delay_s: float
    callback_configured: bool
    alerts_enabled: bool
    verify_tls: bool
    interval: int = Field(ge=1)


class RegistryNormalizedResponse(BaseModel):
    title: str
    default_expected_status: int
    checks: dict[str, dict[str, Any]]
    count: int


class CheckOutcomeResponse(BaseModel):
    name: str
    ok: bool
    duration_ms: int | None = None
    actual_status: int | Literal["unreachable"] | None = None
    error: str | None = None


class StatusSummaryResponse(BaseModel):
    total: int
    up: int
    down: int
    down_checks: list[CheckOutcomeResponse]


class RunResponse(BaseModel):
    started_at: str
    duration_ms: int
    total: int
    failed: list[str]
    retried: list[str]
    report_path: str | None = None


class AlertTestResponse(BaseModel):
    ok: bool
    check_name: str
    channel: str


class ReportFailure(BaseModel):
    name: str
    url: str | None = None
    actual_status: int | Literal["unreachable"]
    expected_status: int
    error: str


class ReportSuccess(BaseModel):
    name: str
    duration_ms: int = Field(ge=0)


class ReportData(BaseModel):
    title: str
    total: int
    failed_count: int
    failures: list[ReportFailure] = Field(default_factory=list)
    successes: list[ReportSuccess] = Field(default_factory=list)
    generated_at: str
    duration_ms: int

    @property
    def all_clear(self) -> bool:
        return self.failed_count == 0
