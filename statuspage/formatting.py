from __future__ import annotations

from statuspage.checks.results import Failure


def format_failure_alert(
    name: str, url: str | None, failure: Failure, expected_status: int
) -> tuple[str, str]:
    title = f"[DOWN] {name}"

    lines = [
        f"Check: {name}",
        f"Target: {url or 'unknown'}",
        f"HTTP: {failure.actual_status} (expected {expected_status})",
        f"Error: {failure.describe_error()}",
    ]
    return title, "\n".join(lines)


def callback_payload(
    name: str, url: str | None, failure: Failure, expected_status: int
) -> dict[str, str]:
    return {
        "url": url or "",
        "name": name,
        "expected_status": str(expected_status),
        "actual_status": str(failure.actual_status),
        "error": failure.error,
    }
