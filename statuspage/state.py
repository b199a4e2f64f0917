from __future__ import annotations

import threading
from typing import Any

from statuspage.checks.results import CheckOutcome, Failure, Success


def outcome_to_dict(name: str, outcome: CheckOutcome) -> dict[str, Any]:
    if isinstance(outcome, Success):
        return {
            "name": name,
            "ok": True,
            "duration_ms": outcome.duration_ms,
            "actual_status": None,
            "error": None,
        }
    return {
        "name": name,
        "ok": False,
        "duration_ms": None,
        "actual_status": outcome.actual_status,
        "error": outcome.error,
    }


class ResultStore:
    """Latest outcome per check name.

    Each write replaces the whole outcome for its name under the lock, so a
    reader never observes a partially written entry.
    """

    def __init__(self) -> None:
        self._outcomes: dict[str, CheckOutcome] = {}
        self._lock = threading.Lock()

    def record(self, name: str, outcome: CheckOutcome) -> None:
        with self._lock:
            self._outcomes[name] = outcome

    def get(self, name: str) -> CheckOutcome | None:
        with self._lock:
            return self._outcomes.get(name)

    def has_failure(self, name: str) -> bool:
        with self._lock:
            return isinstance(self._outcomes.get(name), Failure)

    def failed_names(self) -> list[str]:
        with self._lock:
            return [k for k, v in self._outcomes.items() if isinstance(v, Failure)]

    def failed(self) -> dict[str, Failure]:
        with self._lock:
            return {k: v for k, v in self._outcomes.items() if isinstance(v, Failure)}

    def succeeded(self) -> dict[str, Success]:
        with self._lock:
            return {k: v for k, v in self._outcomes.items() if isinstance(v, Success)}

    def outcomes(self) -> dict[str, CheckOutcome]:
        with self._lock:
            return dict(self._outcomes)

    def clear(self) -> None:
        with self._lock:
            self._outcomes.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {k: outcome_to_dict(k, v) for k, v in self.outcomes().items()}

    def summary(self) -> dict[str, Any]:
        snap = self.snapshot()
        down_checks = [v for v in snap.values() if v["ok"] is False]
        return {
            "total": len(snap),
            "up": len(snap) - len(down_checks),
            "down": len(down_checks),
            "down_checks": down_checks,
        }
