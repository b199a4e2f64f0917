from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Iterable

from statuspage.checks.http_check import probe
from statuspage.checks.results import UNREACHABLE, CheckOutcome, Failure
from statuspage.errors import ConfigurationError
from statuspage.models import CheckTarget, Registry
from statuspage.state import ResultStore

logger = logging.getLogger(__name__)

ProbeFn = Callable[..., CheckOutcome]


class Dispatcher:
    """Runs one probe per target with at most ``max_in_flight`` running at once.

    Pending targets wait in the pool queue; whichever probe finishes first
    frees its worker for the next target. Outcomes are delivered through the
    store, never through the return value.
    """

    def __init__(
        self,
        registry: Registry,
        store: ResultStore,
        max_in_flight: int,
        timeout_s: float,
        verify_tls: bool = False,
        probe_fn: ProbeFn = probe,
    ) -> None:
        if max_in_flight < 1:
            raise ConfigurationError(f"max_in_flight must be >= 1, got {max_in_flight}")
        self.registry = registry
        self.store = store
        self.max_in_flight = max_in_flight
        self.timeout_s = timeout_s
        self.verify_tls = verify_tls
        self._probe = probe_fn

    def _run_one(self, target: CheckTarget) -> None:
        try:
            self._probe(
                target.name,
                target.url,
                self.registry.expected_status_for(target.name),
                self.timeout_s,
                self.store,
                verify_tls=self.verify_tls,
            )
        except Exception as exc:
            # Transport errors are already Failure outcomes; this is anything else.
            logger.exception("Probe for %s raised unexpectedly", target.name)
            self.store.record(target.name, Failure(actual_status=UNREACHABLE, error=str(exc)))

    def _dispatch(self, targets: list[CheckTarget]) -> int:
        if not targets:
            return 0

        logger.debug("Dispatching %d probes (max_in_flight=%d)", len(targets), self.max_in_flight)
        with ThreadPoolExecutor(
            max_workers=self.max_in_flight, thread_name_prefix="probe"
        ) as executor:
            futures = [executor.submit(self._run_one, t) for t in targets]
            wait(futures)
        return len(targets)

    def dispatch_all(self, targets: Iterable[CheckTarget] | None = None) -> int:
        if targets is None:
            targets = self.registry.targets()
        return self._dispatch(list(targets))

    def dispatch_subset(self, names: Iterable[str]) -> int:
        # Resolve every name before launching anything.
        targets = [self.registry.target(name) for name in names]
        return self._dispatch(targets)
