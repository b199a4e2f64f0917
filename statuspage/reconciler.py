from __future__ import annotations

import logging
import time
from typing import Callable

from statuspage.dispatcher import Dispatcher
from statuspage.errors import ConfigurationError
from statuspage.models import Registry
from statuspage.state import ResultStore

logger = logging.getLogger(__name__)


def reconcile(
    store: ResultStore,
    registry: Registry,
    retry_delay_s: float,
    max_in_flight: int,
    dispatcher: Dispatcher | None = None,
    timeout_s: float = 5.0,
    verify_tls: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> list[str]:
    """Re-probe the currently failed checks once, after ``retry_delay_s``.

    A retry outcome replaces the first-pass outcome whether it succeeds or
    not. There is no second retry: a check has to fail twice, separated by
    the delay, to stay failed. Returns the names that were retried.

    A passed-in ``dispatcher`` keeps its own timeout and TLS setting;
    ``timeout_s`` and ``verify_tls`` only apply when one is built here. Its
    cap must equal ``max_in_flight``.
    """
    if dispatcher is not None and dispatcher.max_in_flight != max_in_flight:
        raise ConfigurationError(
            f"dispatcher cap {dispatcher.max_in_flight} does not match max_in_flight {max_in_flight}"
        )

    failed = store.failed_names()
    if not failed:
        return []

    logger.info(
        "%d check(s) failed, retrying in %ss: %s",
        len(failed),
        retry_delay_s,
        ", ".join(sorted(failed)),
    )
    sleep(retry_delay_s)

    if dispatcher is None:
        dispatcher = Dispatcher(
            registry,
            store,
            max_in_flight=max_in_flight,
            timeout_s=timeout_s,
            verify_tls=verify_tls,
        )
    dispatcher.dispatch_subset(failed)

    recovered = [name for name in failed if not store.has_failure(name)]
    if recovered:
        logger.info("Recovered on retry: %s", ", ".join(sorted(recovered)))
    return failed
