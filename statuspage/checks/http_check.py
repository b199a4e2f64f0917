from __future__ import annotations

import logging
import time

import requests
import urllib3

from statuspage.checks.results import UNREACHABLE, CheckOutcome, Failure, Success

logger = logging.getLogger(__name__)

# Certificate verification is off unless STATUSPAGE_VERIFY_TLS is set.
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def run_http(
    url: str,
    expected_status: int,
    timeout_s: float,
    verify_tls: bool = False,
) -> CheckOutcome:
    start = time.perf_counter()
    try:
        r = requests.get(url, timeout=timeout_s, verify=verify_tls)
    except requests.RequestException as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("GET %s failed after %sms: %s", url, duration_ms, e)
        return Failure(actual_status=UNREACHABLE, error=str(e))

    duration_ms = int((time.perf_counter() - start) * 1000)
    if r.status_code == expected_status:
        return Success(duration_ms=duration_ms)
    return Failure(actual_status=r.status_code, error="")


def probe(
    name: str,
    url: str,
    expected_status: int,
    timeout_s: float,
    store,
    verify_tls: bool = False,
) -> CheckOutcome:
    outcome = run_http(url, expected_status=expected_status, timeout_s=timeout_s, verify_tls=verify_tls)
    store.record(name, outcome)
    return outcome
