from __future__ import annotations

import argparse
import logging
import sys

from statuspage.config import Settings
from statuspage.errors import ConfigurationError
from statuspage.registry import load_registry
from statuspage.reporting import render_report_markdown
from statuspage.runner import run_once

logger = logging.getLogger("statuspage")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="statuspage",
        description="Probe the registered HTTP checks once and write the status report.",
    )
    parser.add_argument("-c", "--checks", help="registry file (default: STATUSPAGE_REGISTRY_PATH)")
    parser.add_argument("-o", "--output", help="HTML report path (default: STATUSPAGE_REPORT_PATH)")
    parser.add_argument("-j", "--max-concurrent", type=int, dest="max_concurrent_checks")
    parser.add_argument("-t", "--timeout", type=float, dest="timeout_s")
    parser.add_argument("-r", "--retry-delay", type=float, dest="retry_delay_s")
    parser.add_argument("--callback-url")
    parser.add_argument("--alerts", action="store_true", default=None, dest="alerts_enabled")
    parser.add_argument("--title", dest="report_title")
    parser.add_argument("-q", "--quiet", action="store_true", help="do not print the summary")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        run_settings = Settings.from_env().with_overrides(
            registry_path=args.checks,
            report_path=args.output,
            max_concurrent_checks=args.max_concurrent_checks,
            timeout_s=args.timeout_s,
            retry_delay_s=args.retry_delay_s,
            callback_url=args.callback_url,
            alerts_enabled=args.alerts_enabled,
            report_title=args.report_title,
        ).validate()
    except ConfigurationError as exc:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error("%s", exc)
        return 2
    logging.basicConfig(level=run_settings.log_level, format=LOG_FORMAT)

    try:
        registry = load_registry(run_settings.registry_path)
        result = run_once(registry, run_settings)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    if not args.quiet:
        print(render_report_markdown(result.report))
    for fut in result.notifications.alerts:
        # Let queued alerts go out before the interpreter exits.
        fut.exception()
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
