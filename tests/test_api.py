import importlib
import unittest
from unittest.mock import patch

from fastapi import HTTPException

from statuspage.checks.results import Failure, Success
from statuspage.errors import NotifierDeliveryError
from statuspage.models import Registry, RunTiming
from statuspage.reporting import build_report_data, render_report_html
from statuspage.runner import RunResult
from statuspage.state import ResultStore


def make_result() -> RunResult:
    registry = Registry(checks={"a": "http://a.local/", "b": "http://b.local/"})
    store = ResultStore()
    store.record("a", Success(duration_ms=12))
    store.record("b", Failure(actual_status=503))
    timing = RunTiming(start_ms=1_700_000_000_000, end_ms=1_700_000_001_500)
    report = build_report_data(store=store, registry=registry, timing=timing)
    return RunResult(
        store=store,
        timing=timing,
        report=report,
        html=render_report_html(report),
        retried=["b"],
    )


class ApiTests(unittest.TestCase):
    def _load_main_module(self):
        mod = importlib.import_module("statuspage.main")
        mod = importlib.reload(mod)
        return mod

    def test_openapi_schema_generation(self) -> None:
        schema = self._load_main_module().app.openapi()

        paths = schema["paths"]
        for path in (
            "/health",
            "/config",
            "/api/registry",
            "/api/status/checks",
            "/api/status/summary",
            "/api/report",
            "/api/runs",
            "/api/alerts/test",
        ):
            self.assertIn(path, paths)

    def test_status_before_first_run_is_503(self) -> None:
        main_mod = self._load_main_module()

        with self.assertRaises(HTTPException) as ctx:
            main_mod.status_summary()
        self.assertEqual(ctx.exception.status_code, 503)

    def test_status_reads_latest_run(self) -> None:
        main_mod = self._load_main_module()
        main_mod._set_latest(make_result())

        summary = main_mod.status_summary()
        checks = main_mod.status_checks()
        page = main_mod.report()

        self.assertEqual((summary["total"], summary["up"], summary["down"]), (2, 1, 1))
        self.assertEqual(checks["b"]["actual_status"], 503)
        self.assertIn(b"503/200", page.body)

    def test_trigger_run_stores_latest(self) -> None:
        main_mod = self._load_main_module()
        result = make_result()

        with patch.object(main_mod, "load_registry", return_value=Registry()), patch.object(
            main_mod, "run_once", return_value=result
        ):
            resp = main_mod.trigger_run()

        self.assertEqual(resp["failed"], ["b"])
        self.assertEqual(resp["retried"], ["b"])
        self.assertEqual(resp["duration_ms"], 1_500)
        self.assertIs(main_mod._get_latest(), result)

    def test_alerts_test_success(self) -> None:
        main_mod = self._load_main_module()

        with patch.object(main_mod, "build_notifier") as build, patch.object(
            main_mod, "load_registry", return_value=Registry(checks={"a": "http://a.local/"})
        ):
            resp = main_mod.alerts_test("a")

        build.return_value.send_down.assert_called_once()
        self.assertEqual(build.return_value.send_down.call_args.kwargs["title"], "[TEST] a")
        self.assertEqual(resp, {"ok": True, "check_name": "a", "channel": "ntfy"})

    def test_alerts_test_requires_ntfy(self) -> None:
        main_mod = self._load_main_module()

        with patch.object(main_mod, "build_notifier", return_value=None):
            with self.assertRaises(HTTPException) as ctx:
                main_mod.alerts_test("a")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_alerts_test_unknown_check(self) -> None:
        main_mod = self._load_main_module()

        with patch.object(main_mod, "build_notifier"), patch.object(
            main_mod, "load_registry", return_value=Registry(checks={"a": "http://a.local/"})
        ):
            with self.assertRaises(HTTPException) as ctx:
                main_mod.alerts_test("missing")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_alerts_test_delivery_failure_is_502(self) -> None:
        main_mod = self._load_main_module()

        with patch.object(main_mod, "build_notifier") as build, patch.object(
            main_mod, "load_registry", return_value=Registry(checks={"a": "http://a.local/"})
        ):
            build.return_value.send_down.side_effect = NotifierDeliveryError("ntfy down")
            with self.assertRaises(HTTPException) as ctx:
                main_mod.alerts_test("a")
        self.assertEqual(ctx.exception.status_code, 502)


if __name__ == "__main__":
    unittest.main()
