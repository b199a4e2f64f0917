import unittest

from statuspage.checks.results import UNREACHABLE, Failure, Success
from statuspage.models import Registry, RunTiming
from statuspage.reporting import (
    build_report_data,
    render,
    render_report_html,
    render_report_markdown,
)
from statuspage.state import ResultStore


class ReportDataTests(unittest.TestCase):
    def test_failures_and_successes_are_partitioned(self) -> None:
        registry = Registry(
            title="Prod",
            checks={"api": "https://api.local/", "web": "https://web.local/", "old": "http://old.local/"},
            expected_status={"old": 301},
        )
        store = ResultStore()
        store.record("web", Success(duration_ms=42))
        store.record("api", Failure(actual_status=UNREACHABLE, error="connection refused"))
        store.record("old", Failure(actual_status=200))

        report = build_report_data(
            store=store,
            registry=registry,
            timing=RunTiming(start_ms=1_000, end_ms=6_250),
            generated_at="2026-10-18T10:00:00Z",
        )

        self.assertEqual(report.title, "Prod")
        self.assertEqual(report.total, 3)
        self.assertEqual(report.failed_count, 2)
        self.assertFalse(report.all_clear)
        self.assertEqual([f.name for f in report.failures], ["api", "old"])
        self.assertEqual(report.failures[0].error, "connection refused")
        self.assertEqual(report.failures[1].actual_status, 200)
        self.assertEqual(report.failures[1].expected_status, 301)
        self.assertEqual(report.failures[1].error, "Status code does not match expected code")
        self.assertEqual([(s.name, s.duration_ms) for s in report.successes], [("web", 42)])
        self.assertEqual(report.duration_ms, 5_250)

    def test_build_does_not_mutate_store(self) -> None:
        store = ResultStore()
        store.record("a", Failure(actual_status=500))
        before = store.outcomes()

        build_report_data(
            store=store,
            registry=Registry(checks={"a": "http://a.local/"}),
            timing=RunTiming(start_ms=0, end_ms=1),
        )

        self.assertEqual(store.outcomes(), before)


class RenderTests(unittest.TestCase):
    def test_single_success_renders_badge_and_all_clear(self) -> None:
        store = ResultStore()
        store.record("a", Success(duration_ms=17))

        html = render(store, Registry(checks={"a": "http://a.local/"}), RunTiming(start_ms=0, end_ms=20))

        self.assertIn("All 1 services are operational", html)
        self.assertIn('<span class="badge">a 17ms</span>', html)
        self.assertNotIn("<table>", html)
        self.assertIn("in 20ms</footer>", html)

    def test_failure_table_shows_status_over_expected(self) -> None:
        store = ResultStore()
        store.record("a", Failure(actual_status=500))

        report = build_report_data(
            store=store,
            registry=Registry(checks={"a": "http://a.local/"}),
            timing=RunTiming(start_ms=0, end_ms=5_000),
        )
        html = render_report_html(report)

        self.assertIn("1 failure<", html)
        self.assertIn("<td>a</td><td>500/200</td>", html)
        self.assertIn("confirmed by a second check", html)

    def test_empty_registry_is_all_clear_with_zero(self) -> None:
        report = build_report_data(
            store=ResultStore(), registry=Registry(), timing=RunTiming(start_ms=0, end_ms=0)
        )

        self.assertEqual(report.failed_count, 0)
        self.assertIn("All 0 services are operational", render_report_html(report))
        self.assertIn("All 0 services are operational", render_report_markdown(report))

    def test_values_are_html_escaped(self) -> None:
        store = ResultStore()
        store.record("<svc>", Failure(actual_status=UNREACHABLE, error="<script>x</script>"))

        html = render(
            store,
            Registry(title="A & B", checks={"<svc>": "http://x.local/"}),
            RunTiming(start_ms=0, end_ms=1),
        )

        self.assertIn("<title>A &amp; B</title>", html)
        self.assertIn("&lt;script&gt;", html)
        self.assertNotIn("<script>", html)

    def test_markdown_lists_failures(self) -> None:
        store = ResultStore()
        store.record("a", Failure(actual_status=UNREACHABLE, error="timed out"))
        store.record("b", Success(duration_ms=8))

        text = render_report_markdown(
            build_report_data(
                store=store,
                registry=Registry(checks={"a": "http://a.local/", "b": "http://b.local/"}),
                timing=RunTiming(start_ms=0, end_ms=10),
            )
        )

        self.assertIn("**1 failure** of 2 services", text)
        self.assertIn("- a: unreachable/200 - timed out", text)
        self.assertIn("- b (8ms)", text)


if __name__ == "__main__":
    unittest.main()
