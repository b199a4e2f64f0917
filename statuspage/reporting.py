from __future__ import annotations

from html import escape

from statuspage.api_schemas import ReportData, ReportFailure, ReportSuccess
from statuspage.checks.results import Failure, Success
from statuspage.models import Registry, RunTiming, utcnow_iso
from statuspage.state import ResultStore

RETRY_NOTE = "Each failure below was confirmed by a second check after the retry delay."


def build_report_data(
    *,
    store: ResultStore,
    registry: Registry,
    timing: RunTiming,
    title: str | None = None,
    generated_at: str | None = None,
) -> ReportData:
    outcomes = store.outcomes()

    failures: list[ReportFailure] = []
    successes: list[ReportSuccess] = []
    for name in sorted(outcomes):
        outcome = outcomes[name]
        if isinstance(outcome, Failure):
            failures.append(
                ReportFailure(
                    name=name,
                    url=registry.url_for(name),
                    actual_status=outcome.actual_status,
                    expected_status=registry.expected_status_for(name),
                    error=outcome.describe_error(),
                )
            )
        elif isinstance(outcome, Success):
            successes.append(ReportSuccess(name=name, duration_ms=outcome.duration_ms))

    return ReportData(
        title=title or registry.title,
        total=len(registry.checks),
        failed_count=len(failures),
        failures=failures,
        successes=successes,
        generated_at=generated_at or utcnow_iso(),
        duration_ms=timing.duration_ms,
    )


def all_clear_text(report: ReportData) -> str:
    return f"All {report.total} services are operational"


def failure_banner_text(report: ReportData) -> str:
    noun = "failure" if report.failed_count == 1 else "failures"
    return f"{report.failed_count} {noun}"


def render_report_html(report: ReportData) -> str:
    title = escape(report.title)
    lines: list[str] = []
    lines.append("<!DOCTYPE html>")
    lines.append('<html lang="en">')
    lines.append("<head>")
    lines.append('<meta charset="utf-8">')
    lines.append(f"<title>{title}</title>")
    lines.append("<style>")
    lines.append("body{font-family:sans-serif;margin:2em}")
    lines.append(".banner{padding:1em;border-radius:4px;color:#fff}")
    lines.append(".banner.failed{background:#c0392b}.banner.ok{background:#27ae60}")
    lines.append("table{border-collapse:collapse;margin:1em 0}")
    lines.append("td,th{border:1px solid #ccc;padding:.3em .6em;text-align:left}")
    lines.append(".badge{display:inline-block;margin:.2em;padding:.3em .6em;"
                 "border-radius:4px;background:#27ae60;color:#fff}")
    lines.append("footer{margin-top:2em;color:#777;font-size:.9em}")
    lines.append("</style>")
    lines.append("</head>")
    lines.append("<body>")
    lines.append(f"<h1>{title}</h1>")

    if report.all_clear:
        lines.append(f'<div class="banner ok">{escape(all_clear_text(report))}</div>')
    else:
        lines.append(f'<div class="banner failed">{escape(failure_banner_text(report))}</div>')
        lines.append(f"<p>{escape(RETRY_NOTE)}</p>")
        lines.append("<table>")
        lines.append("<tr><th>Name</th><th>Status / Expected</th><th>Error</th></tr>")
        for failure in report.failures:
            lines.append(
                "<tr>"
                f"<td>{escape(failure.name)}</td>"
                f"<td>{escape(str(failure.actual_status))}/{failure.expected_status}</td>"
                f"<td>{escape(failure.error)}</td>"
                "</tr>"
            )
        lines.append("</table>")

    if report.successes:
        lines.append("<div>")
        for success in report.successes:
            lines.append(
                f'<span class="badge">{escape(success.name)} {success.duration_ms}ms</span>'
            )
        lines.append("</div>")

    lines.append(
        f"<footer>Rendered {escape(report.generated_at)} in {report.duration_ms}ms</footer>"
    )
    lines.append("</body>")
    lines.append("</html>")
    return "\n".join(lines)


def render_report_markdown(report: ReportData) -> str:
    lines: list[str] = []
    lines.append(f"# {report.title}")
    lines.append("")
    if report.all_clear:
        lines.append(f"**{all_clear_text(report)}**")
    else:
        lines.append(f"**{failure_banner_text(report)}** of {report.total} services")
        lines.append("")
        lines.append(RETRY_NOTE)
        lines.append("")
        for failure in report.failures:
            lines.append(
                f"- {failure.name}: {failure.actual_status}/{failure.expected_status} - {failure.error}"
            )
    if report.successes:
        lines.append("")
        lines.append("## Operational")
        for success in report.successes:
            lines.append(f"- {success.name} ({success.duration_ms}ms)")
    lines.append("")
    lines.append(f"_Rendered {report.generated_at} in {report.duration_ms}ms_")
    return "\n".join(lines)


def render(
    store: ResultStore,
    registry: Registry,
    timing: RunTiming,
    title: str | None = None,
) -> str:
    return render_report_html(
        build_report_data(store=store, registry=registry, timing=timing, title=title)
    )
