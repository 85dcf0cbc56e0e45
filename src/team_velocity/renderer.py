"""Rich-based terminal renderer with JSON/CSV support."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import (
    BugMetrics,
    FeatureMetrics,
    TeamSummary,
    TrendReport,
    VelocitySnapshot,
)

CSV_HEADER = ["Type", "Title", "Number", "State", "Created", "Closed", "Assignee"]

_BAND_STYLES = {
    "excellent": "bold green",
    "good": "bold yellow",
    "poor": "bold red",
}

_PRIORITY_STYLES = {
    "high": "red",
    "medium": "yellow",
    "low": "dim",
}


def _format_number(n: int) -> str:
    return f"{n:,}"


def _format_hours(h: float) -> str:
    if h <= 0:
        return "-"
    if h < 1:
        return f"{h * 60:.0f}m"
    if h < 24:
        return f"{h:.1f}h"
    return f"{h / 24:.1f}d"


def _format_days(d: float) -> str:
    return f"{d:.1f}d" if d > 0 else "-"


def _make_bar(percentage: float, width: int = 20) -> str:
    percentage = min(max(percentage, 0.0), 100.0)
    filled = round(percentage / 100 * width)
    return "█" * filled + "░" * (width - filled)


def _make_console(output_file: str | None) -> tuple[Console, io.StringIO | None]:
    if output_file:
        string_io = io.StringIO()
        return Console(file=string_io, force_terminal=False, width=120), string_io
    return Console(), None


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def _velocity_table(velocity: VelocitySnapshot) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("label", style="dim")
    table.add_column("value", style="bold")
    sp = velocity.story_points
    table.add_row(
        "Story Points",
        f"{_format_number(sp.completed)} / {_format_number(sp.total)} ({sp.completion_rate}%)",
    )
    tp = velocity.throughput
    table.add_row("Features / week", f"{tp.features_per_week}")
    table.add_row("Bugs / week", f"{tp.bugs_per_week}")
    table.add_row("PRs / week", f"{tp.prs_per_week}")
    ct = velocity.cycle_time
    table.add_row("Feature Cycle Time", _format_days(ct.avg_feature_cycle_time))
    table.add_row("Bug Cycle Time", _format_days(ct.avg_bug_cycle_time))
    table.add_row("PR Cycle Time", _format_days(ct.avg_pr_cycle_time))
    table.add_row("Lead Time", _format_days(velocity.lead_time.avg_lead_time))
    return table


def render_summary(
    summary: TeamSummary, top_n: int = 10, output_file: str | None = None
) -> None:
    """Render a TeamSummary to the terminal using rich."""
    console, string_io = _make_console(output_file)

    totals = summary.summary
    band_style = _BAND_STYLES.get(totals.health_band, "bold")
    console.print(Panel(
        Text(f"Team Velocity ({summary.period})\n{summary.timestamp[:10]}", justify="center"),
        style="bold cyan",
    ))
    console.print()

    if summary.failed_categories:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] Failed to compute "
            f"{', '.join(summary.failed_categories)}"
        )
        console.print()

    console.print(
        f"[bold]Health Score:[/bold] [{band_style}]{totals.health_score}[/{band_style}] "
        f"({totals.health_band})"
    )
    console.print()

    console.print("[bold]Summary[/bold]")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("label", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Total Work", _format_number(totals.total_work))
    table.add_row("Completed Work", _format_number(totals.completed_work))
    table.add_row("Completion Rate", f"{totals.completion_rate}%")
    table.add_row("Avg Cycle Time", _format_days(totals.avg_cycle_time))
    table.add_row("Team Size", _format_number(totals.team_size))
    console.print(table)
    console.print()

    console.print("[bold]Breakdown[/bold]")
    bd = summary.breakdown
    bd_table = Table(show_header=True, header_style="bold")
    bd_table.add_column("Category")
    bd_table.add_column("Done", justify="right")
    bd_table.add_column("Total", justify="right")
    bd_table.add_column("Rate", justify="right")
    bd_table.add_column("Bar")
    bd_table.add_column("Avg Time", justify="right")
    bd_table.add_row(
        "Features",
        _format_number(bd.features.completed),
        _format_number(bd.features.total),
        f"{bd.features.rate}%",
        _make_bar(bd.features.rate),
        "-",
    )
    bd_table.add_row(
        "Bugs",
        _format_number(bd.bugs.resolved),
        _format_number(bd.bugs.total),
        f"{bd.bugs.rate}%",
        _make_bar(bd.bugs.rate),
        _format_days(bd.bugs.avg_resolution_time),
    )
    bd_table.add_row(
        "Pull Requests",
        _format_number(bd.pull_requests.merged),
        _format_number(bd.pull_requests.total),
        f"{bd.pull_requests.rate}%",
        _make_bar(bd.pull_requests.rate),
        _format_hours(bd.pull_requests.avg_review_time),
    )
    console.print(bd_table)
    console.print(
        f"  [dim]Commits:[/dim] {_format_number(bd.code_quality.total_commits)}  "
        f"[dim]Avg files changed:[/dim] {bd.code_quality.avg_files_changed}"
    )
    console.print()

    console.print("[bold]Velocity[/bold]")
    console.print(_velocity_table(summary.velocity))
    console.print()

    if summary.team_contributions:
        console.print(f"[bold]Team Contributions (top {top_n})[/bold]")
        contrib_table = Table(show_header=True, header_style="bold")
        contrib_table.add_column("#", justify="right")
        contrib_table.add_column("Member")
        contrib_table.add_column("Issues", justify="right")
        contrib_table.add_column("PRs", justify="right")
        contrib_table.add_column("Commits", justify="right")
        contrib_table.add_column("Files", justify="right")
        ranked = sorted(
            summary.team_contributions.items(),
            key=lambda x: x[1].issues + x[1].prs + x[1].commits,
            reverse=True,
        )
        for i, (member, c) in enumerate(ranked[:top_n], 1):
            contrib_table.add_row(
                str(i),
                member,
                _format_number(c.issues),
                _format_number(c.prs),
                _format_number(c.commits),
                _format_number(c.files),
            )
        console.print(contrib_table)
        console.print()

    if summary.recommendations:
        console.print("[bold]Recommendations[/bold]")
        for rec in summary.recommendations:
            style = _PRIORITY_STYLES.get(rec.priority, "bold")
            console.print(f"  [{style}]{rec.priority.upper()}[/{style}] {rec.message}")
            console.print(f"    [dim]{rec.action}[/dim]")
        console.print()

    if string_io is not None and output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_velocity(velocity: VelocitySnapshot, output_file: str | None = None) -> None:
    console, string_io = _make_console(output_file)
    console.print(f"[bold]Velocity ({velocity.period})[/bold]")
    console.print(_velocity_table(velocity))
    if string_io is not None and output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_trends(report: TrendReport, output_file: str | None = None) -> None:
    console, string_io = _make_console(output_file)
    title = "Trends"
    if report.simulated:
        title += " [dim](simulated from current period)[/dim]"
    console.print(f"[bold]{title}[/bold]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Month", no_wrap=True)
    table.add_column("Features", justify="right")
    table.add_column("Bugs", justify="right")
    table.add_column("PRs", justify="right")
    for point in report.trends:
        table.add_row(
            point.month_name,
            f"{point.features.completed}/{point.features.total}",
            f"{point.bugs.resolved}/{point.bugs.total}",
            f"{point.prs.merged}/{point.prs.total}",
        )
    console.print(table)

    for insight in report.insights:
        console.print(f"  {insight}")

    if string_io is not None and output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(data: Any, output_file: str | None = None) -> None:
    """Render a result dataclass as JSON."""
    content = json.dumps(asdict(data), indent=2, ensure_ascii=False)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)


def render_csv(
    features: FeatureMetrics, bugs: BugMetrics, output_file: str | None = None
) -> None:
    """Render feature and bug records as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)
    for kind, items in (("Feature", features.features), ("Bug", bugs.bugs)):
        for item in items:
            writer.writerow([
                kind,
                item.title,
                item.number if item.number is not None else "",
                item.state,
                item.created_at or "",
                item.closed_at or "",
                item.assignee or "",
            ])
    content = output.getvalue()
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content, end="")
