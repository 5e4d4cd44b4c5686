"""report command — open pull requests grouped by workflow status."""

from __future__ import annotations

import io
import time
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from labeltrack_core.report import ReportModel, RunContext, format_timer, generate_report

console = Console()


def render_report(model: ReportModel, out: Console) -> None:
    """Print the report sections and summary statistics to ``out``."""
    repo = model.config.get("repo", "")
    out.print(f"\n[bold]Pull request report for [cyan]{repo}[/cyan][/bold]")
    out.print(f"[dim]Generated {model.report_time:%Y-%m-%d %H:%M} UTC[/dim]")
    out.print(
        f"  Open: {model.stats.total}   "
        f"Available: [green]{model.stats.available}[/green]   "
        f"Overdue: [red]{model.stats.overdue}[/red]"
    )

    for section in model.sections:
        overdue = "Overdue" in section.name
        timer_label = "Overdue by" if overdue else "Time left"
        style = "red" if overdue else "cyan"

        table = Table(title=f"{section.name} ({len(section.pull_requests)})", title_style=f"bold {style}")
        table.add_column("PR", style="bold", width=7)
        table.add_column("Title", max_width=50)
        table.add_column("User")
        table.add_column("Assignee")
        table.add_column(timer_label, justify="right")

        for entry in section.pull_requests:
            pr_ref = f"#{entry.id}"
            if repo:
                pr_ref = f"[link=https://github.com/{repo}/pull/{entry.id}]#{entry.id}[/link]"
            table.add_row(
                pr_ref,
                entry.pr.title,
                entry.pr.user,
                entry.pr.assignee or "",
                format_timer(entry.timer),
            )
        out.print(table)


@click.command("report")
@click.option("--html", "html_path", default=None, help="Also write the report as an HTML file.")
@click.option("--now", "now_ms", type=int, default=None, help="Report time in epoch milliseconds (default: now).")
@click.pass_context
def report_cmd(ctx, html_path: str | None, now_ms: int | None):
    """Show open pull requests grouped by workflow status.

    Each pull request is shown with how long is left before it becomes
    overdue, or how long it has been overdue. Reads the local copy of the
    log; run `labeltrack track` first to refresh it.
    """
    config = ctx.obj["config"]
    store = ctx.obj["store"]

    log = store.load_log()
    now = now_ms if now_ms is not None else int(time.time() * 1000)
    model = generate_report(RunContext(config=config, log=log, now=now))

    if not model.sections:
        console.print("[yellow]No open pull requests in the log.[/yellow]")
        return

    if html_path:
        recorder = Console(record=True, width=120, file=io.StringIO())
        render_report(model, recorder)
        Path(html_path).write_text(recorder.export_html(), encoding="utf-8")
        console.print(f"Report written to {html_path}")
    else:
        render_report(model, console)
