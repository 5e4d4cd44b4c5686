"""stats command — throughput of closed issues per day."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from labeltrack_core.stats import compute_stats

console = Console()


@click.command("stats")
@click.option("--output", "output_path", default=None, help="Write the raw statistics to a JSON file.")
@click.pass_context
def stats_cmd(ctx, output_path: str | None):
    """Show how many issues were closed per day after being on the board.

    An issue is on the board once it has carried one of the configured
    developmentLabels. Counts are split by sizeLabels when present.
    """
    config = ctx.obj["config"]
    store = ctx.obj["store"]

    data = compute_stats(config, store.load_issues(), store.load_log())
    if output_path:
        serializable = {category: {str(day): n for day, n in days.items()} for category, days in data.items()}
        Path(output_path).write_text(json.dumps(serializable, indent=2), encoding="utf-8")
        console.print(f"Statistics written to {output_path}")

    if not data:
        console.print("[yellow]No completed issues found.[/yellow]")
        return

    categories = sorted(data)
    days = sorted({day for counts in data.values() for day in counts})

    table = Table(title="Throughput", show_header=True)
    table.add_column("Day", style="bold")
    for category in categories:
        table.add_column(category, justify="right")
    for day in days:
        label = datetime.fromtimestamp(day / 1000, tz=timezone.utc).strftime("%Y-%m-%d")
        table.add_row(label, *(str(data[category].get(day, 0)) for category in categories))

    console.print(table)
    console.print(f"  Total: {sum(sum(counts.values()) for counts in data.values())}")
