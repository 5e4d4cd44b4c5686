"""CLI entry point for labeltrack.

Commands:
  track   — fetch label and pull request changes and update the stored log
  report  — show open pull requests grouped by workflow status
  stats   — throughput of closed issues per day
"""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from labeltrack_cli.commands.report import report_cmd
from labeltrack_cli.commands.stats import stats_cmd
from labeltrack_cli.commands.track import track_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store.

    Store selection:
      store: git  → GitStore  (clones `storage` into `storage_path`, the default)
      store: file → JSONFileStore (`storage` is a local directory)
    """
    store_type = config.get("store", "git")

    if store_type == "file":
        from labeltrack_store.json_file import JSONFileStore

        return JSONFileStore(config.get("storage") or "storage")

    if store_type != "git":
        console.print(f"[yellow]Unknown store {store_type!r}, using git.[/yellow]")

    from labeltrack_store.git import GitStore

    return GitStore(remote=config.get("storage", ""), directory=config.get("storage_path") or "storage")


@click.group()
@click.version_option(package_name="labeltrack", prog_name="labeltrack")
@click.option(
    "--config",
    "config_path",
    default=".labeltrack.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="LABELTRACK_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Track GitHub label history and report on pull request workflow."""
    from labeltrack_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(track_cmd)
main.add_command(report_cmd)
main.add_command(stats_cmd)
