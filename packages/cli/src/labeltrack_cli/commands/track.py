"""track command — record label and pull request changes since the last run."""

from __future__ import annotations

import logging

import click
from github import GithubException
from rich.console import Console

from labeltrack_cli.auth import resolve_api_key
from labeltrack_core.config import ConfigError, tracked_labels, validate_tracker_config
from labeltrack_core.gh.issues import fetch_latest_issue_info, fetch_pr_comment_timestamps, get_repo
from labeltrack_core.tracker import update_issue_database, update_log
from labeltrack_store.base import StorageError

console = Console()
logger = logging.getLogger(__name__)


@click.command("track")
@click.option("--no-publish", is_flag=True, help="Save the log locally without pushing it.")
@click.pass_context
def track_cmd(ctx, no_publish: bool):
    """Fetch issues updated since the last run and update the label log.

    The storage is refreshed first, then every issue and comment updated
    since the log's timestamp is fetched. Label changes, pull request state
    and comment times are merged into the log, which is then saved and
    published.
    """
    config = ctx.obj["config"]
    store = ctx.obj["store"]

    config["api_key"] = resolve_api_key(config)
    try:
        validate_tracker_config(config)
    except ConfigError as e:
        raise click.UsageError(str(e))

    try:
        store.sync()
        log = store.load_log()
        db = store.load_issues()

        since = log.timestamp or config.get("initial_timestamp")
        console.print("Fetching updated labels")
        repo = get_repo(config["repo"], token=config["api_key"])
        issue_batch = fetch_latest_issue_info(repo, tracked_labels(config), since)
        comment_batch = fetch_pr_comment_timestamps(repo, since)
    except StorageError as e:
        raise click.ClickException(f"Could not read storage: {e}")
    except GithubException as e:
        raise click.ClickException(f"GitHub request failed ({e.status}): {e.data}")

    db_changed = update_issue_database(db, issue_batch.issues)
    if not update_log(log, issue_batch, comment_batch, config.get("triageCompleteLabel")):
        console.print("No issues changed - exiting")
        return

    logger.debug("Log timestamp is now %s", log.timestamp)
    try:
        store.save_log(log)
        if db_changed:
            store.save_issues(db)
        if not no_publish:
            store.publish(f"Update label log to {log.timestamp}")
    except StorageError as e:
        raise click.ClickException(f"Could not store the log: {e}")

    console.print(
        f"[green]Log updated[/green]: {len(log.issue_labels)} issues tracked, "
        f"{len(log.pull_requests)} open pull requests"
    )
