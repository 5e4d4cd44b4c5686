"""API key lookup for the tracker.

The tracker needs a GitHub token only to fetch issues; ``report`` and
``stats`` read the stored log and never call this. Sources, first hit wins:

  1. ``api_key`` in the config file
  2. the GITHUB_TOKEN environment variable
  3. ``gh auth token`` from a logged-in GitHub CLI
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

GH_TIMEOUT_SECONDS = 5


def resolve_api_key(config: dict) -> str | None:
    """Return the token the tracker should use, or None when there is none."""
    if config.get("api_key"):
        return config["api_key"]

    env_token = os.environ.get("GITHUB_TOKEN")
    if env_token:
        logger.debug("Using GITHUB_TOKEN from the environment.")
        return env_token

    return _gh_cli_token()


def _gh_cli_token() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=GH_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        return None
    except subprocess.TimeoutExpired:
        logger.warning("`gh auth token` did not answer within %ss.", GH_TIMEOUT_SECONDS)
        return None

    if result.returncode != 0:
        logger.debug("gh CLI has no session: %s", result.stderr.strip())
        return None
    return result.stdout.strip() or None
