from pathlib import Path
from typing import Optional

import yaml

EIGHT_DAYS = 8 * 24 * 60 * 60 * 1000

DEFAULT_CONFIG: dict = {
    "labels": [],
    "store": "git",  # "git" clones `storage` as a repository; "file" treats it as a local directory
    "storage_path": "storage",
    "timeLimit": EIGHT_DAYS,
    "triageCompleteLabel": None,  # None disables the triaged / in review states
    "oldPullRequests": None,  # PR numbers below this are reported in "Old" sections
    "initial_timestamp": None,
    "developmentLabels": [],
    "sizeLabels": [],
}

REQUIRED_KEYS = ("repo", "labels", "storage", "api_key")


class ConfigError(ValueError):
    """Raised when the configuration is missing required settings."""


def load_config(config_path: str = ".labeltrack.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. The config file (YAML; a JSON config.json parses as well)
      3. CLI argument overrides
    """
    config = {key: list(value) if isinstance(value, list) else value for key, value in DEFAULT_CONFIG.items()}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    return config


def validate_tracker_config(config: dict) -> None:
    """Raise ConfigError unless everything the tracker needs is set."""
    if any(not config.get(key) for key in REQUIRED_KEYS):
        raise ConfigError("Must set repo, labels, storage, and api_key in config file")


def tracked_labels(config: dict) -> list[str]:
    """Labels whose history is recorded: ``labels`` plus the triage complete label.

    Triage completion times are read from the label history, so the triage
    label is always tracked even when ``labels`` does not list it.
    """
    labels = list(config.get("labels") or [])
    triage_complete_label = config.get("triageCompleteLabel")
    if triage_complete_label and triage_complete_label not in labels:
        labels.append(triage_complete_label)
    return labels
