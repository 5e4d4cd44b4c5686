"""Tests for configuration loading."""

import json

import pytest

from labeltrack_core.config import EIGHT_DAYS, ConfigError, load_config, tracked_labels, validate_tracker_config


def test_defaults_applied_when_no_config_file(tmp_path):
    config = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    assert config["labels"] == []
    assert config["store"] == "git"
    assert config["storage_path"] == "storage"
    assert config["timeLimit"] == EIGHT_DAYS
    assert config["triageCompleteLabel"] is None
    assert config.get("api_key") is None


def test_config_file_overrides_defaults(tmp_path):
    cfg = tmp_path / ".labeltrack.yml"
    cfg.write_text("repo: owner/repo\nlabels:\n  - Ready\n  - Development\ntimeLimit: 1000\n")
    config = load_config(config_path=str(cfg))
    assert config["repo"] == "owner/repo"
    assert config["labels"] == ["Ready", "Development"]
    assert config["timeLimit"] == 1000


def test_json_config_is_accepted(tmp_path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"repo": "owner/repo", "triageCompleteLabel": "PR Triage Complete"}))
    config = load_config(config_path=str(cfg))
    assert config["triageCompleteLabel"] == "PR Triage Complete"


def test_cli_overrides_config_file(tmp_path):
    cfg = tmp_path / ".labeltrack.yml"
    cfg.write_text("repo: owner/a\n")
    config = load_config(config_path=str(cfg), cli_overrides={"repo": "owner/b"})
    assert config["repo"] == "owner/b"


def test_none_cli_overrides_ignored(tmp_path):
    cfg = tmp_path / ".labeltrack.yml"
    cfg.write_text("repo: owner/a\n")
    config = load_config(config_path=str(cfg), cli_overrides={"repo": None})
    assert config["repo"] == "owner/a"


def test_api_key_read_from_file(tmp_path):
    cfg = tmp_path / ".labeltrack.yml"
    cfg.write_text("api_key: file-token\n")
    assert load_config(config_path=str(cfg))["api_key"] == "file-token"


def test_environment_token_is_left_to_the_tracker(tmp_path, monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    assert load_config(config_path=str(tmp_path / "nonexistent.yml")).get("api_key") is None


def test_list_defaults_are_not_shared(tmp_path):
    config_a = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_b = load_config(config_path=str(tmp_path / "nonexistent.yml"))
    config_a["labels"].append("Ready")
    assert config_b["labels"] == []


class TestValidateTrackerConfig:
    def _valid(self):
        return {"repo": "o/r", "labels": ["Ready"], "storage": "git@example.com:o/s.git", "api_key": "k"}

    def test_valid_config_passes(self):
        validate_tracker_config(self._valid())

    @pytest.mark.parametrize("missing", ["repo", "labels", "storage", "api_key"])
    def test_missing_key_raises(self, missing):
        config = self._valid()
        config[missing] = None
        with pytest.raises(ConfigError, match="Must set repo, labels, storage, and api_key"):
            validate_tracker_config(config)


class TestTrackedLabels:
    def test_triage_label_appended(self):
        config = {"labels": ["Ready", "Development"], "triageCompleteLabel": "PR Triage Complete"}
        assert tracked_labels(config) == ["Ready", "Development", "PR Triage Complete"]

    def test_triage_label_not_duplicated(self):
        config = {"labels": ["PR Triage Complete", "Ready"], "triageCompleteLabel": "PR Triage Complete"}
        assert tracked_labels(config) == ["PR Triage Complete", "Ready"]

    def test_no_triage_label_configured(self):
        assert tracked_labels({"labels": ["Ready"], "triageCompleteLabel": None}) == ["Ready"]

    def test_config_list_is_not_modified(self):
        labels = ["Ready"]
        tracked_labels({"labels": labels, "triageCompleteLabel": "Triaged"})
        assert labels == ["Ready"]
