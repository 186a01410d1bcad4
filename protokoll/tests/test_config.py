"""Tests for configuration loading and routing config construction."""

import json
import logging
import os
import pytest
from unittest.mock import patch


ENV_KEYS = (
    "PROTOKOLL_OUTPUT_DIR",
    "PROTOKOLL_OUTPUT_STRUCTURE",
    "PROTOKOLL_FILENAME_OPTIONS",
    "PROTOKOLL_CONFLICT_RESOLUTION",
    "PROTOKOLL_CONTEXT_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a stray .env in the working directory out of the tests
    with patch("protokoll.common.config.load_dotenv"):
        yield


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        from protokoll.common.config import load_config

        with patch("protokoll.common.config.CONFIG_PATH", tmp_path / "config.json"):
            cfg = load_config()

        assert cfg.output.output_directory == "~/notes"
        assert cfg.output.structure == "month"
        assert cfg.output.filename_options == ["date", "time", "subject"]
        assert cfg.routing.conflict_resolution == "primary"

    def test_load_from_file(self, tmp_path):
        from protokoll.common.config import load_config

        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({
            "output": {"output_directory": "/data/notes", "structure": "day", "filename_options": ["time"]},
            "routing": {"conflict_resolution": "ask", "context_path": "/data/context.json"},
        }))

        with patch("protokoll.common.config.CONFIG_PATH", config_file):
            cfg = load_config()

        assert cfg.output.output_directory == "/data/notes"
        assert cfg.output.structure == "day"
        assert cfg.output.filename_options == ["time"]
        assert cfg.routing.conflict_resolution == "ask"
        assert cfg.routing.context_path == "/data/context.json"

    def test_invalid_json_uses_defaults(self, tmp_path, caplog):
        from protokoll.common.config import load_config

        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        with patch("protokoll.common.config.CONFIG_PATH", config_file), \
             caplog.at_level(logging.WARNING, logger="protokoll.common.config"):
            cfg = load_config()

        assert cfg.output.output_directory == "~/notes"
        assert "Failed to load config file" in caplog.text

    def test_invalid_values_fall_back(self, tmp_path, caplog):
        from protokoll.common.config import load_config

        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({
            "output": {"structure": "weekly", "filename_options": ["date", "emoji"]},
            "routing": {"conflict_resolution": "coin_flip"},
        }))

        with patch("protokoll.common.config.CONFIG_PATH", config_file), \
             caplog.at_level(logging.WARNING, logger="protokoll.common.config"):
            cfg = load_config()

        assert cfg.output.structure == "month"
        assert cfg.output.filename_options == ["date"]
        assert cfg.routing.conflict_resolution == "primary"
        assert "weekly" in caplog.text

    def test_env_var_overrides(self, tmp_path, monkeypatch):
        from protokoll.common.config import load_config

        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"output": {"output_directory": "/from/file"}}))
        monkeypatch.setenv("PROTOKOLL_OUTPUT_DIR", "/from/env")
        monkeypatch.setenv("PROTOKOLL_OUTPUT_STRUCTURE", "year")
        monkeypatch.setenv("PROTOKOLL_FILENAME_OPTIONS", "subject, date")
        monkeypatch.setenv("PROTOKOLL_CONFLICT_RESOLUTION", "all")

        with patch("protokoll.common.config.CONFIG_PATH", config_file):
            cfg = load_config()

        assert cfg.output.output_directory == "/from/env"
        assert cfg.output.structure == "year"
        assert cfg.output.filename_options == ["subject", "date"]
        assert cfg.routing.conflict_resolution == "all"

    def test_save_and_reload(self, tmp_path):
        from protokoll.common.config import load_config, save_config, ProtokollConfig

        config_file = tmp_path / "dir" / "config.json"
        cfg = ProtokollConfig()
        cfg.output.output_directory = "/saved"
        cfg.routing.conflict_resolution = "ask"

        with patch("protokoll.common.config.CONFIG_DIR", tmp_path / "dir"), \
             patch("protokoll.common.config.CONFIG_PATH", config_file):
            save_config(cfg)
            reloaded = load_config()

        assert reloaded.output.output_directory == "/saved"
        assert reloaded.routing.conflict_resolution == "ask"
        if os.name == "posix":
            assert (config_file.stat().st_mode & 0o777) == 0o600


class TestBuildRoutingConfig:
    @pytest.fixture
    def store(self):
        from protokoll.common.context import ContextStore

        return ContextStore.from_dict({
            "projects": [
                {
                    "id": "launch",
                    "name": "Launch",
                    "classification": {"context_type": "work", "explicit_phrases": ["launch plan"]},
                    "routing": {
                        "destination": "~/work/launch",
                        "structure": "day",
                        "filename_options": ["time"],
                        "auto_tags": ["launch"],
                    },
                },
                {
                    "id": "journal",
                    "name": "Journal",
                    "classification": {"context_type": "personal"},
                },
                {
                    "id": "old",
                    "name": "Old",
                    "active": False,
                    "classification": {"context_type": "work"},
                },
            ],
        })

    def test_default_destination(self):
        from protokoll.common.config import ProtokollConfig, default_destination

        destination = default_destination(ProtokollConfig())

        assert destination.path == "~/notes"
        assert destination.structure.value == "month"
        assert [o.value for o in destination.filename_options] == ["date", "time", "subject"]
        assert destination.create_directories is True

    def test_projects_become_routes(self, store):
        from protokoll.common.config import ProtokollConfig, build_routing_config

        routing_config = build_routing_config(ProtokollConfig(), store)

        assert [r.project_id for r in routing_config.projects] == ["launch", "journal"]
        launch = routing_config.projects[0]
        assert launch.destination.path == "~/work/launch"
        assert launch.destination.structure.value == "day"
        assert launch.auto_tags == ["launch"]
        assert launch.classification.explicit_phrases == ["launch plan"]

    def test_project_without_destination_uses_default_path(self, store):
        from protokoll.common.config import ProtokollConfig, build_routing_config

        cfg = ProtokollConfig()
        cfg.output.output_directory = "/inbox"

        routing_config = build_routing_config(cfg, store)

        assert routing_config.projects[1].destination.path == "/inbox"
        assert routing_config.default.path == "/inbox"

    def test_conflict_resolution_carried(self):
        from protokoll.common.config import ProtokollConfig, build_routing_config

        cfg = ProtokollConfig()
        cfg.routing.conflict_resolution = "ask"

        routing_config = build_routing_config(cfg)

        assert routing_config.conflict_resolution.value == "ask"
        assert routing_config.projects == []
