"""Tests for dictionary_sync.bootstrap: config resolution and wiring."""

from pathlib import Path

import pytest

from dictionary_sync.bootstrap import build_orchestrator, resolve_config
from dictionary_sync.config import Config
from dictionary_sync.errors import ConfigError
from dictionary_sync.sync.models import ThresholdChoice
from dictionary_sync.sync.resolver import (
    DiscardAllConflictSurface,
    FixedThresholdSurface,
    KeepAllConflictSurface,
    TerminalConflictSurface,
    TerminalThresholdSurface,
)
from dictionary_sync.sync.store import InMemoryWordStore, NullWordStore


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in (
        "DICTIONARY_SYNC_CONFIG",
        "DICTIONARY_SYNC_SETTINGS_FILE",
        "DICTIONARY_SYNC_STORE",
        "DICTIONARY_SYNC_CONFLICT_STRATEGY",
        "DICTIONARY_SYNC_THRESHOLD_STRATEGY",
    ):
        monkeypatch.delenv(name, raising=False)


class TestResolveConfig:
    def test_defaults_without_config_file(self):
        config, yaml_config, sources = resolve_config()
        assert config.store == "none"
        assert sources == ["environment variables"]

    def test_discovered_project_config(self, tmp_path):
        path = tmp_path / ".dictionary_sync" / "config.yml"
        path.parent.mkdir()
        path.write_text(
            "sync:\n  threshold_strategy: merge\n", encoding="utf-8"
        )
        config, yaml_config, sources = resolve_config()
        assert config.threshold_strategy == "merge"
        assert yaml_config.sync.threshold_strategy == "merge"
        assert sources[0] == f"config file: {path}"

    def test_cli_overrides_listed(self):
        config, _, sources = resolve_config({"store": "memory"})
        assert config.store == "memory"
        assert "CLI arguments" in sources

    def test_explicit_config_must_exist(self, tmp_path):
        with pytest.raises(ConfigError, match="Config file not found"):
            resolve_config({"config": str(tmp_path / "missing.yml")})

    def test_invalid_yaml_value(self, tmp_path):
        path = tmp_path / "c.yml"
        path.write_text("dictionary:\n  store: word\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config file"):
            resolve_config({"config": str(path)})

    def test_unparseable_yaml(self, tmp_path):
        path = tmp_path / "c.yml"
        path.write_text("sync: [oops\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Cannot read config file"):
            resolve_config({"config": str(path)})


class TestBuildOrchestrator:
    def _config(self, **kwargs):
        return Config(settings_file=Path("/tmp/d.json"), **kwargs)

    def test_interactive_surfaces(self):
        orchestrator = build_orchestrator(self._config())
        assert isinstance(orchestrator.word_store, NullWordStore)
        assert isinstance(
            orchestrator.conflict_surface, TerminalConflictSurface
        )
        assert isinstance(
            orchestrator.threshold_surface, TerminalThresholdSurface
        )

    def test_unattended_replaces_interactive(self):
        orchestrator = build_orchestrator(self._config(), unattended=True)
        assert isinstance(orchestrator.conflict_surface, KeepAllConflictSurface)
        assert isinstance(orchestrator.threshold_surface, FixedThresholdSurface)
        assert orchestrator.threshold_surface.choice == ThresholdChoice.MERGE

    def test_unattended_keeps_explicit_strategies(self):
        orchestrator = build_orchestrator(
            self._config(
                conflict_strategy="discard-all", threshold_strategy="remove"
            ),
            unattended=True,
        )
        assert isinstance(
            orchestrator.conflict_surface, DiscardAllConflictSurface
        )
        assert orchestrator.threshold_surface.choice == ThresholdChoice.CONFIRM

    def test_wires_config_values(self):
        orchestrator = build_orchestrator(
            self._config(
                store="memory", external_changes="replace", shutdown_timeout=9
            )
        )
        assert isinstance(orchestrator.word_store, InMemoryWordStore)
        assert orchestrator.settings_store.path == Path("/tmp/d.json")
        assert orchestrator.external_changes == "replace"
        assert orchestrator.shutdown_timeout == 9
