"""Tests for dictionary_sync.config_loader: hierarchical config loading."""

import textwrap

import pytest
import yaml

from dictionary_sync.config_loader import (
    _interpolate_recursive,
    discover_config_files,
    ensure_config,
    interpolate_env_vars,
    load_hierarchical_config,
    resolve_config_path,
)

# -------------------------------------------------------------------------
# Env var interpolation
# -------------------------------------------------------------------------


class TestInterpolateEnvVars:
    """Tests for ${VAR} and ${VAR:-default} substitution."""

    def test_replaces_set_var(self, monkeypatch):
        monkeypatch.setenv("DICT_HOME", "/srv/dict")
        assert interpolate_env_vars("${DICT_HOME}/data.json") == (
            "/srv/dict/data.json"
        )

    def test_unset_var_replaced_with_empty(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert interpolate_env_vars("${UNSET_VAR_XYZ}") == ""

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("UNSET_VAR_XYZ", raising=False)
        assert (
            interpolate_env_vars("${UNSET_VAR_XYZ:-hunspell}") == "hunspell"
        )

    def test_default_ignored_when_set(self, monkeypatch):
        monkeypatch.setenv("DICT_STORE", "aspell")
        assert interpolate_env_vars("${DICT_STORE:-hunspell}") == "aspell"

    def test_empty_env_var_uses_default(self, monkeypatch):
        monkeypatch.setenv("EMPTY_VAR", "")
        assert interpolate_env_vars("${EMPTY_VAR:-fallback}") == "fallback"

    def test_literal_dollar_brace_no_closing(self):
        assert interpolate_env_vars("${NO_CLOSE") == "${NO_CLOSE"

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("DICT_LANG", "en_GB")
        data = {
            "dictionary": {"store_path": "~/.hunspell_${DICT_LANG}"},
            "tags": ["${DICT_LANG}", 3],
            "sync": {"shutdown_timeout": 5},
        }
        assert _interpolate_recursive(data) == {
            "dictionary": {"store_path": "~/.hunspell_en_GB"},
            "tags": ["en_GB", 3],
            "sync": {"shutdown_timeout": 5},
        }


# -------------------------------------------------------------------------
# Discovery
# -------------------------------------------------------------------------


@pytest.fixture
def isolated(monkeypatch, tmp_path):
    """Run from an empty CWD with an empty HOME and no config env var."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("DICTIONARY_SYNC_CONFIG", raising=False)
    monkeypatch.chdir(work)
    return home, work


class TestDiscoverConfigFiles:
    def test_nothing_found(self, isolated):
        assert discover_config_files() == []

    def test_search_order(self, isolated, monkeypatch, tmp_path):
        home, work = isolated
        explicit = tmp_path / "explicit.yml"
        explicit.write_text("{}", encoding="utf-8")
        project = work / ".dictionary_sync" / "config.yml"
        project_yaml = work / ".dictionary_sync" / "config.yaml"
        global_cfg = home / ".config" / "dictionary_sync" / "config.yml"
        for path in (project, project_yaml, global_cfg):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("DICTIONARY_SYNC_CONFIG", str(explicit))

        assert discover_config_files() == [
            explicit.resolve(),
            project,
            project_yaml,
            global_cfg,
        ]

    def test_missing_env_path_skipped(self, isolated, monkeypatch, tmp_path):
        monkeypatch.setenv("DICTIONARY_SYNC_CONFIG", str(tmp_path / "no.yml"))
        assert discover_config_files() == []


class TestEnsureConfig:
    def test_creates_starter_in_project_dir(self, isolated):
        _, work = isolated
        path = ensure_config()
        assert path == work / ".dictionary_sync" / "config.yml"
        text = path.read_text(encoding="utf-8")
        assert "dictionary-sync configuration" in text
        # Everything is commented out, so the starter parses to nothing.
        assert yaml.safe_load(text) is None

    def test_explicit_target(self, isolated, tmp_path):
        target = tmp_path / "custom" / "dict.yml"
        assert ensure_config(target) == target
        assert target.exists()

    def test_existing_config_returned_untouched(self, isolated):
        _, work = isolated
        existing = work / ".dictionary_sync" / "config.yml"
        existing.parent.mkdir()
        existing.write_text("sync: {}\n", encoding="utf-8")

        assert ensure_config() == existing
        assert existing.read_text(encoding="utf-8") == "sync: {}\n"

    def test_resolve_config_path_default(self, isolated):
        _, work = isolated
        assert resolve_config_path() == work / ".dictionary_sync" / "config.yml"


# -------------------------------------------------------------------------
# Loading
# -------------------------------------------------------------------------


class TestLoadHierarchicalConfig:
    def test_no_files_returns_empty(self, isolated):
        assert load_hierarchical_config() == {}

    def test_higher_precedence_replaces_sections(self, tmp_path):
        high = tmp_path / "high.yml"
        low = tmp_path / "low.yml"
        high.write_text(
            textwrap.dedent(
                """\
                sync:
                  conflict_strategy: keep-all
                """
            ),
            encoding="utf-8",
        )
        low.write_text(
            textwrap.dedent(
                """\
                dictionary:
                  store: hunspell
                sync:
                  threshold_strategy: merge
                """
            ),
            encoding="utf-8",
        )
        merged = load_hierarchical_config([high, low])
        assert merged == {
            "dictionary": {"store": "hunspell"},
            "sync": {"conflict_strategy": "keep-all"},
        }

    def test_interpolates_after_merge(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHARED_DIR", "/mnt/sync")
        path = tmp_path / "config.yml"
        path.write_text(
            "dictionary:\n  settings_file: ${SHARED_DIR}/words.json\n",
            encoding="utf-8",
        )
        merged = load_hierarchical_config([path])
        assert merged["dictionary"]["settings_file"] == "/mnt/sync/words.json"

    def test_non_dict_root_skipped(self, tmp_path, caplog):
        path = tmp_path / "config.yml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert load_hierarchical_config([path]) == {}
        assert "non-dict root" in caplog.text

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("", encoding="utf-8")
        assert load_hierarchical_config([path]) == {}

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("sync: [unclosed\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            load_hierarchical_config([path])
