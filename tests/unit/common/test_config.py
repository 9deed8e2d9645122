"""Tests for common.config module."""

import pytest

from common.config import ConfigSingleton, find_config_path, load_yaml, section


class TestFindConfigPath:
    def test_explicit_name(self, tmp_path) -> None:
        (tmp_path / "local.yaml").write_text("enabled: true\n")
        assert find_config_path("local", tmp_path) == tmp_path / "local.yaml"

    def test_env_var_name(self, tmp_path, monkeypatch) -> None:
        (tmp_path / "staging.yaml").write_text("")
        monkeypatch.setenv("TEST_CONFIG", "staging")
        assert find_config_path(None, tmp_path, env_var="TEST_CONFIG") == tmp_path / "staging.yaml"

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            find_config_path("missing", tmp_path)


class TestLoadYaml:
    def test_empty_file_is_empty_dict(self, tmp_path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}


class TestSection:
    def test_null_section(self) -> None:
        assert section({"fetch": None}, "fetch") == {}

    def test_nested_mapping(self) -> None:
        assert section({"fetch": {"timeout_seconds": 5}}, "fetch") == {"timeout_seconds": 5}


class TestConfigSingleton:
    def test_loads_once(self) -> None:
        calls = []
        manager = ConfigSingleton(lambda: calls.append(1) or "value")
        assert manager.get() == "value"
        assert manager.get() == "value"
        assert len(calls) == 1

    def test_set_and_reset(self) -> None:
        manager = ConfigSingleton(lambda: "loaded")
        manager.set("override")
        assert manager.get() == "override"
        manager.reset()
        assert manager.get() == "loaded"

    def test_no_loader_raises(self) -> None:
        with pytest.raises(RuntimeError):
            ConfigSingleton().get()
