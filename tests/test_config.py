"""
Tests for configuration loading and validation.
"""

import pytest

from typox.config import (
    DEFAULT_EXTENSIONS,
    ConfigValidator,
    EmptyResultPolicy,
    LoaderConfig,
    QueryConfig,
    RemoteConfig,
    TypoxConfig,
)
from typox.errors import ConfigValidationError


class TestPresets:
    def test_defaults(self):
        config = TypoxConfig()
        assert config.registry.default_store == "memory"
        assert config.query.empty_results is EmptyResultPolicy.ALLOW
        assert config.remote.timeout_seconds is None
        assert config.loader.extensions == DEFAULT_EXTENSIONS

    def test_cli_preset(self):
        """The command line treats an empty answer as an error."""
        assert TypoxConfig.for_cli().query.empty_results is EmptyResultPolicy.ERROR

    def test_plugin_preset(self):
        config = TypoxConfig.for_plugin()
        assert config.query.empty_results is EmptyResultPolicy.ALLOW
        assert config.query.coerce_booleans is True


class TestSerialization:
    def test_round_trip(self):
        config = TypoxConfig(
            query=QueryConfig(empty_results=EmptyResultPolicy.ERROR),
            remote=RemoteConfig(timeout_seconds=2.5, headers={"X-Token": "abc"}),
            loader=LoaderConfig(extensions=["ttl"]),
        )
        assert TypoxConfig.from_dict(config.to_dict()) == config

    def test_missing_sections_keep_base(self):
        config = TypoxConfig.from_dict({"remote": {"timeout_seconds": 10}}, base=TypoxConfig.for_cli())
        assert config.remote.timeout_seconds == 10
        assert config.query.empty_results is EmptyResultPolicy.ERROR

    def test_section_keys_merge_over_base(self):
        """A partial section keeps the preset values for the keys it omits."""
        config = TypoxConfig.from_dict({"query": {"empty_results": "allow"}}, base=TypoxConfig.for_plugin())
        assert config.query.empty_results is EmptyResultPolicy.ALLOW
        assert config.query.coerce_booleans is True

        config = TypoxConfig.from_dict({"remote": {"headers": {"X": "1"}}}, base=TypoxConfig(remote=RemoteConfig(timeout_seconds=4)))
        assert config.remote.timeout_seconds == 4
        assert config.remote.headers == {"X": "1"}

    def test_empty_section_keeps_base(self):
        config = TypoxConfig.from_dict({"query": None}, base=TypoxConfig.for_cli())
        assert config.query.empty_results is EmptyResultPolicy.ERROR

    def test_non_mapping_section(self):
        with pytest.raises(ConfigValidationError, match="section 'query'"):
            TypoxConfig.from_dict({"query": ["allow"]})

    def test_invalid_policy(self):
        with pytest.raises(ConfigValidationError, match="Invalid empty_results policy"):
            QueryConfig.from_dict({"empty_results": "sometimes"})

    def test_extensions_normalized(self):
        assert LoaderConfig.from_dict({"extensions": [".TTL", "nt"]}).extensions == ["ttl", "nt"]


class TestLoadFromFile:
    """YAML files and the $TYPOX_CONFIG override."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "typox.yaml"
        path.write_text(
            "registry:\n"
            "  default_store: main\n"
            "remote:\n"
            "  timeout_seconds: 30\n"
            "  headers:\n"
            "    Authorization: Bearer abc\n",
            encoding="utf-8",
        )
        config = TypoxConfig.load(path)
        assert config.registry.default_store == "main"
        assert config.remote.timeout_seconds == 30
        assert config.remote.headers == {"Authorization": "Bearer abc"}

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert TypoxConfig.load(path) == TypoxConfig()

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="mapping"):
            TypoxConfig.load(path)

    def test_invalid_values_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("remote:\n  timeout_seconds: -1\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="timeout_seconds"):
            TypoxConfig.load(path)

    def test_non_numeric_timeout_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("remote:\n  timeout_seconds: soon\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="must be a number"):
            TypoxConfig.load(path)

    def test_plugin_preset_survives_partial_file(self, tmp_path):
        path = tmp_path / "typox.yaml"
        path.write_text("query:\n  empty_results: error\n", encoding="utf-8")
        config = TypoxConfig.load(path, base=TypoxConfig.for_plugin())
        assert config.query.empty_results is EmptyResultPolicy.ERROR
        assert config.query.coerce_booleans is True

    def test_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "typox.yaml"
        path.write_text("query:\n  empty_results: error\n", encoding="utf-8")
        monkeypatch.setenv("TYPOX_CONFIG", str(path))
        assert TypoxConfig.from_env().query.empty_results is EmptyResultPolicy.ERROR

    def test_from_env_unset_returns_base(self):
        base = TypoxConfig.for_plugin()
        assert TypoxConfig.from_env(base) is base


class TestConfigValidator:
    def test_valid(self):
        assert ConfigValidator.validate(TypoxConfig()) == []

    def test_collects_all_errors(self):
        config = TypoxConfig()
        config.registry.default_store = ""
        config.remote.timeout_seconds = 0
        config.loader.extensions = []

        errors = ConfigValidator.validate(config)
        assert len(errors) == 3

        with pytest.raises(ConfigValidationError):
            ConfigValidator.validate_or_raise(config)
