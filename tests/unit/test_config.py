"""
Unit tests for build configuration layering.
"""

import pytest
from pydantic import ValidationError

from hd1_codegen.config import BuildConfig, normalize_keys


class TestBuildConfig:

    def test_defaults(self):
        config = BuildConfig()
        assert config.auto_routing is True
        assert config.handler_validation is True
        assert config.strict_validation is False
        assert config.path_conflicts == "override"
        assert config.missing_handlers_fatal is False

    def test_spec_block_keys_are_hyphenated(self):
        config = BuildConfig.resolve({"strict-validation": True, "auto-routing": False})
        assert config.strict_validation is True
        assert config.auto_routing is False
        assert config.missing_handlers_fatal is True

    def test_overrides_beat_spec_block(self):
        config = BuildConfig.resolve({"auto-routing": False}, {"auto_routing": True})
        assert config.auto_routing is True

    def test_unset_overrides_are_ignored(self):
        config = BuildConfig.resolve({"handler-validation": False}, {"handler_validation": None})
        assert config.handler_validation is False

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("HD1GEN_API_BASE", "http://example.test/api")
        monkeypatch.setenv("HD1GEN_AUTO_ROUTING", "false")
        config = BuildConfig.resolve()
        assert config.api_base == "http://example.test/api"
        assert config.auto_routing is False

    def test_spec_block_beats_environment(self, monkeypatch):
        monkeypatch.setenv("HD1GEN_AUTO_ROUTING", "false")
        assert BuildConfig.resolve({"auto-routing": True}).auto_routing is True

    def test_unknown_keys_ignored(self):
        config = BuildConfig.resolve({"output-language": "go"})
        assert not hasattr(config, "output_language")

    def test_invalid_conflict_policy(self):
        with pytest.raises(ValidationError):
            BuildConfig.resolve({"path-conflicts": "merge"})

    def test_normalize_keys(self):
        assert normalize_keys({"fail-on-missing-handlers": 1}) == {"fail_on_missing_handlers": 1}
