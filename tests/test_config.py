"""Tests for library configuration."""

import pytest
from klaw_variant import Ok, Panic, Some, VariantConfig, get_config, init
from klaw_variant.config import reset_config


class TestVariantConfig:
    """Tests for defaults and environment detection."""

    def test_defaults(self, monkeypatch):
        for name in ('KLAW_VARIANT_LOG_LEVEL', 'KLAW_VARIANT_JSON_LOGS', 'KLAW_VARIANT_STRICT_MAP'):
            monkeypatch.delenv(name, raising=False)
        reset_config()
        config = get_config()
        assert config == VariantConfig()
        assert config.log_level is None
        assert config.json_logs is True
        assert config.strict_map is True

    def test_environment(self, monkeypatch):
        monkeypatch.setenv('KLAW_VARIANT_STRICT_MAP', 'off')
        monkeypatch.setenv('KLAW_VARIANT_JSON_LOGS', 'no')
        reset_config()
        config = get_config()
        assert config.strict_map is False
        assert config.json_logs is False

    @pytest.mark.parametrize('raw', ['1', 'true', 'YES', ' on '])
    def test_truthy_flags(self, monkeypatch, raw):
        monkeypatch.setenv('KLAW_VARIANT_STRICT_MAP', raw)
        reset_config()
        assert get_config().strict_map is True

    def test_unknown_flag_keeps_default(self, monkeypatch):
        monkeypatch.setenv('KLAW_VARIANT_STRICT_MAP', 'maybe')
        reset_config()
        assert get_config().strict_map is True

    def test_frozen(self):
        with pytest.raises(AttributeError):
            get_config().strict_map = False  # type: ignore[misc]


class TestInit:
    """Tests for init()."""

    def test_overrides(self):
        config = init(strict_map=False)
        assert config.strict_map is False
        assert get_config() is config

    def test_explicit_config(self):
        base = VariantConfig(strict_map=False)
        assert init(base) is base
        assert init(base, strict_map=True).strict_map is True

    def test_strict_map_switch(self):
        with pytest.raises(Panic):
            Some(1).map(lambda n: Some(n))
        init(strict_map=False)
        assert Some(1).map(lambda n: Some(n)) == Some(1)
        assert Ok(1).map(lambda n: Ok(n + 1)) == Ok(2)

    def test_reset(self):
        init(strict_map=False)
        reset_config()
        assert get_config().strict_map is True
