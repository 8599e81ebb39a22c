"""
Tests for environment driven configuration.
"""

import importlib
import mmap

import pytest

import src.core.config as config


@pytest.fixture
def reload_config(monkeypatch):
    """Reload the config module under patched environment, restoring it afterwards."""
    def _reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config)


def test_defaults():
    assert config.MAX_MAP_BYTES == 2**31 - 1
    assert config.MAX_DOUBLE_BUFFER == (2**31 - 1) // 8
    assert config.REMAP_THRESHOLD_BYTES == config.ONE_GB
    assert config.get_default_byte_order() == "little"
    assert config.validate_codec_config() == []


def test_environment_overrides(reload_config):
    cfg = reload_config(
        W2V_MAX_DOUBLE_BUFFER="1024",
        W2V_DEFAULT_BYTE_ORDER="big",
        W2V_PROGRESS_INTERVAL_SEC="0.5",
    )

    assert cfg.get_max_double_buffer() == 1024
    assert cfg.get_default_byte_order() == "big"
    assert cfg.get_progress_interval() == 0.5


def test_validation_reports_issues(reload_config):
    cfg = reload_config(
        W2V_DEFAULT_BYTE_ORDER="middle",
        W2V_SEARCH_BACKEND="annoy",
        W2V_REMAP_THRESHOLD_BYTES=str(mmap.ALLOCATIONGRANULARITY + 1),
    )

    issues = cfg.validate_codec_config()

    assert any("W2V_DEFAULT_BYTE_ORDER" in issue for issue in issues)
    assert any("W2V_SEARCH_BACKEND" in issue for issue in issues)
    assert any("multiple of" in issue for issue in issues)


def test_searcher_class_lookup():
    from src.vector.index import SimpleInMemorySearcher

    assert config.get_searcher_class("memory") is SimpleInMemorySearcher
    with pytest.raises(ValueError):
        config.get_searcher_class("annoy")


def test_searcher_class_defaults_to_configured_backend(monkeypatch):
    from src.vector.index import SimpleInMemorySearcher

    assert config.get_searcher_class() is SimpleInMemorySearcher

    monkeypatch.setattr(config, "SEARCH_BACKEND", "annoy")
    with pytest.raises(ValueError):
        config.get_searcher_class()
