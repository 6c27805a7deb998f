"""Tests for config.py — layering of defaults, host config and overrides."""

import logging

import pytest

from mermaid_configurable.config import (
    DEFAULT_CONFIG,
    PLUGIN_CONFIG_KEY,
    as_overrides,
    font_size_px,
    init_config,
    merge_config,
    resolve_config,
)

CUSTOM = {
    "theme": "dark",
    "securityLevel": "loose",
    "fontFamily": "Courier",
    "fontSize": "14px",
    "startOnLoad": True,
}


class DictStore:
    def __init__(self, values):
        self.values = values
        self.keys = []

    def get(self, key):
        self.keys.append(key)
        return self.values.get(key)


class FailingStore:
    def get(self, key):
        raise RuntimeError("store offline")


class RecordingLog:
    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(message)


class BrokenLog:
    def info(self, message):
        raise OSError("log sink closed")


class TestAsOverrides:
    def test_mappings_and_none_pass_through(self):
        assert as_overrides({"theme": "dark"}, "x") == {"theme": "dark"}
        assert as_overrides(None, "x") is None

    def test_other_values_are_absent(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mermaid_configurable.config"):
            assert as_overrides([("theme", "dark")], "render config") is None
        assert "ignoring render config: expected a mapping, got list" in caplog.text


class TestMergeConfig:
    def test_override_wins(self):
        merged = merge_config({"theme": "default", "securityLevel": "strict"}, {"theme": "dark"})
        assert merged == {"theme": "dark", "securityLevel": "strict"}

    def test_none_overrides_returns_equal_copy(self):
        base = {"theme": "default"}
        merged = merge_config(base, None)
        assert merged == base
        assert merged is not base

    def test_empty_overrides(self):
        assert merge_config({"theme": "forest"}, {}) == {"theme": "forest"}

    def test_base_not_mutated(self):
        base = {"theme": "default"}
        merge_config(base, {"theme": "dark", "fontSize": "12px"})
        assert base == {"theme": "default"}

    def test_none_value_counts_as_unset(self):
        merged = merge_config({"theme": "default"}, {"theme": None})
        assert merged["theme"] == "default"

    def test_new_keys_added(self):
        merged = merge_config(DEFAULT_CONFIG, {"startOnLoad": False})
        assert merged["startOnLoad"] is False
        assert set(DEFAULT_CONFIG) <= set(merged)


class TestResolveConfig:
    def test_absent_host_value(self):
        assert resolve_config(None) == dict(DEFAULT_CONFIG)

    def test_partial_host_value_keeps_defaults(self):
        resolved = resolve_config({"fontSize": "12px"})
        assert resolved["theme"] == "default"
        assert resolved["securityLevel"] == "strict"
        assert resolved["fontFamily"] == "Arial, sans-serif"
        assert resolved["fontSize"] == "12px"

    @pytest.mark.parametrize("bad", ["dark", 42, ["theme", "dark"]])
    def test_malformed_host_value_degrades_to_defaults(self, bad):
        assert resolve_config(bad) == dict(DEFAULT_CONFIG)


class TestInitConfig:
    def test_defaults_when_host_returns_none(self):
        effective = init_config(DictStore({}), RecordingLog())
        assert effective["theme"] == "default"
        assert effective["securityLevel"] == "strict"
        assert effective["fontFamily"] == "Arial, sans-serif"

    def test_queries_namespaced_key(self):
        store = DictStore({})
        init_config(store, RecordingLog())
        assert store.keys == [PLUGIN_CONFIG_KEY]
        assert PLUGIN_CONFIG_KEY == "pluginsConfig.mermaid-configurable"

    def test_custom_host_config(self):
        effective = init_config(DictStore({PLUGIN_CONFIG_KEY: CUSTOM}), RecordingLog())
        assert effective == CUSTOM

    def test_logs_exactly_once(self):
        log = RecordingLog()
        init_config(DictStore({PLUGIN_CONFIG_KEY: CUSTOM}), log)
        assert len(log.messages) == 1
        assert "dark" in log.messages[0]

    def test_failing_lookup_degrades_to_defaults(self):
        log = RecordingLog()
        effective = init_config(FailingStore(), log)
        assert effective == dict(DEFAULT_CONFIG)
        assert len(log.messages) == 1

    def test_no_store_and_no_log(self):
        assert init_config(None) == dict(DEFAULT_CONFIG)

    def test_failing_host_log_is_contained(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mermaid_configurable.config"):
            effective = init_config(DictStore({PLUGIN_CONFIG_KEY: CUSTOM}), BrokenLog())
        assert effective == CUSTOM
        assert "host log rejected" in caplog.text

    def test_defaults_are_read_only(self):
        with pytest.raises(TypeError):
            DEFAULT_CONFIG["theme"] = "dark"  # type: ignore[index]


class TestFontSize:
    @pytest.mark.parametrize(
        "value,expected",
        [("14px", 14.0), ("12", 12.0), (18, 18.0), (None, 16.0), ("large", 16.0), (True, 16.0), ("-3px", 16.0)],
    )
    def test_font_size_px(self, value, expected):
        assert font_size_px({"fontSize": value}) == expected
