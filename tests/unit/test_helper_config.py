"""Tests for HelperConfig environment parsing."""

import pytest


class TestHelperConfig:
    def test_string_is_trimmed(self, helper_config, monkeypatch):
        monkeypatch.setenv("SOME_NAME", "  value  ")
        assert helper_config.get_string_val("some_name") == "value"

    def test_empty_counts_as_unset(self, helper_config, monkeypatch):
        monkeypatch.setenv("SOME_NAME", "   ")
        assert helper_config.get_string_val("SOME_NAME", default="fallback") == "fallback"

    def test_required_missing_raises(self, helper_config, monkeypatch):
        monkeypatch.delenv("NOT_THERE", raising=False)
        with pytest.raises(ValueError, match="NOT_THERE"):
            helper_config.get_string_val("NOT_THERE")

    @pytest.mark.parametrize("raw, expected", [("10", 10), ("2.5", 2.5)])
    def test_number(self, helper_config, monkeypatch, raw, expected):
        monkeypatch.setenv("CHAT_HISTORY_WINDOW", raw)
        assert helper_config.get_number_val("CHAT_HISTORY_WINDOW") == expected

    def test_invalid_number(self, helper_config, monkeypatch):
        monkeypatch.setenv("CHAT_HISTORY_WINDOW", "ten")
        with pytest.raises(ValueError, match="not a valid number"):
            helper_config.get_number_val("CHAT_HISTORY_WINDOW")

    @pytest.mark.parametrize("raw, expected", [("true", True), ("YES", True), ("1", True), ("off", False)])
    def test_bool(self, helper_config, monkeypatch, raw, expected):
        monkeypatch.setenv("FLAG", raw)
        assert helper_config.get_bool_val("FLAG") is expected

    def test_list(self, helper_config, monkeypatch):
        monkeypatch.setenv("SERVICES", "[openai, gemini,,]")
        assert helper_config.get_list_val("SERVICES") == ["openai", "gemini"]

    def test_list_without_brackets(self, helper_config, monkeypatch):
        monkeypatch.setenv("SERVICES", "openai,gemini")
        with pytest.raises(ValueError):
            helper_config.get_list_val("SERVICES")

    def test_relative_path_resolves_against_root_dir(self, helper_config, tmp_path):
        assert helper_config.get_path_val("UNSET_PATH", default="data/x.json") == str(tmp_path / "data" / "x.json")
