"""Tests for operator prompts."""

from unittest.mock import MagicMock, patch

import pytest

from reclaim.prompts import (
    CONTINUE_UNELEVATED,
    LARGE_FILE_SCAN,
    TIER,
    ConsolePrompter,
    PresetPrompter,
    parse_bool,
)


class TestParseBool:
    @pytest.mark.parametrize("value", [True, "yes", "Y", "true", "1", "on"])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, "no", "N", "false", "0", "off"])
    def test_false(self, value):
        assert parse_bool(value) is False

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")


class TestPresetPrompter:
    def test_choose_from_answers(self):
        prompter = PresetPrompter({TIER: "DEEP"})
        assert prompter.choose(TIER, "Tier", ["light", "standard", "deep"], "light") == "deep"

    def test_choose_invalid_answer(self):
        prompter = PresetPrompter({TIER: "nuclear"})
        with pytest.raises(ValueError):
            prompter.choose(TIER, "Tier", ["light", "deep"], "light")

    def test_choose_default_without_fallback(self):
        prompter = PresetPrompter()
        assert prompter.choose(TIER, "Tier", ["light", "deep"], "light") == "light"

    def test_confirm_from_answers(self):
        prompter = PresetPrompter({LARGE_FILE_SCAN: "no"}, assume_yes=True)
        assert prompter.confirm(LARGE_FILE_SCAN, "Scan?", True) is False

    def test_assume_yes(self):
        prompter = PresetPrompter(assume_yes=True)
        assert prompter.confirm(CONTINUE_UNELEVATED, "Continue?", False) is True

    def test_confirm_default(self):
        assert PresetPrompter().confirm(CONTINUE_UNELEVATED, "Continue?", False) is False

    def test_defers_to_fallback(self):
        fallback = MagicMock()
        fallback.confirm.return_value = True
        fallback.choose.return_value = "standard"
        prompter = PresetPrompter(fallback=fallback)

        assert prompter.confirm(CONTINUE_UNELEVATED, "Continue?", False) is True
        assert prompter.choose(TIER, "Tier", ["light", "standard"], "light") == "standard"
        fallback.confirm.assert_called_once_with(CONTINUE_UNELEVATED, "Continue?", False)

    def test_records_asked_keys(self):
        prompter = PresetPrompter()
        prompter.confirm(LARGE_FILE_SCAN, "Scan?", False)
        prompter.choose(TIER, "Tier", ["light"], "light")
        assert prompter.asked == [LARGE_FILE_SCAN, TIER]


class TestConsolePrompter:
    @patch("reclaim.prompts.Prompt.ask", return_value="deep")
    def test_choose(self, mock_ask):
        result = ConsolePrompter().choose(TIER, "Tier", ["light", "deep"], "light")
        assert result == "deep"
        assert mock_ask.call_args.kwargs["choices"] == ["light", "deep"]
        assert mock_ask.call_args.kwargs["default"] == "light"

    @patch("reclaim.prompts.Confirm.ask", return_value=True)
    def test_confirm(self, mock_ask):
        assert ConsolePrompter().confirm(CONTINUE_UNELEVATED, "Continue?", False) is True
        assert mock_ask.call_args.kwargs["default"] is False
