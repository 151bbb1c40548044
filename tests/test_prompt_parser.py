"""Tests for the natural-language prompt parser."""

from __future__ import annotations

import pytest

from healwright.codegen.models import StepAction, StepDescriptor
from healwright.codegen.prompt_parser import PromptParseError, PromptParser


@pytest.fixture
def parser() -> PromptParser:
    return PromptParser()


class TestPromptParser:
    """Tests for PromptParser.parse."""

    def test_parse_login_prompt(self, parser: PromptParser, sample_prompt: str) -> None:
        """Test parsing a complete login prompt."""
        parsed = parser.parse(sample_prompt)

        assert parsed.total_steps == 6
        assert [s.step_number for s in parsed.steps] == [1, 2, 3, 4, 5, 6]
        assert [s.action for s in parsed.steps] == [
            StepAction.NAVIGATE,
            StepAction.FILL,
            StepAction.FILL,
            StepAction.CLICK,
            StepAction.ASSERT,
            StepAction.WAIT,
        ]
        assert parsed.has_ui

    def test_navigate_target_is_url(self, parser: PromptParser) -> None:
        """Test that a URL wins over element keywords."""
        step = parser.parse_step("Open https://shop.test/login page and submit", 1)

        assert step.action == StepAction.NAVIGATE
        assert step.target == "https://shop.test/login"
        assert step.description == "Navigate to https://shop.test/login"

    def test_fill_extracts_field_and_value(self, parser: PromptParser) -> None:
        """Test field name and quoted value extraction."""
        step = parser.parse_step('Fill username with "alice"', 2)

        assert step.action == StepAction.FILL
        assert step.target == "username"
        assert step.value == "alice"
        assert step.description == "Fill username with alice"

    def test_click_keeps_label_case(self, parser: PromptParser) -> None:
        """Test that specific button labels keep their visible case."""
        step = parser.parse_step("Click the Login button", 1)

        assert step.action == StepAction.CLICK
        assert step.target == "Login"

    def test_generic_keyword_uses_preceding_word(self, parser: PromptParser) -> None:
        """Test that 'the dashboard heading' targets 'dashboard'."""
        step = parser.parse_step("Verify the dashboard heading is visible", 5)

        assert step.action == StepAction.ASSERT
        assert step.target == "dashboard"
        assert step.assertion == "the dashboard heading is visible"

    def test_quoted_label_for_generic_element(self, parser: PromptParser) -> None:
        """Test that a quoted label names a generic element."""
        step = parser.parse_step('Click the "Sign up" link', 1)
        assert step.target == "Sign up"

    def test_explicit_test_id(self, parser: PromptParser) -> None:
        """Test that data-testid references become selectors."""
        step = parser.parse_step("Click the button data-testid: checkout-btn", 1)
        assert step.target == '[data-testid="checkout-btn"]'

    def test_wait_time(self, parser: PromptParser) -> None:
        """Test wait durations are converted to milliseconds."""
        step = parser.parse_step("Wait 3 seconds", 1)

        assert step.action == StepAction.WAIT
        assert step.wait_time_ms == 3000
        assert step.description == "Wait for 3 seconds"

    def test_assertion_phrase(self, parser: PromptParser) -> None:
        """Test that 'should be' phrases are captured."""
        step = parser.parse_step("The error banner should be hidden", 1)

        assert step.action == StepAction.ASSERT
        assert step.assertion == "be hidden"

    def test_unknown_action(self, parser: PromptParser) -> None:
        """Test that lines without a known verb are unknown steps."""
        step = parser.parse_step("Think about life", 1)

        assert step.action == StepAction.UNKNOWN
        assert step.description == "Think about life"

    def test_blank_lines_skipped(self, parser: PromptParser) -> None:
        """Test that blank lines do not produce steps."""
        parsed = parser.parse("\n\nClick Save\n   \nWait 1 second\n")

        assert parsed.total_steps == 2
        assert parsed.steps[1].step_number == 2

    def test_empty_prompt(self, parser: PromptParser) -> None:
        """Test that an empty prompt is rejected."""
        with pytest.raises(PromptParseError, match="no steps"):
            parser.parse("  \n \n")

    def test_detect_api_calls(self) -> None:
        """Test API keyword detection."""
        assert PromptParser.detect_api_calls("Send a POST request to /api/users")
        assert not PromptParser.detect_api_calls("Click Save")

    def test_descriptor_is_frozen(self, parser: PromptParser) -> None:
        """Test that parsed descriptors are immutable."""
        step = parser.parse_step("Click Save", 1)
        with pytest.raises(ValueError):
            step.target = "Cancel"

    def test_step_number_must_be_positive(self) -> None:
        """Test that step numbers start at 1."""
        with pytest.raises(ValueError):
            StepDescriptor(step_number=0, original_text="Click Save")
