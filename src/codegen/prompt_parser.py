"""
Natural-language prompt parser.

Turns one-instruction-per-line prompts into StepDescriptors using deterministic
keyword heuristics (no LLM).
"""

from __future__ import annotations

import re

import structlog

from healwright.codegen.models import ParsedPrompt, StepAction, StepDescriptor

logger = structlog.get_logger(__name__)


class PromptParseError(Exception):
    """Raised when a prompt cannot be parsed."""

    pass


# Order matters: the first matching action wins.
ACTION_PATTERNS: tuple[tuple[StepAction, re.Pattern[str]], ...] = (
    (StepAction.NAVIGATE, re.compile(r"navigate to|go to|visit|open", re.I)),
    (StepAction.CLICK, re.compile(r"click|press|tap|select", re.I)),
    (StepAction.FILL, re.compile(r"fill|enter|type|input|set", re.I)),
    (StepAction.ASSERT, re.compile(r"assert|verify|check|validate|expect|should", re.I)),
    (StepAction.WAIT, re.compile(r"wait|pause|sleep", re.I)),
    (StepAction.HOVER, re.compile(r"hover|mouse over", re.I)),
    (StepAction.SCROLL, re.compile(r"scroll|move down|move up", re.I)),
    (StepAction.SELECT, re.compile(r"select|choose|pick", re.I)),
    (StepAction.UPLOAD, re.compile(r"upload|attach|browse", re.I)),
    (StepAction.DOWNLOAD, re.compile(r"download|save", re.I)),
)


def _words(*words: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(words) + r")\b", re.I)


UI_ELEMENT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("button", _words("button", "btn", "submit", "login", "logout", "save", "cancel", "ok", "yes", "no")),
    ("input", _words("input", "field", "textbox", "text field", "username", "password", "email", "search")),
    ("link", _words("link", "anchor", "href")),
    ("dropdown", _words("dropdown", "select", "combo", "list")),
    ("checkbox", _words("checkbox", "check", "tick")),
    ("radio", _words("radio", "option")),
    ("image", _words("image", "img", "picture", "photo")),
    ("text", _words("text", "label", "heading", "title", "paragraph")),
    ("table", _words("table", "grid", "list", "rows", "columns")),
    ("modal", _words("modal", "dialog", "popup", "overlay")),
)

# Keywords naming a kind of element rather than a specific one.
GENERIC_ELEMENT_WORDS = frozenset({
    "button", "btn", "input", "field", "textbox", "text field", "link", "anchor",
    "href", "dropdown", "select", "combo", "list", "checkbox", "check", "tick",
    "radio", "option", "image", "img", "picture", "photo", "text", "label",
    "heading", "title", "paragraph", "table", "grid", "rows", "columns",
    "modal", "dialog", "popup", "overlay", "ok", "yes", "no",
})

ELEMENT_SELECTOR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bid[:\s]+([a-zA-Z0-9_-]+)", re.I),
    re.compile(r"\bclass[:\s]+([a-zA-Z0-9_-]+)", re.I),
    re.compile(r"data-testid[:\s]+([a-zA-Z0-9_-]+)", re.I),
    re.compile(r"aria-label[:\s]+[\"']([^\"']+)[\"']", re.I),
    re.compile(r"text[:\s]+[\"']([^\"']+)[\"']", re.I),
)

VALUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"with\s+[\"']([^\"']+)[\"']", re.I),
    re.compile(r"as\s+[\"']([^\"']+)[\"']", re.I),
    re.compile(r"value[:\s]+[\"']([^\"']+)[\"']", re.I),
    re.compile(r"enter\s+[\"']([^\"']+)[\"']", re.I),
)

ASSERTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"should\s+((?:be|contain|have|exist|visible|enabled|disabled)\b.*)", re.I),
    re.compile(r"verify\s+(.+)", re.I),
    re.compile(r"check\s+(.+)", re.I),
    re.compile(r"validate\s+(.+)", re.I),
    re.compile(r"expect\s+(.+)", re.I),
)

API_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"GET|POST|PUT|DELETE|PATCH", re.I),
    re.compile(r"api|endpoint|request|response", re.I),
    re.compile(r"http|https", re.I),
    re.compile(r"json|xml|data", re.I),
)

URL_PATTERN = re.compile(r"(https?://\S+)", re.I)
QUOTED_PATTERN = re.compile(r"[\"']([^\"']+)[\"']")
WAIT_TIME_PATTERN = re.compile(r"wait\s+(\d+)\s*(?:seconds?|secs?|s)?", re.I)
PRECEDING_WORD_PATTERN = re.compile(r"([A-Za-z0-9_-]+)\s+$")
FILLER_WORDS = frozenset({
    "the", "a", "an", "on", "to", "in", "into", "of", "and", "at", "from", "is",
    "click", "press", "tap", "fill", "enter", "type", "verify", "check", "assert",
    "expect", "validate", "hover", "over", "select", "choose", "pick", "scroll", "wait",
    "for", "upload", "download",
})

_GENERIC_EXCLUDED = (StepAction.NAVIGATE, StepAction.CLICK, StepAction.FILL, StepAction.ASSERT)


class PromptParser:
    """Parses natural-language prompts into step descriptors."""

    def __init__(self) -> None:
        self._log = logger.bind(component="prompt_parser")

    def parse(self, prompt_text: str) -> ParsedPrompt:
        """
        Parse a prompt with one instruction per non-blank line.

        Args:
            prompt_text: Natural-language prompt

        Returns:
            ParsedPrompt with one StepDescriptor per line

        Raises:
            PromptParseError: If the prompt contains no instructions
        """
        lines = [line.strip() for line in (prompt_text or "").splitlines() if line.strip()]
        if not lines:
            raise PromptParseError("Prompt contains no steps")

        steps = tuple(self.parse_step(line, i) for i, line in enumerate(lines, start=1))
        parsed = ParsedPrompt(
            original_prompt=prompt_text,
            steps=steps,
            has_ui=self.detect_ui_elements(prompt_text),
            has_api=self.detect_api_calls(prompt_text),
        )

        self._log.info(
            "Prompt parsed",
            steps=parsed.total_steps,
            unknown=sum(1 for s in steps if s.action == StepAction.UNKNOWN),
        )
        return parsed

    def parse_step(self, line: str, step_number: int) -> StepDescriptor:
        """Parse a single instruction line."""
        return StepDescriptor(
            step_number=step_number,
            original_text=line,
            action=self.extract_action(line),
            target=self.extract_target(line),
            value=self.extract_value(line),
            assertion=self.extract_assertion(line),
            wait_time_ms=self.extract_wait_time(line),
        )

    def extract_action(self, line: str) -> StepAction:
        for action, pattern in ACTION_PATTERNS:
            if pattern.search(line):
                return action
        return StepAction.UNKNOWN

    def extract_target(self, line: str) -> str | None:
        """Extract the URL, element reference, or quoted selector a line refers to."""
        url_match = URL_PATTERN.search(line)
        if url_match:
            return url_match.group(1)

        value = self.extract_value(line)
        for element_type, pattern in UI_ELEMENT_PATTERNS:
            match = pattern.search(line)
            if match:
                return self._extract_element_selector(line, element_type, match, value)

        quoted_match = QUOTED_PATTERN.search(line)
        if quoted_match:
            return quoted_match.group(1)

        return self._extract_generic_target(line) or None

    def _extract_element_selector(
        self, line: str, element_type: str, match: re.Match[str], value: str | None
    ) -> str:
        for pattern in ELEMENT_SELECTOR_PATTERNS:
            selector_match = pattern.search(line)
            if selector_match:
                return f'[data-testid="{selector_match.group(1)}"]'

        keyword = match.group(0)
        if keyword.lower() not in GENERIC_ELEMENT_WORDS:
            return keyword

        # "the dashboard heading" names the element by the word before the keyword
        preceding = PRECEDING_WORD_PATTERN.search(line[: match.start()])
        if preceding and preceding.group(1).lower() not in FILLER_WORDS:
            return preceding.group(1)

        quoted_match = QUOTED_PATTERN.search(line)
        if quoted_match and quoted_match.group(1) != value:
            return quoted_match.group(1)
        return element_type

    def _extract_generic_target(self, line: str) -> str:
        excluded = [p for a, p in ACTION_PATTERNS if a in _GENERIC_EXCLUDED]
        words = [
            word
            for word in line.split()
            if len(word) > 2 and not any(p.search(word) for p in excluded)
        ]
        return " ".join(words)

    def extract_value(self, line: str) -> str | None:
        for pattern in VALUE_PATTERNS:
            match = pattern.search(line)
            if match:
                return match.group(1)
        return None

    def extract_assertion(self, line: str) -> str | None:
        if not dict(ACTION_PATTERNS)[StepAction.ASSERT].search(line):
            return None

        for pattern in ASSERTION_PATTERNS:
            match = pattern.search(line)
            if match:
                return match.group(1) if match.lastindex else match.group(0)
        return None

    def extract_wait_time(self, line: str) -> int | None:
        match = WAIT_TIME_PATTERN.search(line)
        if match:
            return int(match.group(1)) * 1000
        return None

    @staticmethod
    def detect_ui_elements(prompt_text: str) -> bool:
        return any(pattern.search(prompt_text) for _, pattern in UI_ELEMENT_PATTERNS)

    @staticmethod
    def detect_api_calls(prompt_text: str) -> bool:
        return any(pattern.search(prompt_text) for pattern in API_PATTERNS)
