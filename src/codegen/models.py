"""
Pydantic models for structured step descriptors.

A prompt is parsed into descriptors, which the renderer turns into spec source.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from healwright.config import normalize_browser_name


class StepAction(StrEnum):
    """Actions a natural-language step can describe."""

    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    ASSERT = "assert"
    WAIT = "wait"
    HOVER = "hover"
    SCROLL = "scroll"
    SELECT = "select"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    UNKNOWN = "unknown"


class StepDescriptor(BaseModel):
    """One parsed step."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    step_number: int = Field(ge=1)
    original_text: str
    action: StepAction = StepAction.UNKNOWN
    target: str | None = None
    value: str | None = None
    assertion: str | None = None
    wait_time_ms: int | None = Field(default=None, ge=0)

    @property
    def description(self) -> str:
        """Human readable step title."""
        target = self.target or ""
        match self.action:
            case StepAction.NAVIGATE:
                return f"Navigate to {target}"
            case StepAction.CLICK:
                return f"Click on {target}"
            case StepAction.FILL:
                return f"Fill {target} with {self.value or 'value'}"
            case StepAction.ASSERT:
                return f"Assert {self.assertion or 'condition'}"
            case StepAction.WAIT:
                if self.wait_time_ms:
                    return f"Wait for {self.wait_time_ms / 1000:g} seconds"
                return "Wait for condition"
            case StepAction.HOVER:
                return f"Hover over {target}"
            case StepAction.SCROLL:
                return f"Scroll {target}"
            case StepAction.SELECT:
                return f"Select {self.value or 'an option'} from {target}"
            case StepAction.UPLOAD:
                return f"Upload {self.value or 'a file'} to {target}"
            case _:
                return self.original_text


class ParsedPrompt(BaseModel):
    """Result of parsing a natural-language prompt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    original_prompt: str
    steps: tuple[StepDescriptor, ...] = ()
    has_ui: bool = False
    has_api: bool = False

    @property
    def total_steps(self) -> int:
        return len(self.steps)


class SpecOptions(BaseModel):
    """Options controlling spec rendering."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    test_name: str = "Generated Test"
    test_type: str = "UI Test"
    base_url: str = "http://localhost:3000"
    timeout_ms: int = Field(default=90000, ge=1000)
    browser: str = "chromium"
    headless: bool = True
    retries: int = Field(default=2, ge=0, le=10)
    include_test_steps: bool = True
    navigate_to_base_url: bool = True
    tags: tuple[str, ...] = ()

    @field_validator("test_name", "test_type")
    @classmethod
    def validate_single_line(cls, v: str) -> str:
        """Collapse whitespace runs, line breaks included, into single spaces."""
        v = " ".join(v.split())
        if not v:
            raise ValueError("value cannot be empty")
        return v

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, v: str) -> str:
        return normalize_browser_name(v)

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(t.strip() for t in v if t and t.strip())
