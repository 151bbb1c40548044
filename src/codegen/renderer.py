"""
Playwright spec renderer.

Turns parsed step descriptors into a TypeScript Playwright spec whose helpers
mirror the Python runtime: ordered candidate lists, first-visible resolution,
bounded retry with backoff and navigation fallbacks.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

import structlog
from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError

from healwright.codegen.models import ParsedPrompt, SpecOptions, StepAction, StepDescriptor
from healwright.config import BackoffMode, ResilienceConfig
from healwright.runtime.candidates import (
    Interaction,
    build_candidates,
    is_explicit_selector,
    selectors,
)

logger = structlog.get_logger(__name__)

TEMPLATE_NAME = "playwright_spec.ts.j2"

# Ambiguous visible texts and the role that disambiguates them.
AMBIGUOUS_TEXT_ROLES: dict[str, str] = {
    "Dashboard": "heading",
    "Home": "link",
    "Settings": "link",
    "Profile": "link",
    "Login": "button",
    "Submit": "button",
    "Save": "button",
    "Cancel": "button",
}

_AMBIGUOUS_TEXT_PATTERN = re.compile(
    r"getByText\((['\"])(" + "|".join(AMBIGUOUS_TEXT_ROLES) + r")\1\)"
)
_UNSAFE_PATH_CHARS = re.compile(r"[^a-zA-Z0-9_-]")
_SCROLL_UP = re.compile(r"\b(?:up|top)\b", re.I)


class RenderError(Exception):
    """Raised when a spec cannot be rendered."""

    pass


def js_literal(value: Any) -> str:
    """Encode a Python value as a JavaScript literal."""
    return json.dumps(value)


def parse_assertion(assertion: str | None, expected_text: str | None = None) -> str:
    """
    Map an assertion phrase onto a Playwright matcher call.

    Args:
        assertion: Phrase such as "the banner should be hidden"
        expected_text: Text used by containment assertions

    Returns:
        Matcher call without the leading dot, e.g. ``toBeHidden()``
    """
    phrase = (assertion or "").lower()
    if "visible" in phrase:
        return "toBeVisible()"
    if "hidden" in phrase:
        return "toBeHidden()"
    if "enabled" in phrase:
        return "toBeEnabled()"
    if "disabled" in phrase:
        return "toBeDisabled()"
    if "contain" in phrase and expected_text:
        return f"toContainText({js_literal(expected_text)})"
    if "exist" in phrase:
        return "toHaveCount(1)"
    return "toBeVisible()"


def fix_ambiguous_selectors(code: str) -> str:
    """Rewrite ambiguous ``getByText`` lookups into role-based locators."""
    if not code:
        return code

    fixes: list[str] = []

    def replace(match: re.Match[str]) -> str:
        text = match.group(2)
        fixes.append(text)
        return f"getByRole('{AMBIGUOUS_TEXT_ROLES[text]}', {{ name: '{text}' }})"

    fixed = _AMBIGUOUS_TEXT_PATTERN.sub(replace, code)
    if fixes:
        logger.info("Fixed ambiguous selectors", texts=sorted(set(fixes)))
    return fixed


def _sanitize(name: str) -> str:
    return _UNSAFE_PATH_CHARS.sub("-", name)


def spec_file_path(
    root: str | Path,
    project_id: str,
    model_id: str,
    model_name: str,
    prompt_id: str,
    test_name: str | None = None,
) -> Path:
    """
    Build the conventional location of a generated spec.

    Layout: ``<root>/tests/projects/<project>/models/<model>/<model name>/
    prompts/<prompt>/<test name>.spec.ts``. Names are sanitized and the test
    name is lower-cased.
    """
    safe_test_name = _sanitize(test_name or "Generated Test").lower()
    return (
        Path(root)
        / "tests"
        / "projects"
        / project_id
        / "models"
        / model_id
        / _sanitize(model_name)
        / "prompts"
        / prompt_id
        / f"{safe_test_name}.spec.ts"
    )


def write_spec(content: str, path: str | Path) -> Path:
    """Write spec source to disk, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")

    logger.info("Spec written", path=str(target), bytes=len(content.encode("utf-8")))
    return target


class SpecRenderer:
    """Renders parsed prompts into Playwright TypeScript specs."""

    def __init__(self) -> None:
        self._log = logger.bind(component="spec_renderer")
        self._env = Environment(
            loader=PackageLoader("healwright", "templates"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self._env.filters["js"] = js_literal

    def render(
        self,
        parsed: ParsedPrompt,
        options: SpecOptions | None = None,
        config: ResilienceConfig | None = None,
    ) -> str:
        """
        Render a complete spec file.

        Args:
            parsed: Parsed prompt
            options: Test naming and runner options
            config: Runtime settings baked into the emitted helpers

        Returns:
            TypeScript source

        Raises:
            RenderError: If the template fails to render
        """
        options = options or SpecOptions()
        config = config or ResilienceConfig()

        context = {
            "options": options,
            "tags": [t if t.startswith("@") else f"@{t}" for t in options.tags],
            "steps": [self._step_context(step, options) for step in parsed.steps],
            "candidate_timeout_ms": config.resolver.candidate_timeout_ms,
            "retry": config.retry,
            "exponential": config.retry.backoff == BackoffMode.EXPONENTIAL,
            "navigation": config.navigation,
            "navigation_exponential": config.navigation.retry.backoff == BackoffMode.EXPONENTIAL,
            "artifacts_dir": config.artifacts_dir.as_posix(),
        }

        try:
            template = self._env.get_template(TEMPLATE_NAME)
            content = template.render(**context)
        except TemplateError as e:
            raise RenderError(f"Failed to render spec '{options.test_name}': {e}") from e

        content = fix_ambiguous_selectors(content)
        self._log.info(
            "Spec rendered",
            test_name=options.test_name,
            steps=parsed.total_steps,
        )
        return content

    def _step_context(self, step: StepDescriptor, options: SpecOptions) -> dict[str, Any]:
        context: dict[str, Any] = {
            "number": step.step_number,
            "title": f"Step {step.step_number}: {step.description}",
            "action": step.action.value,
            "original_text": step.original_text,
            "target": step.target,
            "value": step.value,
        }

        match step.action:
            case StepAction.NAVIGATE:
                context["url"] = step.target or options.base_url
            case StepAction.CLICK | StepAction.HOVER | StepAction.DOWNLOAD:
                context["candidates"] = selectors(
                    build_candidates(step.target or "", Interaction.CLICK)
                )
            case StepAction.FILL | StepAction.SELECT | StepAction.UPLOAD:
                context["candidates"] = selectors(
                    build_candidates(step.target or "", Interaction.FILL)
                )
                context["value"] = step.value or ""
            case StepAction.ASSERT:
                context.update(self._assert_context(step))
            case StepAction.WAIT:
                context["wait_time_ms"] = step.wait_time_ms
            case StepAction.SCROLL:
                context["delta_y"] = -1000 if _SCROLL_UP.search(step.original_text) else 1000
            case _:
                pass

        return context

    def _assert_context(self, step: StepDescriptor) -> dict[str, Any]:
        target = step.target
        if not target:
            locator = "page.locator('body')"
        elif is_explicit_selector(target):
            locator = f"page.locator({js_literal(target)}).first()"
        else:
            locator = f"page.getByText({js_literal(target)}).first()"
        return {
            "locator": locator,
            "matcher": parse_assertion(step.assertion, step.value),
        }
