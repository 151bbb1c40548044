"""
Resilient page interactions.

Combines candidate resolution, retry with backoff, and navigation fallbacks into
the operations a test step performs:
- Resolve-and-fill / resolve-and-click with retries
- Named step blocks that log and re-raise failures
- Best-effort failure artifacts (screenshot, dialog dismissal)
- A ResilientPage facade carrying one configuration for a whole test
"""

from __future__ import annotations

import asyncio
import contextlib
import re
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog
from playwright.async_api import Error as PlaywrightError

from healwright.config import ResilienceConfig
from healwright.runtime.candidates import Interaction, build_candidates
from healwright.runtime.errors import ActionFailedError
from healwright.runtime.navigation import NavigationResult, navigate
from healwright.runtime.resolver import ResolvedElement, resolve
from healwright.runtime.retry import SleepFn, with_retry

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = structlog.get_logger(__name__)

_DISMISS_DIALOGS_JS = """() => {
  document.querySelectorAll('[role="dialog"], .modal, .popup').forEach((el) => {
    if (el.style) el.style.display = 'none';
  });
}"""


class StepStatus(StrEnum):
    """Status of a reported step."""

    PASSED = "passed"
    FAILED = "failed"


@dataclass
class StepRecord:
    """Record of one executed step block."""

    number: int
    title: str
    status: StepStatus
    duration_ms: int = 0
    error: str | None = None
    finished_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class StepRecorder(Protocol):
    """Sink for step and attachment reporting, e.g. an Allure adapter."""

    def start_step(self, number: int, title: str) -> None: ...

    def end_step(self, record: StepRecord) -> None: ...

    def attach(self, name: str, body: bytes, content_type: str) -> None: ...


def _short(error: BaseException) -> str:
    text = str(error).strip()
    return text.splitlines()[0] if text else type(error).__name__


async def fill_field(
    page: Page,
    field_name: str,
    value: str,
    config: ResilienceConfig,
    *,
    sleep: SleepFn = asyncio.sleep,
) -> ResolvedElement:
    """
    Resolve a field by name and fill it, retrying the whole operation.

    Playwright's ``fill`` replaces any existing value. Returns the resolution
    that succeeded on the final attempt.
    """
    candidates = build_candidates(field_name, Interaction.FILL)

    async def resolve_and_fill() -> ResolvedElement:
        resolved = await resolve(
            page,
            candidates,
            timeout_ms=config.resolver.candidate_timeout_ms,
            field_name=field_name,
        )
        try:
            await resolved.locator.fill(value)
        except PlaywrightError as e:
            raise ActionFailedError("fill", resolved.selector, _short(e)) from e
        logger.info("Filled field", field=field_name, selector=resolved.selector)
        return resolved

    return await with_retry(
        resolve_and_fill,
        config.retry,
        description=f"fill '{field_name}'",
        sleep=sleep,
    )


async def click_field(
    page: Page,
    field_name: str,
    config: ResilienceConfig,
    *,
    sleep: SleepFn = asyncio.sleep,
) -> ResolvedElement:
    """Resolve a clickable element by name and click it, retrying the whole operation."""
    candidates = build_candidates(field_name, Interaction.CLICK)

    async def resolve_and_click() -> ResolvedElement:
        resolved = await resolve(
            page,
            candidates,
            timeout_ms=config.resolver.candidate_timeout_ms,
            field_name=field_name,
        )
        try:
            await resolved.locator.click()
        except PlaywrightError as e:
            raise ActionFailedError("click", resolved.selector, _short(e)) from e
        logger.info("Clicked element", field=field_name, selector=resolved.selector)
        return resolved

    return await with_retry(
        resolve_and_click,
        config.retry,
        description=f"click '{field_name}'",
        sleep=sleep,
    )


@contextlib.asynccontextmanager
async def step_block(
    number: int,
    title: str,
    recorder: StepRecorder | None = None,
    history: list[StepRecord] | None = None,
) -> AsyncIterator[None]:
    """
    Wrap a test step: log it, report it, and re-raise any failure.

    Args:
        number: 1-based step number
        title: Step title shown in reports
        recorder: Optional external step recorder
        history: Optional list the finished StepRecord is appended to
    """
    log = logger.bind(component="step", step=number, title=title)
    log.info("Step started")
    if recorder is not None:
        recorder.start_step(number, title)

    start_time = time.monotonic()
    try:
        yield
    except Exception as e:
        record = StepRecord(
            number=number,
            title=title,
            status=StepStatus.FAILED,
            duration_ms=int((time.monotonic() - start_time) * 1000),
            error=str(e),
        )
        log.error("Step failed", error=str(e), duration_ms=record.duration_ms)
        if history is not None:
            history.append(record)
        if recorder is not None:
            recorder.end_step(record)
        raise

    record = StepRecord(
        number=number,
        title=title,
        status=StepStatus.PASSED,
        duration_ms=int((time.monotonic() - start_time) * 1000),
    )
    log.info("Step passed", duration_ms=record.duration_ms)
    if history is not None:
        history.append(record)
    if recorder is not None:
        recorder.end_step(record)


def _safe_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]", "-", name).strip("-").lower() or "test"


async def capture_failure(
    page: Page,
    config: ResilienceConfig,
    test_name: str,
    recorder: StepRecorder | None = None,
) -> Path | None:
    """
    Capture failure artifacts without ever raising.

    Saves a full-page screenshot under ``config.artifacts_dir``, attaches it to
    the recorder when given, and hides open dialogs so later diagnostics are
    not obscured.

    Returns:
        Screenshot path, or None if the capture failed
    """
    log = logger.bind(component="cleanup", test=test_name)
    screenshot_path: Path | None = None

    try:
        config.artifacts_dir.mkdir(parents=True, exist_ok=True)
        timestamp = int(time.time() * 1000)
        screenshot_path = config.artifacts_dir / f"failure-{_safe_name(test_name)}-{timestamp}.png"
        data = await page.screenshot(path=str(screenshot_path), full_page=True)
        if recorder is not None:
            recorder.attach("failure-screenshot", data, "image/png")
        log.info("Screenshot captured for failed test", path=str(screenshot_path))
    except (PlaywrightError, OSError) as e:
        log.warning("Failed to capture screenshot", error=_short(e))
        screenshot_path = None

    try:
        await page.evaluate(_DISMISS_DIALOGS_JS)
    except PlaywrightError as e:
        log.debug("Dialog dismissal failed", error=_short(e))

    return screenshot_path


class ResilientPage:
    """
    Facade binding a Playwright page to one ResilienceConfig.

    Usage:
        rpage = ResilientPage(page, load_config())
        await rpage.goto("/login")
        async with rpage.step(1, "Enter credentials"):
            await rpage.fill("username", "alice")
            await rpage.click("Login")
    """

    def __init__(
        self,
        page: Page,
        config: ResilienceConfig | None = None,
        recorder: StepRecorder | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._page = page
        self._config = config or ResilienceConfig()
        self._recorder = recorder
        self._sleep = sleep
        self._history: list[StepRecord] = []

    @property
    def page(self) -> Page:
        return self._page

    @property
    def config(self) -> ResilienceConfig:
        return self._config

    @property
    def history(self) -> list[StepRecord]:
        """Step records in execution order."""
        return list(self._history)

    async def goto(self, url: str) -> NavigationResult:
        return await navigate(self._page, url, self._config, sleep=self._sleep)

    async def fill(self, field_name: str, value: str) -> ResolvedElement:
        return await fill_field(
            self._page, field_name, value, self._config, sleep=self._sleep
        )

    async def click(self, field_name: str) -> ResolvedElement:
        return await click_field(self._page, field_name, self._config, sleep=self._sleep)

    def step(self, number: int, title: str) -> contextlib.AbstractAsyncContextManager[None]:
        return step_block(number, title, self._recorder, self._history)

    async def capture_failure(self, test_name: str) -> Path | None:
        return await capture_failure(self._page, self._config, test_name, self._recorder)
