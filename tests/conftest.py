"""Pytest fixtures for healwright tests."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from healwright.config import NavigationConfig, ResilienceConfig, ResolverConfig


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays in seconds."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakePage:
    """
    Minimal stand-in for a Playwright page.

    Only selectors in ``visible`` become visible; every other selector times
    out. Elements are cached per selector so tests can inspect calls on them.
    """

    def __init__(self, visible: set[str] | None = None) -> None:
        self.visible = set(visible or ())
        self.queried: list[str] = []
        self.elements: dict[str, MagicMock] = {}

        self.goto = AsyncMock()
        self.wait_for_load_state = AsyncMock()
        self.screenshot = AsyncMock(return_value=b"png-bytes")
        self.evaluate = AsyncMock()

    def locator(self, selector: str) -> MagicMock:
        self.queried.append(selector)
        element = self.elements.get(selector)
        if element is None:
            element = MagicMock()
            if selector in self.visible:
                element.wait_for = AsyncMock()
            else:
                element.wait_for = AsyncMock(
                    side_effect=PlaywrightTimeoutError(f"Timeout waiting for {selector}")
                )
            element.clear = AsyncMock()
            element.fill = AsyncMock()
            element.click = AsyncMock()
            self.elements[selector] = element

        locator = MagicMock()
        locator.first = element
        return locator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep replacement that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def make_page() -> Callable[..., FakePage]:
    """Factory for fake pages with a given set of visible selectors."""
    return FakePage


@pytest.fixture
def config(temp_dir: Path) -> ResilienceConfig:
    """Default runtime configuration writing artifacts to a temp directory."""
    return ResilienceConfig(
        base_url="https://app.example.com",
        artifacts_dir=temp_dir / "screenshots",
        resolver=ResolverConfig(candidate_timeout_ms=50),
        navigation=NavigationConfig(settle_timeout_ms=100),
    )


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> Path:
    """Run in an empty directory with no HEALWRIGHT_ variables set."""
    for key in list(os.environ):
        if key.startswith("HEALWRIGHT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(temp_dir)
    return temp_dir


@pytest.fixture
def sample_prompt() -> str:
    """Sample login prompt, one instruction per line."""
    return """Navigate to https://app.example.com/login
Fill username with "alice"
Fill password with "s3cret"
Click the Login button
Verify the dashboard heading is visible
Wait 2 seconds
"""
