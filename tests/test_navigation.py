"""Tests for the navigation fallback sequencer."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, call

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from healwright.config import (
    BackoffMode,
    NavigationConfig,
    NavigationStrategy,
    ResilienceConfig,
    RetryPolicy,
)
from healwright.runtime.errors import NavigationExhaustedError
from healwright.runtime.navigation import navigate, resolve_url


def _page(goto_side_effect=None) -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_side_effect)
    page.wait_for_load_state = AsyncMock()
    return page


class TestResolveUrl:
    """Tests for joining navigation targets onto the base URL."""

    def test_absolute_url_passes_through(self) -> None:
        """Test that absolute URLs are not rewritten."""
        assert resolve_url("https://other.test/a", "https://app.test") == "https://other.test/a"
        assert resolve_url("about:blank", "https://app.test") == "about:blank"

    def test_relative_paths_joined(self) -> None:
        """Test that relative paths are joined with exactly one slash."""
        assert resolve_url("/login", "https://app.test") == "https://app.test/login"
        assert resolve_url("login", "https://app.test/") == "https://app.test/login"
        assert resolve_url("/a/b?x=1", "https://app.test/base") == "https://app.test/base/a/b?x=1"


class TestNavigate:
    """Tests for navigate."""

    @pytest.mark.asyncio
    async def test_first_strategy_succeeds(self, config, recording_sleep) -> None:
        """Test that a reachable page uses content-loaded and one goto."""
        page = _page()

        result = await navigate(page, "/login", config, sleep=recording_sleep)

        page.goto.assert_awaited_once_with(
            "https://app.example.com/login", wait_until="domcontentloaded", timeout=30000
        )
        page.wait_for_load_state.assert_awaited_once_with("networkidle", timeout=100)
        assert result.strategy.wait_until == "domcontentloaded"
        assert result.goto_calls == 1
        assert result.outer_attempt == 1
        assert result.settled
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_strategies_tried_in_order(self, config, recording_sleep) -> None:
        """Test fallback order and timeouts when earlier strategies fail."""
        page = _page([PlaywrightTimeoutError("Timeout 30000ms"), PlaywrightError("aborted"), None])

        result = await navigate(page, "https://app.example.com/", config, sleep=recording_sleep)

        assert page.goto.await_args_list == [
            call("https://app.example.com/", wait_until="domcontentloaded", timeout=30000),
            call("https://app.example.com/", wait_until="load", timeout=45000),
            call("https://app.example.com/", wait_until="networkidle", timeout=60000),
        ]
        assert result.strategy.wait_until == "networkidle"
        assert result.goto_calls == 3
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_unreachable_url_exhausts_after_nine_gotos(
        self, config, recording_sleep
    ) -> None:
        """Test three outer attempts over three strategies, sleeping only between rounds."""
        error = PlaywrightError("net::ERR_CONNECTION_REFUSED")
        page = _page(error)

        with pytest.raises(NavigationExhaustedError) as exc_info:
            await navigate(page, "https://down.example.com", config, sleep=recording_sleep)

        assert page.goto.await_count == 9
        assert recording_sleep.calls == [0.5, 1.0]
        assert exc_info.value.attempts == 9
        assert exc_info.value.url == "https://down.example.com"
        assert exc_info.value.__cause__ is error
        assert "ERR_CONNECTION_REFUSED" in str(exc_info.value)
        assert "after 9 goto calls" in str(exc_info.value)
        page.wait_for_load_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_outer_attempt_succeeds(self, config, recording_sleep) -> None:
        """Test success after one full failed round."""
        failures = [PlaywrightError("refused")] * 3
        page = _page([*failures, None])

        result = await navigate(page, "/", config, sleep=recording_sleep)

        assert result.outer_attempt == 2
        assert result.goto_calls == 4
        assert result.strategy.wait_until == "domcontentloaded"
        assert recording_sleep.calls == [0.5]

    @pytest.mark.asyncio
    async def test_settle_timeout_is_swallowed(self, config, recording_sleep) -> None:
        """Test that a network-idle timeout after goto does not fail navigation."""
        page = _page()
        page.wait_for_load_state = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 100ms"))

        result = await navigate(page, "/", config, sleep=recording_sleep)

        assert not result.settled
        assert page.goto.await_count == 1

    @pytest.mark.asyncio
    async def test_custom_strategies_and_attempts(self, recording_sleep) -> None:
        """Test that configured strategies and outer attempts bound the goto count."""
        config = ResilienceConfig(
            navigation=NavigationConfig(
                strategies=(NavigationStrategy(wait_until="load", timeout_ms=5000),),
                outer_attempts=2,
            ),
        )
        page = _page(PlaywrightError("refused"))

        with pytest.raises(NavigationExhaustedError):
            await navigate(page, "/", config, sleep=recording_sleep)

        assert page.goto.await_count == 2
        assert recording_sleep.calls == [0.5]
        page.goto.assert_awaited_with(
            "http://localhost:3000/", wait_until="load", timeout=5000
        )

    @pytest.mark.asyncio
    async def test_non_playwright_error_propagates(self, config, recording_sleep) -> None:
        """Test that unexpected errors are not treated as strategy failures."""
        page = _page(RuntimeError("bug"))

        with pytest.raises(RuntimeError, match="bug"):
            await navigate(page, "/", config, sleep=recording_sleep)

        assert page.goto.await_count == 1

    @pytest.mark.asyncio
    async def test_outer_attempts_bound_rounds_not_retry_budget(self, recording_sleep) -> None:
        """Test that only the delay fields of the navigation retry policy apply."""
        config = ResilienceConfig(
            navigation=NavigationConfig(
                outer_attempts=4,
                retry=RetryPolicy(
                    max_attempts=1,
                    base_delay_ms=500,
                    backoff=BackoffMode.EXPONENTIAL,
                    max_delay_ms=1500,
                ),
            ),
        )
        page = _page(PlaywrightError("refused"))

        with pytest.raises(NavigationExhaustedError):
            await navigate(page, "/", config, sleep=recording_sleep)

        assert page.goto.await_count == 12
        assert recording_sleep.calls == [0.5, 1.0, 1.5]
