"""
Navigation fallback sequencer.

Tries progressively more lenient ready conditions for one ``goto``, and restarts
the whole sequence with backoff when every condition fails.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urljoin

import structlog
from playwright.async_api import Error as PlaywrightError

from healwright.config import NavigationConfig, NavigationStrategy, ResilienceConfig
from healwright.runtime.errors import NavigationExhaustedError
from healwright.runtime.retry import SleepFn

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = structlog.get_logger(__name__)


@dataclass
class NavigationResult:
    """Outcome of a successful navigation."""

    url: str
    strategy: NavigationStrategy
    outer_attempt: int
    goto_calls: int
    settled: bool


def resolve_url(target: str, base_url: str) -> str:
    """Join relative targets onto the base URL; absolute URLs pass through."""
    if target.startswith(("http://", "https://", "about:", "data:", "file:")):
        return target
    path = target if target.startswith("/") else f"/{target}"
    return urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))


async def _settle(page: Page, navigation: NavigationConfig) -> bool:
    """Best-effort network-idle wait; failures never abort navigation."""
    try:
        await page.wait_for_load_state(
            "networkidle", timeout=navigation.settle_timeout_ms
        )
    except PlaywrightError as e:
        logger.debug("Network idle timeout, continuing", error=str(e).splitlines()[0])
        return False
    return True


async def navigate(
    page: Page,
    url: str,
    config: ResilienceConfig,
    *,
    sleep: SleepFn = asyncio.sleep,
) -> NavigationResult:
    """
    Navigate with ready-condition fallbacks and outer retries.

    For each outer attempt, ``goto`` is tried once per strategy in the
    configured order (domcontentloaded, load, networkidle by default). The
    first successful ``goto`` ends navigation, after a best-effort network-idle
    wait. When all strategies fail, the sequencer waits the retry policy's
    delay and starts again, up to ``outer_attempts`` times.

    Args:
        page: Playwright page
        url: Absolute URL or path relative to ``config.base_url``
        config: Runtime configuration
        sleep: Awaitable sleep taking seconds, injectable for tests

    Returns:
        NavigationResult describing the strategy that succeeded

    Raises:
        NavigationExhaustedError: After outer_attempts x strategies failures
    """
    navigation = config.navigation
    target = resolve_url(url, config.base_url)
    log = logger.bind(component="navigation", url=target)
    goto_calls = 0
    last_error: BaseException | None = None

    for outer_attempt in range(1, navigation.outer_attempts + 1):
        for strategy in navigation.strategies:
            goto_calls += 1
            try:
                await page.goto(
                    target,
                    wait_until=strategy.wait_until,
                    timeout=strategy.timeout_ms,
                )
            except PlaywrightError as e:
                last_error = e
                log.info(
                    "Navigation strategy failed",
                    strategy=strategy.wait_until,
                    attempt=outer_attempt,
                    error=str(e).splitlines()[0] if str(e) else type(e).__name__,
                )
                continue

            settled = await _settle(page, navigation)
            log.info(
                "Navigation successful",
                strategy=strategy.wait_until,
                attempt=outer_attempt,
                goto_calls=goto_calls,
            )
            return NavigationResult(
                url=target,
                strategy=strategy,
                outer_attempt=outer_attempt,
                goto_calls=goto_calls,
                settled=settled,
            )

        if outer_attempt < navigation.outer_attempts:
            delay_ms = navigation.retry.delay_for(outer_attempt)
            log.debug("All strategies failed, backing off", delay_ms=delay_ms)
            await sleep(delay_ms / 1000)

    log.error("All navigation strategies failed", goto_calls=goto_calls)
    raise NavigationExhaustedError(target, goto_calls, last_error) from last_error
