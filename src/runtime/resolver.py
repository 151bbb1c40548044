"""
Candidate resolver.

Tries candidates strictly in order against a Playwright page and returns the
first element that becomes visible. Candidates are never tried concurrently, so
the worst-case latency is the sum of all per-candidate waits.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from healwright.runtime.candidates import Candidate
from healwright.runtime.errors import ElementNotFoundError

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

logger = structlog.get_logger(__name__)


class ResolutionOutcome(StrEnum):
    """Outcome of trying one candidate."""

    SUCCESS = "success"
    NOT_FOUND = "not-found"
    TIMEOUT = "timeout"


@dataclass
class ResolutionAttempt:
    """Diagnostic record of one candidate attempt."""

    candidate: Candidate
    outcome: ResolutionOutcome
    duration_ms: int = 0
    error: str | None = None


@dataclass
class ResolvedElement:
    """Result of a successful resolution."""

    locator: Locator
    candidate: Candidate
    attempts: list[ResolutionAttempt] = field(default_factory=list)

    @property
    def selector(self) -> str:
        return self.candidate.selector


def _first_line(error: BaseException) -> str:
    text = str(error).strip()
    return text.splitlines()[0] if text else type(error).__name__


async def resolve(
    page: Page,
    candidates: Sequence[Candidate],
    *,
    timeout_ms: int,
    field_name: str | None = None,
) -> ResolvedElement:
    """
    Resolve the first visible element among ordered candidates.

    Args:
        page: Playwright page to query
        candidates: Candidates in priority order
        timeout_ms: Visibility wait budget per candidate
        field_name: Semantic name used in diagnostics

    Returns:
        ResolvedElement for the first candidate that became visible

    Raises:
        ElementNotFoundError: If no candidate became visible. The error lists
            every attempted candidate and chains the last Playwright error.
    """
    label = field_name or (candidates[0].value if candidates else "")
    log = logger.bind(component="resolver", field=label)
    attempts: list[ResolutionAttempt] = []
    last_error: BaseException | None = None

    for index, candidate in enumerate(candidates, start=1):
        start_time = time.monotonic()
        locator = page.locator(candidate.selector).first
        try:
            await locator.wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            outcome = ResolutionOutcome.TIMEOUT
            last_error = e
        except PlaywrightError as e:
            outcome = ResolutionOutcome.NOT_FOUND
            last_error = e
        else:
            duration = int((time.monotonic() - start_time) * 1000)
            attempts.append(
                ResolutionAttempt(candidate, ResolutionOutcome.SUCCESS, duration)
            )
            log.debug(
                "Candidate resolved",
                selector=candidate.selector,
                kind=candidate.kind,
                position=index,
                duration_ms=duration,
            )
            return ResolvedElement(locator=locator, candidate=candidate, attempts=attempts)

        duration = int((time.monotonic() - start_time) * 1000)
        attempts.append(
            ResolutionAttempt(candidate, outcome, duration, error=_first_line(last_error))
        )
        log.debug(
            "Candidate failed",
            selector=candidate.selector,
            outcome=outcome,
            position=index,
            duration_ms=duration,
            error=_first_line(last_error),
        )

    log.info("No candidate resolved", candidates_tried=len(attempts))
    raise ElementNotFoundError(label, attempts, last_error) from last_error
