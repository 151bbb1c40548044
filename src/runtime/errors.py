"""
Exception taxonomy for resilient page interactions.

Only RecoverableError subclasses are retried by the retry wrapper; everything
else is terminal for the enclosing step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from healwright.runtime.resolver import ResolutionAttempt


class HealwrightError(Exception):
    """Base class for all healwright errors."""

    pass


class RecoverableError(HealwrightError):
    """An error the retry wrapper is allowed to recover from."""

    pass


class ElementNotFoundError(RecoverableError):
    """Raised when no candidate became visible within its wait budget."""

    def __init__(
        self,
        field: str,
        attempts: list[ResolutionAttempt],
        last_error: BaseException | None = None,
    ) -> None:
        self.field = field
        self.attempts = attempts
        self.last_error = last_error

        if attempts:
            last = attempts[-1]
            summary = "; ".join(
                f"{a.candidate.selector} -> {a.outcome}" for a in attempts
            )
            message = (
                f"No visible element for '{field}' after {len(attempts)} candidates "
                f"(last: {last.candidate.selector}: {last.error or last.outcome}). "
                f"Tried: {summary}"
            )
        else:
            message = f"No candidates to resolve for '{field}'"
        super().__init__(message)


class ActionFailedError(RecoverableError):
    """Raised when a located element's interaction itself fails."""

    def __init__(self, action: str, selector: str, reason: str) -> None:
        self.action = action
        self.selector = selector
        self.reason = reason
        super().__init__(f"{action} failed on {selector}: {reason}")


class RetryExhaustedError(HealwrightError):
    """Raised when every retry attempt failed."""

    def __init__(self, description: str, attempts: int, last_error: BaseException) -> None:
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed to {description} after {attempts} attempts: {last_error}")


class NavigationExhaustedError(HealwrightError):
    """Raised when all navigation strategies across all outer attempts failed."""

    def __init__(self, url: str, attempts: int, last_error: BaseException | None) -> None:
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"All navigation strategies failed for {url} after {attempts} goto calls: {last_error}"
        )
