"""
Runtime module for resilient Playwright interactions.

Runs inside a test against a live page with:
- Ordered selector candidates per semantic field name
- Sequential, stop-on-first-success resolution
- Bounded retry with non-decreasing backoff
- Navigation fallbacks across ready conditions
"""

from healwright.runtime.actions import (
    ResilientPage,
    StepRecord,
    StepRecorder,
    StepStatus,
    capture_failure,
    click_field,
    fill_field,
    step_block,
)
from healwright.runtime.candidates import (
    Candidate,
    CandidateKind,
    Interaction,
    build_candidates,
)
from healwright.runtime.errors import (
    ActionFailedError,
    ElementNotFoundError,
    HealwrightError,
    NavigationExhaustedError,
    RecoverableError,
    RetryExhaustedError,
)
from healwright.runtime.navigation import NavigationResult, navigate, resolve_url
from healwright.runtime.resolver import (
    ResolutionAttempt,
    ResolutionOutcome,
    ResolvedElement,
    resolve,
)
from healwright.runtime.retry import RetryPhase, RetryState, with_retry

__all__ = [
    # Candidates
    "Candidate",
    "CandidateKind",
    "Interaction",
    "build_candidates",
    # Resolver
    "ResolutionAttempt",
    "ResolutionOutcome",
    "ResolvedElement",
    "resolve",
    # Retry
    "RetryPhase",
    "RetryState",
    "with_retry",
    # Navigation
    "NavigationResult",
    "navigate",
    "resolve_url",
    # Actions
    "ResilientPage",
    "StepRecord",
    "StepRecorder",
    "StepStatus",
    "capture_failure",
    "click_field",
    "fill_field",
    "step_block",
    # Errors
    "ActionFailedError",
    "ElementNotFoundError",
    "HealwrightError",
    "NavigationExhaustedError",
    "RecoverableError",
    "RetryExhaustedError",
]
