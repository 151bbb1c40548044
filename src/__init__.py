"""
healwright.

Self-healing Playwright interactions: ordered selector candidates, first-visible
resolution, bounded retry with backoff and navigation fallbacks, plus a
prompt-to-spec generator that emits the same behaviour as TypeScript.
"""

__version__ = "1.0.0"

from healwright.codegen import PromptParser, SpecOptions, SpecRenderer
from healwright.config import (
    BackoffMode,
    ConfigError,
    NavigationConfig,
    NavigationStrategy,
    ResilienceConfig,
    ResolverConfig,
    RetryPolicy,
    load_config,
)
from healwright.runtime import (
    ElementNotFoundError,
    HealwrightError,
    Interaction,
    NavigationExhaustedError,
    ResilientPage,
    RetryExhaustedError,
    build_candidates,
    click_field,
    fill_field,
    navigate,
    resolve,
    with_retry,
)

__all__ = [
    "__version__",
    # Configuration
    "BackoffMode",
    "ConfigError",
    "NavigationConfig",
    "NavigationStrategy",
    "ResilienceConfig",
    "ResolverConfig",
    "RetryPolicy",
    "load_config",
    # Runtime
    "ElementNotFoundError",
    "HealwrightError",
    "Interaction",
    "NavigationExhaustedError",
    "ResilientPage",
    "RetryExhaustedError",
    "build_candidates",
    "click_field",
    "fill_field",
    "navigate",
    "resolve",
    "with_retry",
    # Code generation
    "PromptParser",
    "SpecOptions",
    "SpecRenderer",
]
