"""
Code generation module.

Turns natural-language prompts into Playwright TypeScript specs:
- Keyword-heuristic prompt parsing into step descriptors
- Jinja2 rendering of specs that embed the resilience helpers
- Conventional spec file placement
"""

from healwright.codegen.models import ParsedPrompt, SpecOptions, StepAction, StepDescriptor
from healwright.codegen.prompt_parser import PromptParseError, PromptParser
from healwright.codegen.renderer import (
    RenderError,
    SpecRenderer,
    fix_ambiguous_selectors,
    parse_assertion,
    spec_file_path,
    write_spec,
)

__all__ = [
    # Models
    "ParsedPrompt",
    "SpecOptions",
    "StepAction",
    "StepDescriptor",
    # Parsing
    "PromptParseError",
    "PromptParser",
    # Rendering
    "RenderError",
    "SpecRenderer",
    "fix_ambiguous_selectors",
    "parse_assertion",
    "spec_file_path",
    "write_spec",
]
