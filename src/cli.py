"""
Command-line interface for healwright.

Provides commands for parsing prompts, generating Playwright specs, inspecting
selector candidates and configuration, and trying navigation against a live URL.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from healwright import __version__
from healwright.codegen.models import ParsedPrompt, SpecOptions
from healwright.codegen.prompt_parser import PromptParseError, PromptParser
from healwright.codegen.renderer import SpecRenderer, write_spec
from healwright.config import ConfigError, ResilienceConfig, load_config
from healwright.runtime.candidates import Interaction, build_candidates
from healwright.runtime.errors import NavigationExhaustedError
from healwright.runtime.navigation import navigate

logger = structlog.get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose if hasattr(args, "verbose") else False)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except Exception as e:
        logger.error("Command failed", error=str(e))
        if hasattr(args, "verbose") and args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="healwright",
        description="healwright - self-healing Playwright interactions and spec generation",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"healwright {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parse_parser = subparsers.add_parser("parse", help="Parse a prompt into step descriptors")
    parse_parser.add_argument("prompt_file", help="Path to a prompt file, one step per line")
    parse_parser.set_defaults(func=cmd_parse)

    generate_parser = subparsers.add_parser("generate", help="Generate a Playwright spec")
    generate_parser.add_argument("prompt_file", help="Path to a prompt file, one step per line")
    generate_parser.add_argument(
        "--output", "-o",
        help="Output spec path (stdout if omitted)",
    )
    generate_parser.add_argument(
        "--name",
        help="Test name (defaults to the prompt file name)",
    )
    generate_parser.add_argument(
        "--base-url",
        help="Base URL for relative navigation",
    )
    generate_parser.add_argument(
        "--timeout",
        type=int,
        help="Test timeout in milliseconds",
    )
    generate_parser.add_argument(
        "--tag",
        action="append",
        default=[],
        help="Tag to attach to the test (repeatable)",
    )
    generate_parser.add_argument(
        "--no-steps",
        action="store_true",
        help="Emit steps without test.step blocks",
    )
    generate_parser.add_argument(
        "--no-base-navigation",
        action="store_true",
        help="Do not open the base URL before the first step",
    )
    generate_parser.add_argument(
        "--config-file", "-c",
        help="Path to configuration file",
    )
    generate_parser.set_defaults(func=cmd_generate)

    candidates_parser = subparsers.add_parser(
        "candidates", help="Show the ordered selector candidates for a field name"
    )
    candidates_parser.add_argument("field", help="Semantic field name, e.g. username")
    candidates_parser.add_argument(
        "--action", "-a",
        choices=[i.value for i in Interaction],
        default=Interaction.FILL.value,
        help="Interaction the candidates are built for",
    )
    candidates_parser.add_argument(
        "--json",
        action="store_true",
        help="Output candidates as JSON",
    )
    candidates_parser.set_defaults(func=cmd_candidates)

    config_parser = subparsers.add_parser("config", help="Show the effective configuration")
    config_parser.add_argument(
        "--config-file", "-c",
        help="Path to configuration file",
    )
    config_parser.set_defaults(func=cmd_config)

    navigate_parser = subparsers.add_parser(
        "navigate", help="Navigate to a URL using the fallback sequencer"
    )
    navigate_parser.add_argument("url", help="Absolute URL or path relative to the base URL")
    navigate_parser.add_argument(
        "--headed",
        action="store_true",
        help="Run the browser with a visible window",
    )
    navigate_parser.add_argument(
        "--config-file", "-c",
        help="Path to configuration file",
    )
    navigate_parser.set_defaults(func=cmd_navigate)

    return parser


def configure_logging(verbose: bool) -> None:
    """Configure structured logging."""
    level = "DEBUG" if verbose else "INFO"
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if verbose else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    import logging

    logging.basicConfig(level=getattr(logging, level))


def _read_prompt(path_str: str) -> str:
    path = Path(path_str)
    if not path.is_file():
        raise FileNotFoundError(f"Prompt file not found: {path}")
    return path.read_text(encoding="utf-8")


def _prompt_to_dict(parsed: ParsedPrompt) -> dict[str, object]:
    return {
        "total_steps": parsed.total_steps,
        "has_ui": parsed.has_ui,
        "has_api": parsed.has_api,
        "steps": [
            {**step.model_dump(mode="json"), "description": step.description}
            for step in parsed.steps
        ],
    }


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a prompt file and print its step descriptors."""
    try:
        parsed = PromptParser().parse(_read_prompt(args.prompt_file))
    except PromptParseError as e:
        print(f"Invalid: {args.prompt_file}: {e}", file=sys.stderr)
        return 1

    print(json.dumps(_prompt_to_dict(parsed), indent=2))
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a Playwright spec from a prompt file."""
    from dotenv import load_dotenv

    load_dotenv()

    try:
        config = load_config(args.config_file)
        parsed = PromptParser().parse(_read_prompt(args.prompt_file))
    except (ConfigError, PromptParseError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    options = SpecOptions(
        test_name=args.name or Path(args.prompt_file).stem.replace("_", " ").replace("-", " "),
        base_url=args.base_url or config.base_url,
        timeout_ms=args.timeout or config.test_timeout_ms,
        browser=config.browser,
        headless=config.headless,
        include_test_steps=not args.no_steps,
        navigate_to_base_url=not args.no_base_navigation,
        tags=tuple(args.tag),
    )
    content = SpecRenderer().render(parsed, options, config)

    if args.output:
        path = write_spec(content, args.output)
        print(f"Generated {path} ({parsed.total_steps} steps)")
    else:
        print(content, end="")
    return 0


def cmd_candidates(args: argparse.Namespace) -> int:
    """Print the ordered candidate selectors for a field name."""
    candidates = build_candidates(args.field, Interaction(args.action))

    if args.json:
        print(json.dumps(
            [{"kind": c.kind.value, "value": c.value, "selector": c.selector} for c in candidates],
            indent=2,
        ))
    else:
        for i, candidate in enumerate(candidates, start=1):
            print(f"{i:2d}. {candidate.selector}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration as JSON."""
    from dotenv import load_dotenv

    load_dotenv()

    try:
        config = load_config(args.config_file)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(config.model_dump_json(indent=2))
    return 0


async def _navigate(url: str, config: ResilienceConfig, headless: bool) -> dict[str, object]:
    from playwright.async_api import async_playwright

    async with async_playwright() as playwright:
        browser_type = getattr(playwright, config.browser)
        browser = await browser_type.launch(headless=headless)
        try:
            page = await browser.new_page()
            result = await navigate(page, url, config)
            return {
                "url": result.url,
                "final_url": page.url,
                "title": await page.title(),
                "strategy": result.strategy.wait_until,
                "outer_attempt": result.outer_attempt,
                "goto_calls": result.goto_calls,
                "settled": result.settled,
            }
        finally:
            await browser.close()


def cmd_navigate(args: argparse.Namespace) -> int:
    """Navigate to a URL with the fallback sequencer and report the outcome."""
    from dotenv import load_dotenv

    load_dotenv()

    try:
        config = load_config(args.config_file)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    headless = config.headless and not args.headed
    try:
        outcome = asyncio.run(_navigate(args.url, config, headless))
    except NavigationExhaustedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(outcome, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
