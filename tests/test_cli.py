"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from healwright.cli import create_parser, main
from healwright.runtime.errors import NavigationExhaustedError


@pytest.fixture
def prompt_file(isolated_env: Path, sample_prompt: str) -> Path:
    path = isolated_env / "login_flow.txt"
    path.write_text(sample_prompt)
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_commands_registered(self) -> None:
        """Test that every command parses."""
        parser = create_parser()

        assert parser.parse_args(["parse", "p.txt"]).command == "parse"
        assert parser.parse_args(["generate", "p.txt", "-o", "x.spec.ts"]).output == "x.spec.ts"
        assert parser.parse_args(["candidates", "username", "--action", "click"]).action == "click"
        assert parser.parse_args(["config"]).command == "config"
        assert parser.parse_args(["navigate", "/", "--headed"]).headed

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that running without a command fails with help."""
        assert main([]) == 1
        assert "usage: healwright" in capsys.readouterr().out


class TestCommands:
    """Tests for command handlers."""

    def test_parse(self, prompt_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that parse prints JSON descriptors."""
        assert main(["parse", str(prompt_file)]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["total_steps"] == 6
        assert data["steps"][1]["action"] == "fill"
        assert data["steps"][1]["target"] == "username"
        assert data["steps"][1]["description"] == "Fill username with alice"

    def test_parse_empty_prompt(self, isolated_env: Path) -> None:
        """Test that an empty prompt file fails."""
        path = isolated_env / "empty.txt"
        path.write_text("\n")

        assert main(["parse", str(path)]) == 1

    def test_parse_missing_file(self, isolated_env: Path) -> None:
        """Test that a missing prompt file fails."""
        assert main(["parse", str(isolated_env / "nope.txt")]) == 1

    def test_generate_to_stdout(
        self, prompt_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test generating a spec to stdout with a derived name."""
        assert main(["generate", str(prompt_file), "--timeout", "60000"]) == 0

        out = capsys.readouterr().out
        assert 'test.describe("login flow", () => {' in out
        assert "test.setTimeout(60000);" in out
        assert "await navigateWithAutoWait(page, BASE_URL);" in out

    def test_generate_to_file(self, prompt_file: Path, isolated_env: Path) -> None:
        """Test writing a spec with explicit options."""
        output = isolated_env / "out" / "login.spec.ts"

        exit_code = main([
            "generate", str(prompt_file),
            "-o", str(output),
            "--name", "Login",
            "--base-url", "https://staging.test",
            "--tag", "smoke",
            "--no-base-navigation",
        ])

        assert exit_code == 0
        content = output.read_text()
        assert 'const BASE_URL = "https://staging.test";' in content
        assert '{ tag: ["@smoke"] }' in content
        assert "await navigateWithAutoWait(page, BASE_URL);" not in content

    def test_generate_bad_config(self, prompt_file: Path, isolated_env: Path) -> None:
        """Test that a broken config file fails generation."""
        bad = isolated_env / "bad.yaml"
        bad.write_text("- not a mapping\n")

        assert main(["generate", str(prompt_file), "-c", str(bad)]) == 1

    def test_candidates(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test listing candidates."""
        assert main(["candidates", "username"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == ' 1. text="username"'
        assert lines[1] == ' 2. input[name="username"]'

    def test_candidates_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test candidate JSON output for clicks."""
        assert main(["candidates", "Login", "-a", "click", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data[1] == {
            "kind": "attribute_match",
            "value": "Login",
            "selector": 'button[name="Login"]',
        }

    def test_config(
        self,
        isolated_env: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test printing the effective configuration."""
        monkeypatch.setenv("HEALWRIGHT_BROWSER", "webkit")

        assert main(["config"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["browser"] == "webkit"
        assert data["retry"]["max_attempts"] == 3

    def test_config_missing_file(self, isolated_env: Path) -> None:
        """Test that an explicit missing config file fails."""
        assert main(["config", "-c", str(isolated_env / "missing.yaml")]) == 1

    def test_navigate(self, isolated_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Test the navigate command with the browser session stubbed out."""
        outcome = {"url": "http://localhost:3000/", "strategy": "domcontentloaded"}

        navigate_mock = AsyncMock(return_value=outcome)

        with patch("healwright.cli._navigate", new=navigate_mock):
            assert main(["navigate", "/", "--headed"]) == 0

        assert navigate_mock.call_args.args[2] is False
        assert json.loads(capsys.readouterr().out)["strategy"] == "domcontentloaded"

    def test_navigate_exhausted(self, isolated_env: Path) -> None:
        """Test that exhausted navigation exits with an error."""
        error = NavigationExhaustedError("http://localhost:3000/", 9, None)

        with patch("healwright.cli._navigate", new=AsyncMock(side_effect=error)):
            assert main(["navigate", "/"]) == 1

    def test_interrupt(self) -> None:
        """Test that Ctrl+C exits with 130."""
        with patch("healwright.cli.build_candidates", side_effect=KeyboardInterrupt):
            assert main(["candidates", "username"]) == 130
