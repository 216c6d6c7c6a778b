"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
The orchestrator is swapped for one wired to FakeModelClient and a temporary
store, so no API key or network access is needed.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import subprocess
import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

from deutsch_meister.cli import main as cli

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

# Project root
PROJECT_ROOT = Path(__file__).parent.parent.parent

runner = CliRunner()


def run_cli_command(command: str, timeout: int = 30) -> tuple[int, str, str]:
    """
    Run a CLI command in a subprocess and return exit code, stdout, stderr.

    Args:
        command: The command to run (after 'python -m deutsch_meister.cli.main')
        timeout: Maximum time to wait
    """
    full_command = f"{sys.executable} -m deutsch_meister.cli.main {command}"

    result = subprocess.run(
        full_command,
        shell=True,
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=timeout,
    )

    return result.returncode, result.stdout, result.stderr


@pytest.fixture
def cli_orchestrator(orchestrator, monkeypatch):
    """Every command uses the test orchestrator."""
    monkeypatch.setattr(cli, "_build_orchestrator", lambda: orchestrator)
    return orchestrator


class TestCLIHelp:
    """Test that help commands work."""

    def test_main_help(self):
        code, stdout, stderr = run_cli_command("--help")

        assert code == 0, f"Help failed: {stderr}"
        assert "generate" in stdout
        assert "saved" in stdout

    @pytest.mark.parametrize("group", ["saved", "lists", "word", "cloze"])
    def test_group_help(self, group):
        code, stdout, stderr = run_cli_command(f"{group} --help")

        assert code == 0, f"{group} help failed: {stderr}"


class TestCLICommands:
    """Run commands in-process against the fake model."""

    def test_generate_with_quiz(self, cli_orchestrator, fake_client, sample_story, sample_translations, sample_quiz):
        fake_client.queue(sample_story, sample_translations, sample_quiz)

        result = runner.invoke(
            cli.app,
            ["generate", "--theme", "Ein Tag in Berlin"],
            input="a\na\na\na\na\nn\n",
        )

        assert result.exit_code == 0, result.output
        assert "Anna wohnt seit zwei Jahren in Berlin." in result.output
        assert "Puan: 1/5" in result.output
        assert cli_orchestrator.saved_texts == []

    def test_generate_and_save(self, cli_orchestrator, fake_client, sample_story, sample_translations, sample_quiz):
        fake_client.queue(sample_story, sample_translations, sample_quiz)

        result = runner.invoke(
            cli.app,
            ["generate", "--theme", "Ein Tag in Berlin", "--no-quiz"],
            input="y\n",
        )

        assert result.exit_code == 0, result.output
        assert cli_orchestrator.saved_texts[0].title == "Ein Tag in Berlin"

    def test_generate_failure_exits_nonzero(self, cli_orchestrator, fake_client):
        fake_client.queue(RuntimeError("down"))

        result = runner.invoke(cli.app, ["generate", "--theme", "Urlaub"])

        assert result.exit_code == 1
        assert "Metin oluşturulurken" in result.output

    def test_generate_shows_bracketed_text_literally(self, cli_orchestrator, fake_client, sample_quiz):
        """Model text that looks like Rich markup is printed, not parsed."""
        story = "Er rief [/x] ganz laut."
        fake_client.queue(story, [{"german": story, "turkish": "Çok yüksek sesle [b] bağırdı."}], sample_quiz)

        result = runner.invoke(
            cli.app,
            ["generate", "--theme", "Lärm [/x]", "--no-quiz"],
            input="n\n",
        )

        assert result.exit_code == 0, result.output
        assert "[/x]" in result.output
        assert "[b]" in result.output

    def test_generate_rejects_word_count_off_step(self, cli_orchestrator, fake_client):
        result = runner.invoke(cli.app, ["generate", "--theme", "Urlaub", "--words", "125"])

        assert result.exit_code == 1
        assert "steps of 50" in result.output
        assert fake_client.calls == []

    def test_generate_requires_theme(self, cli_orchestrator):
        result = runner.invoke(cli.app, ["generate"])

        assert result.exit_code == 1

    def test_saved_list_empty(self, cli_orchestrator):
        result = runner.invoke(cli.app, ["saved", "list"])

        assert result.exit_code == 0
        assert "Henüz" in result.output

    def test_lists_create_and_show(self, cli_orchestrator):
        assert runner.invoke(cli.app, ["lists", "create", "Reise"]).exit_code == 0
        assert runner.invoke(cli.app, ["lists", "add", "1", "Zug", "tren"]).exit_code == 0

        result = runner.invoke(cli.app, ["lists", "list", "1"])

        assert result.exit_code == 0
        assert "Zug" in result.output

    def test_lists_unknown_number(self, cli_orchestrator):
        result = runner.invoke(cli.app, ["lists", "delete", "3"])

        assert result.exit_code == 1

    def test_word_translate_into_new_list(self, cli_orchestrator, fake_client):
        fake_client.queue("ev")

        result = runner.invoke(cli.app, ["word", "translate", "Haus", "--new-list", "Wohnen"])

        assert result.exit_code == 0, result.output
        assert "ev" in result.output
        assert cli_orchestrator.favorite_lists[0].words[0].german == "Haus"

    def test_word_explain_failure(self, cli_orchestrator, fake_client):
        fake_client.queue(RuntimeError("down"))

        result = runner.invoke(cli.app, ["word", "explain", "Haus"])

        assert result.exit_code == 1
        assert "Kelime açıklanırken" in result.output

    def test_saved_export_nothing(self, cli_orchestrator):
        result = runner.invoke(cli.app, ["saved", "export"])

        assert result.exit_code == 0
        assert "yok" in result.output
