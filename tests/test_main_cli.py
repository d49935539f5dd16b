"""Tests for the CLI entry points in taskpilot/main.py."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from taskpilot.config import Config
from taskpilot.main import app
from taskpilot.models.knowledge import ErrorRecord
from taskpilot.services.knowledge_service import ErrorKnowledgeStore

runner = CliRunner()


@pytest.fixture
def knowledge_file(tmp_path, monkeypatch):
    path = str(tmp_path / "error-knowledge.json")
    monkeypatch.setattr(Config, "KNOWLEDGE_FILE", path)
    return path


class TestStartCommand:
    """Tests for the 'start' CLI command."""

    @patch("taskpilot.main._start_agent")
    def test_start_without_prompt(self, mock_start):
        result = runner.invoke(app, ["start"])
        assert result.exit_code == 0
        mock_start.assert_called_once_with(None)

    @patch("taskpilot.main._start_agent")
    def test_start_with_prompt(self, mock_start):
        result = runner.invoke(app, ["start", "fix", "the", "login", "bug"])
        assert result.exit_code == 0
        mock_start.assert_called_once_with(["fix", "the", "login", "bug"])


class TestStartAgentFunction:
    """Tests for the _start_agent internal function."""

    @patch("taskpilot.main.asyncio")
    def test_start_agent_joins_prompt(self, mock_asyncio):
        with (
            patch("taskpilot.views.cli_view.CLIView"),
            patch("taskpilot.controllers.agent_controller.AgentController") as ctrl_cls,
        ):
            mock_ctrl = MagicMock()
            mock_ctrl.start = AsyncMock()
            ctrl_cls.return_value = mock_ctrl

            from taskpilot.main import _start_agent

            _start_agent(["fix", "the", "bug"])

            mock_ctrl.start.assert_called_once_with("fix the bug")
            mock_asyncio.run.assert_called_once()

    @patch("taskpilot.main.asyncio")
    def test_start_agent_none_prompt(self, mock_asyncio):
        with (
            patch("taskpilot.views.cli_view.CLIView"),
            patch("taskpilot.controllers.agent_controller.AgentController") as ctrl_cls,
        ):
            ctrl_cls.return_value.start = MagicMock()

            from taskpilot.main import _start_agent

            _start_agent(None)

            ctrl_cls.return_value.start.assert_called_once_with(None)

    @patch("taskpilot.main.asyncio")
    def test_start_agent_keyboard_interrupt(self, mock_asyncio):
        mock_asyncio.run.side_effect = KeyboardInterrupt()

        with (
            patch("taskpilot.views.cli_view.CLIView"),
            patch("taskpilot.controllers.agent_controller.AgentController"),
        ):
            from taskpilot.main import _start_agent

            # Should not raise
            _start_agent(None)


class TestAnalyzeCommand:
    def test_simple_request(self):
        result = runner.invoke(app, ["analyze", "fix typo"])
        assert result.exit_code == 0
        assert "SIMPLE" in result.output
        assert "plan would be suggested" not in result.output

    def test_complex_request(self):
        result = runner.invoke(
            app, ["analyze", "implement authentication and add a database module"]
        )
        assert result.exit_code == 0
        assert "COMPLEX" in result.output
        assert "plan would be suggested" in result.output


class TestKnowledgeCommands:
    def test_insights_empty(self, knowledge_file):
        result = runner.invoke(app, ["knowledge", "insights"])
        assert result.exit_code == 0
        assert "No learned patterns yet." in result.output

    def test_insights(self, knowledge_file):
        store = ErrorKnowledgeStore()
        record = ErrorRecord(
            operation="Read file", type="FileNotFoundError", message="config missing"
        )
        store.record_successful_resolution(record, "Create config", "worked")

        result = runner.invoke(app, ["knowledge", "insights"])
        assert result.exit_code == 0
        assert "Total Patterns Learned: 1" in result.output

    def test_clear_with_yes(self, knowledge_file):
        store = ErrorKnowledgeStore()
        record = ErrorRecord(operation="Read file", type="OSError", message="disk full")
        store.record_failed_resolution(record, "Retry", "still full")
        assert os.path.exists(knowledge_file)

        result = runner.invoke(app, ["knowledge", "clear", "--yes"])
        assert result.exit_code == 0
        assert "Learned patterns cleared." in result.output
        assert not os.path.exists(knowledge_file)

    def test_clear_aborted(self, knowledge_file):
        store = ErrorKnowledgeStore()
        record = ErrorRecord(operation="Read file", type="OSError", message="disk full")
        store.record_failed_resolution(record, "Retry", "still full")

        result = runner.invoke(app, ["knowledge", "clear"], input="n\n")
        assert result.exit_code == 0
        assert "Aborted." in result.output
        assert os.path.exists(knowledge_file)


class TestMainCallback:
    """Tests for the main app callback."""

    def test_help_output(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "TaskPilot" in result.output

    def test_knowledge_help(self):
        result = runner.invoke(app, ["knowledge", "--help"])
        assert result.exit_code == 0
        assert "insights" in result.output
