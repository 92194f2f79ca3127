"""Tests for the redigir CLI."""

from __future__ import annotations

import asyncio
import io
import logging
import sys

import pytest
from typer.testing import CliRunner

from redigir.cli import app
from redigir.core import reset_orchestrator
from redigir.logging_setup import get_logger, reset_logging
from redigir.models import SourceTag, TransformationRequest
from redigir.orchestrator import Orchestrator

runner = CliRunner()


@pytest.fixture(autouse=True)
def _offline(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("REDIGIR_MODEL", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_orchestrator()
    reset_logging()
    yield
    reset_orchestrator()
    reset_logging()


def test_types_lists_every_type():
    result = runner.invoke(app, ["types"])
    assert result.exit_code == 0
    assert "synonyms" in result.output
    assert "local+llm" in result.output
    assert "essay_evaluation" in result.output


def test_transform_json():
    result = runner.invoke(app, ["transform", "Isso é muito importante.", "--type", "synonyms", "--json"])
    assert result.exit_code == 0
    assert '"content": "Isso é deveras fundamental."' in result.output
    assert '"source": "local"' in result.output


def test_unknown_type():
    result = runner.invoke(app, ["transform", "Texto.", "--type", "rima"])
    assert result.exit_code == 2


def test_empty_text_exits_1():
    result = runner.invoke(app, ["transform", "   "])
    assert result.exit_code == 1


def test_evaluate_short_essay_exits_1(tmp_path):
    essay = tmp_path / "redacao.txt"
    essay.write_text("Curta.", encoding="utf-8")
    result = runner.invoke(app, ["evaluate", str(essay)])
    assert result.exit_code == 1


class TestLoggingAfterCommand:
    def test_orchestrator_works_after_cli_run(self):
        assert runner.invoke(app, ["transform", "Isso é muito importante."]).exit_code == 0

        orchestrator = Orchestrator()
        result = asyncio.run(orchestrator.transform(TransformationRequest(text="Isso é muito importante.", type="synonyms")))
        assert result.source == SourceTag.LOCAL
        assert result.content == "Isso é deveras fundamental."

    def test_log_lines_follow_current_stderr(self, monkeypatch):
        get_logger()
        swapped = io.StringIO()
        monkeypatch.setattr(sys, "stderr", swapped)
        logging.getLogger("redigir.test").warning("linha de teste")
        assert "redigir.test" in swapped.getvalue()

    def test_reset_detaches_bridge(self):
        before = list(logging.getLogger().handlers)
        get_logger()
        assert len(logging.getLogger().handlers) > len(before)
        reset_logging()
        assert logging.getLogger().handlers == before
