"""CLI tests for rag via Click's CliRunner.

RAG_CONFIG points every test at a temporary config file (see conftest).
"""

from __future__ import annotations

import json
import os

import pytest
from click.testing import CliRunner

from rag.cli import cli
from rag.models.config import Config, save_config


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def config_path() -> str:
    return os.environ["RAG_CONFIG"]


def _read(path: str) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Setting values
# ---------------------------------------------------------------------------

class TestSetOptions:
    def test_set_api_key(self, runner, config_path):
        result = runner.invoke(cli, ["--sa", "sk-new"])
        assert result.exit_code == 0, result.output
        assert _read(config_path)["api_key"] == "sk-new"

    def test_set_model_and_base_url(self, runner, config_path):
        save_config(Config(api_key="keep-me"), config_path)
        result = runner.invoke(cli, ["--sm", "gpt-x", "--sb", "http://local/v1"])
        assert result.exit_code == 0, result.output

        data = _read(config_path)
        assert data == {"base_url": "http://local/v1", "api_key": "keep-me", "model": "gpt-x"}

    def test_long_option_names(self, runner, tmp_path):
        path = tmp_path / "elsewhere.json"
        result = runner.invoke(cli, ["--config", str(path), "--set-model", "m2"])
        assert result.exit_code == 0, result.output
        assert _read(str(path))["model"] == "m2"

    def test_env_overrides_not_persisted(self, runner, config_path, monkeypatch):
        save_config(Config(api_key="file-key"), config_path)
        monkeypatch.setenv("RAG_API_KEY", "env-key")
        result = runner.invoke(cli, ["--sm", "m3"])
        assert result.exit_code == 0, result.output
        assert _read(config_path)["api_key"] == "file-key"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class TestErrors:
    def test_invalid_config_exits_1(self, runner, config_path):
        with open(config_path, "w", encoding="utf-8") as f:
            f.write("{broken")
        result = runner.invoke(cli, ["--sm", "m"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_missing_api_key_exits_1(self, runner, config_path):
        save_config(Config(api_key=""), config_path)
        result = runner.invoke(cli, ["--no-history"])
        assert result.exit_code == 1
        assert "No API key provided" in result.output

    def test_capacity_lower_bound(self, runner):
        result = runner.invoke(cli, ["--capacity", "1"])
        assert result.exit_code == 2

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output


# ---------------------------------------------------------------------------
# Chat loop wiring
# ---------------------------------------------------------------------------

class TestChat:
    def test_runs_pipeline_until_eof(self, runner, config_path, monkeypatch):
        from tests.conftest import ScriptedReader, ScriptedTransport, content_chunk

        save_config(Config(api_key="k", model="m"), config_path)
        transport = ScriptedTransport([content_chunk("pong")])
        created = {}

        def fake_client(**kwargs):
            created.update(kwargs)
            return _ClosingTransport(transport)

        monkeypatch.setattr("rag.llm.client.OpenAIClient", fake_client)
        monkeypatch.setattr("rag.cli.reader.LineReader", lambda *a, **kw: ScriptedReader("ping"))

        result = runner.invoke(cli, ["--no-history"])

        assert result.exit_code == 0, result.output
        assert created == {"api_key": "k", "base_url": Config().base_url, "default_model": "m"}
        assert transport.requests[0]["messages"][-1] == {"role": "user", "content": "ping"}
        assert "pong" in result.output
        assert "token usage: 0" in result.output


class _ClosingTransport:
    """Context-manager wrapper so the CLI can ``with`` a scripted transport."""

    def __init__(self, transport):
        self._transport = transport

    def stream_chat(self, *args, **kwargs):
        return self._transport.stream_chat(*args, **kwargs)

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args) -> None:
        self.close()
