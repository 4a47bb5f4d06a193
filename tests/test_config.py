"""Test the config loading."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click import Command
from pydantic import ValidationError
from typer import Context
from typer.testing import CliRunner

from recap import config
from recap.cli import app, set_config_defaults
from recap.config import load_config
from recap.engine.base import Capability

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner(env={"NO_COLOR": "1", "TERM": "dumb"})


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Provides a config file with dashed keys."""
    config_content = """
title = "ignored"

[defaults]
log-level = "INFO"
base-url = "http://gpu-box:11434/v1"
model = "default-model"

[summarize]
model = "summarize-model"
max-depth = 3

[status]
context-tokens = 8192
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path


def test_config_loader_key_replacement(config_file: Path) -> None:
    """Test that dashed keys are replaced and non-table keys are skipped."""
    cfg = load_config(str(config_file))
    assert cfg["defaults"]["log_level"] == "INFO"
    assert cfg["summarize"]["max_depth"] == 3
    assert "title" not in cfg


def test_config_loader_missing_file(tmp_path: Path) -> None:
    """Test that an explicit path that does not exist gives no config."""
    assert load_config(str(tmp_path / "missing.toml")) == {}


def test_config_loader_default_locations(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the fallback to recap-config.toml in the working directory."""
    local = tmp_path / "recap-config.toml"
    local.write_text('[chat]\nhistory-tokens = 500\n')
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "nope" / "config.toml")
    monkeypatch.setattr(config, "CONFIG_PATH_2", local)
    assert load_config() == {"chat": {"history_tokens": 500}}


def test_set_config_defaults(config_file: Path) -> None:
    """Test that [defaults] applies everywhere and command tables override it."""
    mock_main_command = MagicMock()
    mock_main_command.commands = {
        "summarize": Command(name="summarize"),
        "chat": Command(name="chat"),
    }
    ctx = Context(command=mock_main_command)

    set_config_defaults(ctx, str(config_file))

    assert ctx.default_map is not None
    assert ctx.default_map["summarize"]["model"] == "summarize-model"
    assert ctx.default_map["summarize"]["base_url"] == "http://gpu-box:11434/v1"
    assert ctx.default_map["chat"] == {
        "log_level": "INFO",
        "base_url": "http://gpu-box:11434/v1",
        "model": "default-model",
    }


@patch("recap.agents.status.setup_logging")
@patch("recap.agents.status.check_engine", new_callable=AsyncMock)
def test_config_file_reaches_command(
    mock_check_engine: AsyncMock,
    mock_setup_logging: MagicMock,
    config_file: Path,
) -> None:
    """Test that values from the config file become command defaults."""
    mock_check_engine.return_value = Capability.AVAILABLE
    result = runner.invoke(app, ["--config", str(config_file), "status"])
    assert result.exit_code == 0, result.output

    engine_cfg = mock_check_engine.call_args.args[0]
    assert engine_cfg.model == "default-model"
    assert engine_cfg.base_url == "http://gpu-box:11434/v1"
    assert engine_cfg.context_tokens == 8192
    mock_setup_logging.assert_called_once_with("INFO", None, quiet=False)


@patch("recap.agents.status.setup_logging")
@patch("recap.agents.status.check_engine", new_callable=AsyncMock)
def test_command_line_overrides_config(
    mock_check_engine: AsyncMock,
    mock_setup_logging: MagicMock,  # noqa: ARG001
    config_file: Path,
) -> None:
    """Test that explicit options win over the config file."""
    mock_check_engine.return_value = Capability.AVAILABLE
    result = runner.invoke(app, ["--config", str(config_file), "status", "--model", "cli-model"])
    assert result.exit_code == 0, result.output
    assert mock_check_engine.call_args.args[0].model == "cli-model"


class TestModels:
    """Tests for the configuration models."""

    def test_engine_strips_trailing_slash(self) -> None:
        """Test base URL normalization."""
        assert config.Engine(base_url="http://localhost:11434/v1/").base_url == (
            "http://localhost:11434/v1"
        )

    def test_engine_context_tokens_positive(self) -> None:
        """Test that a zero context size is rejected."""
        with pytest.raises(ValidationError):
            config.Engine(context_tokens=0)

    def test_chat_mode_literal(self) -> None:
        """Test that only the two chat modes are accepted."""
        assert config.Chat(mode="page").mode == "page"
        with pytest.raises(ValidationError):
            config.Chat(mode="shopping")

    def test_chunking_defaults(self) -> None:
        """Test chunking defaults."""
        chunking = config.Chunking()
        assert (chunking.overlap, chunking.max_depth) == (200, 5)

    def test_general_expands_log_file(self) -> None:
        """Test that ~ is expanded in the log file path."""
        general = config.General(log_file="~/recap.log")
        assert general.log_file is not None
        assert not general.log_file.startswith("~")
