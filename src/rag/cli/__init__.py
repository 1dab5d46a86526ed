"""rag CLI -- interactive streaming chat agent.

This module is not imported from rag/__init__.py. It is loaded via the
``rag`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.logging import RichHandler

from rag._version import __version__
from rag.conversation import DEFAULT_CAPACITY, ConversationState
from rag.exceptions import ConfigError, HookError
from rag.formatting import format_error, get_console, get_error_console
from rag.llm.errors import LLMConfigError
from rag.models.config import load_config, save_config
from rag.pipeline import DEFAULT_MAX_TOOL_ROUNDS

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(
        console=get_error_console(),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


@click.command()
@click.option("--sa", "--set-api-key", "set_api_key", default=None, help="Set api key and exit.")
@click.option("--sm", "--set-model", "set_model", default=None, help="Set model and exit.")
@click.option("--sb", "--set-base-url", "set_base_url", default=None, help="Set base url and exit.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the JSON config file (default: platform config dir, or $RAG_CONFIG).",
)
@click.option(
    "--capacity",
    default=DEFAULT_CAPACITY,
    show_default=True,
    type=click.IntRange(min=2),
    help="Maximum number of non-system messages kept in the conversation.",
)
@click.option(
    "--max-tool-rounds",
    default=DEFAULT_MAX_TOOL_ROUNDS,
    show_default=True,
    type=click.IntRange(min=0),
    help="Maximum follow-up requests per turn after tool calls.",
)
@click.option("--allow-commands", is_flag=True, help="Offer the ExecuteCommand tool to the model.")
@click.option("--no-history", is_flag=True, help="Do not persist input history.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.version_option(__version__, prog_name="rag")
def cli(
    set_api_key: str | None,
    set_model: str | None,
    set_base_url: str | None,
    config_path: Path | None,
    capacity: int,
    max_tool_rounds: int,
    allow_commands: bool,
    no_history: bool,
    verbose: bool,
) -> None:
    """rag: LLM agent for everything."""
    _configure_logging(verbose)
    error_console = get_error_console()

    try:
        if set_api_key is not None or set_model is not None or set_base_url is not None:
            _update_config(config_path, set_api_key, set_model, set_base_url)
            return
        _chat(config_path, capacity, max_tool_rounds, allow_commands, no_history)
    except (ConfigError, LLMConfigError, HookError) as e:
        format_error(str(e), error_console)
        raise SystemExit(1) from None


def _update_config(
    config_path: Path | None,
    api_key: str | None,
    model: str | None,
    base_url: str | None,
) -> None:
    """Persist the given settings; environment overrides are not saved."""
    config = load_config(config_path, apply_env=False)
    updates = {
        key: value
        for key, value in (("api_key", api_key), ("model", model), ("base_url", base_url))
        if value is not None
    }
    path = save_config(config.model_copy(update=updates), config_path)
    logger.info("Updated %s in %s", ", ".join(sorted(updates)), path)


def _chat(
    config_path: Path | None,
    capacity: int,
    max_tool_rounds: int,
    allow_commands: bool,
    no_history: bool,
) -> None:
    from rag.cli.reader import LineReader
    from rag.llm.client import OpenAIClient
    from rag.pipeline import TurnContext, TurnPipeline
    from rag.toolkit.definitions import default_registry

    config = load_config(config_path)
    ctx = TurnContext.create(
        config,
        conversation=ConversationState(capacity=capacity),
        registry=default_registry(allow_commands=allow_commands),
        console=get_console(),
    )
    with OpenAIClient(**config.client_kwargs()) as client:
        reader = LineReader(False if no_history else None)
        pipeline = TurnPipeline(ctx, client, max_tool_rounds=max_tool_rounds)
        pipeline.add_default_hooks()
        pipeline.run(reader)
