# =============================================================================
# src/cli/common.py — Shared wiring for the CLI tools
# =============================================================================
#
# Every CLI is a one-shot script that builds its own services.  The pieces
# they all need live here:
#
#   load_runtime()        Settings + resolved config + logging setup
#   open_catalog()        SQLite catalog with tables created
#   build_llm_provider()  first LLM provider with an API key
#                         (Anthropic -> OpenAI-compatible)
#   parse_args()          argparse with usage errors mapped to exit code 1
#
# Provider imports are deferred into the functions so commands that never
# call an LLM (admin, add_magazine) don't load the SDKs.
# =============================================================================

"""Shared construction helpers for the command-line tools."""

from __future__ import annotations

import argparse
import sys

from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.catalog_provider import ICatalogProvider
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging


def load_runtime(config_path: str = "config/config.yaml") -> tuple[Settings, dict]:
    """Read settings and config, and configure logging from them."""
    app_settings = Settings()
    config = load_config(config_path, settings=app_settings)
    configure_logging(
        log_level=config["logging"]["level"],
        json_output=config["app"]["env"] == "production",
    )
    return app_settings, config


async def open_catalog(config: dict) -> ICatalogProvider:
    from src.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider

    catalog = SQLiteCatalogProvider(db_path=config["storage"]["database_path"])
    await catalog.initialize()
    return catalog


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first LLM provider with a configured API key.

    Priority: Anthropic (Claude) -> OpenAI / OpenAI-compatible.

    Raises
    ------
    ConfigurationError
        If neither ``ANTHROPIC_API_KEY`` nor ``OPENAI_API_KEY`` is set.
    """
    if app_settings.anthropic_api_key:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider

        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        return OpenAILLMProvider(settings=app_settings)

    raise ConfigurationError(
        message=(
            "No LLM API key configured. Set ANTHROPIC_API_KEY "
            "(or OPENAI_API_KEY) in the environment or .env.local"
        ),
    )


def parse_args(parser: argparse.ArgumentParser, argv: list[str] | None = None) -> argparse.Namespace:
    """Parse *argv*, turning argparse's usage-error exit status (2) into 1."""
    try:
        return parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code:
            sys.exit(1)
        raise
