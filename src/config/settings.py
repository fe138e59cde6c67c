"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# pydantic-settings reads configuration from (highest priority first):
#
#   1. **Environment variables** - e.g. ANTHROPIC_API_KEY=sk-ant-...
#   2. **.env.local** - per-machine overrides, never committed
#   3. **.env** - shared local defaults
#
# Field name `anthropic_api_key` maps to env var `ANTHROPIC_API_KEY`.
# Pipeline tuning knobs (spread threshold, concurrency windows, ...) live
# in config/config.yaml instead; see src/config/loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Skate magazine archive settings.

    Environment variables override defaults. Loaded from ``.env`` and
    ``.env.local`` when present (later files win).
    """

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM Providers ===
    # Empty string = "not configured"; the CLI picks the first provider
    # with a key (Anthropic, then OpenAI-compatible).
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-20241022"
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = ""
    openai_vision_model: str = ""

    # === Catalog storage ===
    database_path: str = "data/skate-mag.db"
    # Web root; page images and relative PDF paths resolve under it.
    public_dir: str = "public"

    # === Geocoding ===
    # Nominatim's usage policy requires an identifying User-Agent.
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    nominatim_user_agent: str = "SkateMagArchive/1.0 (geocoding locations)"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        return providers
