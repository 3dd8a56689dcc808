"""
Threat intel dashboard configuration.

Nothing is required at startup. The completion-service credential and the
/analyze shared secret are validated lazily when the component that needs them
is first invoked, via validate_for(). The database defaults to a local SQLite
file so the API can boot without any environment at all.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from threatintel.errors import ConfigurationError

# Maps each component name to the settings fields it requires.
_COMPONENT_REQUIRED_FIELDS: dict[str, list[str]] = {
    "analyze": [
        "openrouter_api_key",
    ],
    "analyze_endpoint": [
        "analysis_api_key",
    ],
    "store": [],
}

_KNOWN_COMPONENTS = set(_COMPONENT_REQUIRED_FIELDS.keys())

# Primary model first, cheaper / more available fallbacks after.
DEFAULT_MODELS: list[str] = [
    "anthropic/claude-3.5-sonnet",
    "anthropic/claude-3-haiku",
    "mistralai/mixtral-8x7b-instruct",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Completion service (OpenRouter-compatible chat completions)
    # ------------------------------------------------------------------
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_models: list[str] = Field(default_factory=lambda: list(DEFAULT_MODELS))
    openrouter_referer: str = "https://threatintel.app"
    openrouter_title: str = "ThreatIntel AI Analysis"
    openrouter_timeout_seconds: float = 60.0

    # ------------------------------------------------------------------
    # POST /analyze shared secret
    # ------------------------------------------------------------------
    analysis_api_key: Optional[str] = None

    # ------------------------------------------------------------------
    # Store
    # ------------------------------------------------------------------
    database_url: str = "sqlite:///./threatintel.db"
    database_echo: bool = False

    # App
    log_level: str = "INFO"
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    def validate_for(self, component: str) -> None:
        """Assert that all settings required by *component* are present.

        Call this at the top of each component's entry point before doing
        any work.

        Raises:
            ValueError: If *component* is not a recognised component.
            ConfigurationError: If one or more required settings are absent.
        """
        if component not in _KNOWN_COMPONENTS:
            raise ValueError(
                f"Unknown component '{component}'. "
                f"Known components: {', '.join(sorted(_KNOWN_COMPONENTS))}"
            )

        required = _COMPONENT_REQUIRED_FIELDS[component]
        missing = [
            field for field in required if not getattr(self, field, None)
        ]

        if missing:
            missing_vars = ", ".join(m.upper() for m in missing)
            raise ConfigurationError(
                f"Component '{component}' cannot run: "
                f"missing required environment variables: {missing_vars}. "
                f"Set these in your .env file (see .env.example)."
            )


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    In tests, clear the cache with get_settings.cache_clear() after
    patching environment variables, or instantiate Settings() directly
    with _env_file=None to avoid reading the .env file.
    """
    return Settings()
