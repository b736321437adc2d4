"""Configuration loading: YAML file, .env and environment variables."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .models import Strategy

logger = logging.getLogger(__name__)

# Environment variables consulted when a provider has no configured key
API_KEY_ENV = {
    "groq": "GROQ_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

_ENV_VAR = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ProviderSettings(BaseModel):
    """Credentials and transport settings of one provider."""
    api_key: Optional[str] = None
    timeout_ms: int = Field(default=30000, gt=0)
    base_url: Optional[str] = None


class TranslationSettings(BaseModel):
    """Defaults for translation sessions."""
    target_language: str = "en"
    strategy: Strategy = Strategy.MINIMAL
    max_chunk_chars: int = Field(default=1200, gt=0)
    chunk_delay_ms: int = Field(default=1000, ge=0)
    max_retries: int = Field(default=5, ge=1)
    backoff_base_ms: int = Field(default=1000, ge=0)
    backoff_cap_ms: int = Field(default=10000, ge=0)
    min_quality: float = Field(default=0.6, ge=0.0, le=1.0)
    min_coverage: float = Field(default=0.8, ge=0.0, le=1.0)


class TranslatorConfig(BaseModel):
    """Top-level configuration."""
    provider: str = "groq"
    fallback_providers: List[str] = Field(default_factory=lambda: ["openrouter"])
    model: Optional[str] = None
    providers: Dict[str, ProviderSettings] = Field(default_factory=dict)
    translation: TranslationSettings = Field(default_factory=TranslationSettings)
    performance_file: Optional[str] = None

    @field_validator("provider")
    @classmethod
    def _lower_provider(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("fallback_providers")
    @classmethod
    def _lower_fallbacks(cls, value: List[str]) -> List[str]:
        return [name.strip().lower() for name in value]

    def provider_order(self) -> List[str]:
        """Primary provider followed by fallbacks, without duplicates."""
        order = []
        for name in [self.provider] + self.fallback_providers:
            if name not in order:
                order.append(name)
        return order

    def settings_for(self, provider: str) -> ProviderSettings:
        return self.providers.get(provider) or ProviderSettings()

    def available_providers(self) -> List[str]:
        """Providers in failover order that have an API key."""
        return [name for name in self.provider_order() if self.settings_for(name).api_key]


def expand_env(value: Any) -> Any:
    """Recursively replace ``${VAR}`` placeholders with environment values.

    Unset variables expand to an empty string.
    """
    if isinstance(value, str):
        return _ENV_VAR.sub(lambda m: os.getenv(m.group(1), ""), value)
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    return value


def load_config(config_path: Optional[str] = None, require_keys: bool = True) -> TranslatorConfig:
    """Load configuration.

    Args:
        config_path: Path to config YAML file (defaults are used if missing)
        require_keys: Raise if no provider ends up with an API key

    Returns:
        Validated TranslatorConfig

    Raises:
        ValueError: If no provider has an API key (and ``require_keys``)
    """
    load_dotenv()

    data: Dict[str, Any] = {}
    if config_path and Path(config_path).exists():
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        logger.debug(f"Loaded configuration from {config_path}")
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using defaults")

    config = TranslatorConfig.model_validate(expand_env(data))
    fill_api_keys(config)

    if require_keys and not config.available_providers():
        names = ", ".join(API_KEY_ENV[name] for name in config.provider_order() if name in API_KEY_ENV)
        raise ValueError(f"No API key configured (set {names or 'a provider api_key'})")

    return config


def fill_api_keys(config: TranslatorConfig) -> TranslatorConfig:
    """Fill missing provider API keys from the environment."""
    for name in config.provider_order():
        settings = config.providers.setdefault(name, ProviderSettings())
        if not settings.api_key and name in API_KEY_ENV:
            settings.api_key = os.getenv(API_KEY_ENV[name]) or None
    return config
