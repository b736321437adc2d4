"""Concrete provider clients and the provider registry."""

from typing import Dict, Type

from .model_config import GROQ_MODELS, OPENROUTER_MODELS
from .openai_client import ProviderClient


class GroqClient(ProviderClient):
    """Groq: fast hosted open-weight models."""

    name = "groq"
    BASE_URL = "https://api.groq.com/openai/v1"
    DEFAULT_TIMEOUT_MS = 30000
    ROSTER = GROQ_MODELS


class OpenRouterClient(ProviderClient):
    """OpenRouter: free-tier models from several vendors."""

    name = "openrouter"
    BASE_URL = "https://openrouter.ai/api/v1"
    DEFAULT_TIMEOUT_MS = 30000
    ROSTER = OPENROUTER_MODELS


PROVIDERS: Dict[str, Type[ProviderClient]] = {
    GroqClient.name: GroqClient,
    OpenRouterClient.name: OpenRouterClient,
}


def create_provider(name: str, api_key: str, **kwargs) -> ProviderClient:
    """Instantiate a provider client by name.

    Args:
        name: Registered provider name
        api_key: Provider API key
        **kwargs: Passed through to the client constructor

    Raises:
        ValueError: If the provider is unknown
    """
    try:
        provider_cls = PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown provider '{name}' (available: {', '.join(sorted(PROVIDERS))})"
        ) from None
    return provider_cls(api_key, **kwargs)
