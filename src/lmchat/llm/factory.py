from typing import Any

from .base import LLMProvider
from .providers import OpenAIProvider


def create_llm_provider(provider: str = "lmstudio", **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    This factory function hides the instantiation logic for different providers.

    Args:
        provider: Provider type ('lmstudio' or 'openai')
        **config: Provider-specific configuration
            For both:
                - api_key: str (default: 'lm-studio')
                - model: str
                - base_url: str | None (default: 'http://localhost:1234/v1')

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported

    Examples:
        >>> provider = create_llm_provider(
        ...     "lmstudio",
        ...     base_url="http://localhost:1234/v1",
        ...     model="mistralai/ministral-3-3b"
        ... )
    """
    provider_lower = provider.lower()

    if provider_lower in ("lmstudio", "openai"):
        return OpenAIProvider(**config)

    raise ValueError(
        f"Unsupported provider: {provider}. "
        f"Supported providers: 'lmstudio', 'openai'"
    )
