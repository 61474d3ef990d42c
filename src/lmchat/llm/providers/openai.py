from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse

DEFAULT_BASE_URL = "http://localhost:1234/v1"
# Local servers accept any key, but the SDK refuses to start without one.
DEFAULT_API_KEY = "lm-studio"
EMPTY_REPLY = "(The model server returned no response content.)"


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI-compatible chat servers (LM Studio, OpenAI, ...).

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion
    - Handling of missing reply content
    """

    def __init__(
        self,
        api_key: str = DEFAULT_API_KEY,
        model: str = "mistralai/ministral-3-3b",
        base_url: str | None = DEFAULT_BASE_URL,
        **client_kwargs: Any
    ):
        """Initialize the provider.

        Args:
            api_key: API key sent as bearer token
            model: Default model to use
            base_url: API base URL, e.g. 'http://localhost:1234/v1'
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            **kwargs: Additional request parameters

        Returns:
            LLMResponse with generated content
        """
        model_to_use = model or self._model

        # Build request params, only including max_tokens if set
        request_params: dict[str, Any] = {
            "model": model_to_use,
            "messages": [{"role": msg.role, "content": msg.content} for msg in messages],
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        content = None
        if completion.choices:
            content = completion.choices[0].message.content

        return LLMResponse(
            content=content if content is not None else EMPTY_REPLY,
            model=completion.model or model_to_use,
            usage=usage
        )

    async def list_models(self) -> list[str]:
        """List model ids from the server's /models endpoint."""
        page = await self._client.models.list()
        return [m.id for m in page.data if isinstance(m.id, str)]

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()
