"""Client settings model.

The aliases are the persisted field names and must stay stable.
"""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_API_BASE_URL = "http://localhost:1234/v1"
DEFAULT_MODEL_ID = "mistralai/ministral-3-3b"
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Answer clearly and politely."
DEFAULT_TEMPERATURE = 0.7
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


class ChatSettings(BaseModel):
    """Connection and generation settings for the chat client."""

    model_config = ConfigDict(populate_by_name=True)

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, alias="apiBaseUrl")
    model_id: str = Field(default=DEFAULT_MODEL_ID, alias="modelId")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    temperature: float = Field(
        default=DEFAULT_TEMPERATURE, ge=MIN_TEMPERATURE, le=MAX_TEMPERATURE
    )
    max_tokens: int | None = Field(default=None, gt=0, alias="maxTokens")

    def api_url(self, path: str) -> str:
        """Join the base URL and an endpoint path."""
        return self.api_base_url.rstrip("/") + path


def model_display_name(model_id: str) -> str:
    """Short name for a model id.

    ``"mistralai/ministral-3-3b"`` becomes ``"ministral-3-3b"``.
    """
    if not model_id:
        return "Not set"
    return model_id.split("/")[-1] or model_id
