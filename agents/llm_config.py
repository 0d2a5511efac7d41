"""LLM provider/config and model construction for Family Glitch."""

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agents.errors import ConfigurationError

# Type alias for the model handed to model_request(); pydantic-ai accepts Model | str
ModelT = Any

# Default env var names
ENV_OPENAI_API_KEY = "OPENAI_API_KEY"
ENV_OLLAMA_BASE_URL = "OLLAMA_BASE_URL"
ENV_OLLAMA_API_KEY = "OLLAMA_API_KEY"
ENV_DEFAULT_PROVIDER = "DEFAULT_PROVIDER"
ENV_DEFAULT_MODEL = "DEFAULT_MODEL"

DEFAULT_MODEL = "gpt-5.2"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4096

# Hard ceiling on model round-trips per chat request
MAX_TOOL_ITERATIONS = 10

API_KEY_PREFIX_LENGTH = 7


class ChatConfig(BaseModel):
    """Per-request model settings. An empty tools list means every registered tool."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    model: str = DEFAULT_MODEL
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0, le=2)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)
    tools: list[str] = Field(default_factory=list)
    reasoning_effort: Literal["low", "medium", "high", "xhigh"] | None = None


def merge_config(user_config: dict[str, Any] | ChatConfig | None = None) -> ChatConfig:
    """Overlay a partial user config on the defaults."""
    if user_config is None:
        return ChatConfig()
    if isinstance(user_config, ChatConfig):
        return user_config.model_copy()
    return ChatConfig.model_validate(user_config)


def model_settings_for(config: ChatConfig) -> dict[str, Any]:
    """pydantic-ai ModelSettings (a TypedDict) for the configured sampling options."""
    settings: dict[str, Any] = {
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
    }
    if config.reasoning_effort:
        settings["openai_reasoning_effort"] = config.reasoning_effort
    return settings


def validate_api_key() -> str:
    """Return the configured OpenAI key or raise ConfigurationError."""
    key = os.environ.get(ENV_OPENAI_API_KEY)
    if not key:
        raise ConfigurationError(f"{ENV_OPENAI_API_KEY} is not set in environment variables")
    return key


def api_key_prefix() -> str:
    """First characters of the configured key, for diagnostics only."""
    key = os.environ.get(ENV_OPENAI_API_KEY)
    return key[:API_KEY_PREFIX_LENGTH] if key else "not set"


# provider -> (base URL env var or fixed URL, key env var, default model); None means the client default
PROVIDERS: dict[str, tuple[str | None, str | None, str]] = {
    "openai": (None, ENV_OPENAI_API_KEY, DEFAULT_MODEL),
    "ollama": (ENV_OLLAMA_BASE_URL, None, "llama3.2"),
    "ollama_cloud": ("https://ollama.com/v1", ENV_OLLAMA_API_KEY, "llama3.2"),
}
OLLAMA_LOCAL_URL = "http://localhost:11434/v1"


def _base_url(source: str | None) -> str | None:
    if source is None or source.startswith("http"):
        return source
    return os.environ.get(source, OLLAMA_LOCAL_URL)


def get_model_from_config(provider: str, model_name: str, api_key: str | None = None) -> ModelT:
    """
    OpenAI-compatible chat model for a provider name. Unknown providers are treated as openai.
    The key defaults to the provider's env var; local ollama needs none.
    """
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    url_source, key_env, default_name = PROVIDERS.get(provider, PROVIDERS["openai"])
    key = api_key or (os.environ.get(key_env) if key_env else None)
    name = model_name or os.environ.get(ENV_DEFAULT_MODEL) or default_name
    base_url = _base_url(url_source)

    if base_url is None:
        return OpenAIChatModel(name, provider=OpenAIProvider(api_key=key) if key else OpenAIProvider())
    # Ollama accepts any non-empty key
    return OpenAIChatModel(name, provider=OpenAIProvider(base_url=base_url, api_key=key or "ollama"))


def get_default_model(config: ChatConfig | None = None) -> ModelT:
    """Model for the server's default provider; DEFAULT_MODEL env overrides the config's model name."""
    provider = os.environ.get(ENV_DEFAULT_PROVIDER, "openai")
    if provider == "openai":
        validate_api_key()
    model_name = os.environ.get(ENV_DEFAULT_MODEL) or (config.model if config else "")
    return get_model_from_config(provider, model_name)
