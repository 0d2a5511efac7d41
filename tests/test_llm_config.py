"""Tests for chat configuration and model construction."""

import pytest

from agents.errors import ConfigurationError
from agents.llm_config import (
    DEFAULT_MODEL,
    ChatConfig,
    api_key_prefix,
    get_default_model,
    get_model_from_config,
    merge_config,
    model_settings_for,
    validate_api_key,
)


def test_merge_config_defaults_and_overlay():
    config = merge_config(None)
    assert config.model == DEFAULT_MODEL
    assert config.temperature == 0.7
    assert config.max_tokens == 4096
    assert config.tools == []

    config = merge_config({"temperature": 0.2, "maxTokens": 100, "tools": ["ask_rating"]})
    assert config.temperature == 0.2
    assert config.max_tokens == 100
    assert config.model == DEFAULT_MODEL


def test_model_settings():
    assert model_settings_for(ChatConfig()) == {"temperature": 0.7, "max_tokens": 4096}
    settings = model_settings_for(ChatConfig(reasoning_effort="low"))
    assert settings["openai_reasoning_effort"] == "low"


def test_api_key_validation(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        validate_api_key()
    with pytest.raises(ConfigurationError):
        get_default_model()
    assert api_key_prefix() == "not set"

    monkeypatch.setenv("OPENAI_API_KEY", "sk-abcdefghijk")
    assert validate_api_key() == "sk-abcdefghijk"
    assert api_key_prefix() == "sk-abcd"


def test_local_ollama_model_needs_no_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)
    model = get_model_from_config("ollama", "")
    assert model.model_name == "llama3.2"
    model = get_model_from_config("openai", "gpt-4o-mini", api_key="sk-test")
    assert model.model_name == "gpt-4o-mini"
