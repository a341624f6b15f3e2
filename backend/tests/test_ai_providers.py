import pytest

from cvtailor.config import get_settings
from cvtailor.exceptions import AIResponseError, ProviderError
from cvtailor.models import User
from cvtailor.services.ai_providers import (
    SUPPORTED_PROVIDERS,
    create_ai_provider,
    parse_json_response,
    resolve_provider,
)
from cvtailor.services.encryption import encrypt
from cvtailor.services.models_registry import parse_model


def test_parse_plain_and_fenced_json():
    assert parse_json_response('{"summary": "ok"}') == {"summary": "ok"}
    assert parse_json_response('```json\n{"summary": "ok"}\n```') == {"summary": "ok"}
    assert parse_json_response('Here you go: {"a": 1} hope this helps') == {"a": 1}


@pytest.mark.parametrize("text", ["no json at all", "[1, 2, 3]", "{broken"])
def test_parse_rejects_non_objects(text):
    with pytest.raises(AIResponseError):
        parse_json_response(text)


def test_resolve_users_own_key():
    user = User(id="u1", api_key_encrypted=encrypt("sk-own"), api_key_provider="anthropic",
                api_key_model="claude-sonnet-4-5")
    credentials = resolve_provider(user)
    assert (credentials.provider, credentials.api_key, credentials.model) == (
        "anthropic", "sk-own", "claude-sonnet-4-5"
    )
    assert credentials.source == "user"


def test_resolve_falls_back_to_platform_key(monkeypatch):
    monkeypatch.setattr(get_settings(), "gemini_api_key", "platform-key")
    credentials = resolve_provider(User(id="u2"))
    assert credentials.provider == "google"
    assert credentials.source == "platform"


def test_resolve_without_any_key():
    with pytest.raises(ProviderError) as exc_info:
        resolve_provider(User(id="u3"), "Geen API key")
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Geen API key"


def test_unknown_provider_is_rejected():
    assert "openai" in SUPPORTED_PROVIDERS
    with pytest.raises(ProviderError):
        create_ai_provider("made-up", "key")


def test_parse_model_skips_embeddings_and_reads_pricing():
    assert parse_model("openai", "OpenAI", "text-embedding-3", {"name": "Text Embedding 3"}) is None
    assert parse_model("openai", "OpenAI", "dall-e", {"modalities": {"input": ["text"], "output": ["image"]}}) is None

    model = parse_model("openai", "OpenAI", "gpt-4o", {
        "name": "GPT-4o",
        "tool_call": True,
        "cost": {"input": 2.5, "output": 10},
        "limit": {"context": 128000, "output": 16384},
        "last_updated": "2024-08-06",
    })
    assert model.capabilities.structured_output
    assert model.pricing.output == 10
    assert model.limits.context == 128000
    assert model.to_wire()["providerId"] == "openai"
