"""
AI provider adapter.

Maps a provider id and API key to a client that answers a system + user
prompt with a JSON object. Native SDKs are used for OpenAI, Anthropic and
Google; other providers go through the OpenAI SDK with their own base URL.
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import get_settings
from ..exceptions import AIResponseError, ProviderError
from ..schemas.cv import TokenUsage
from .encryption import decrypt

logger = logging.getLogger(__name__)
settings = get_settings()

NATIVE_PROVIDERS = ["openai", "anthropic", "google", "google-vertex"]

OPENAI_COMPATIBLE_PROVIDERS = {
    "groq": "https://api.groq.com/openai/v1",
    "mistral": "https://api.mistral.ai/v1",
    "deepseek": "https://api.deepseek.com/v1",
    "fireworks": "https://api.fireworks.ai/inference/v1",
    "together": "https://api.together.xyz/v1",
    "azure": "https://models.inference.ai.azure.com",
}

SUPPORTED_PROVIDERS = NATIVE_PROVIDERS + list(OPENAI_COMPATIBLE_PROVIDERS)

JSON_ONLY = "Respond with a single valid JSON object and nothing else."

MISSING_KEY_MESSAGE = "API key not configured. Please add your API key in Settings."


@dataclass
class AICredentials:
    provider: str
    api_key: str
    model: str
    source: str = "user"


def parse_json_response(text: str) -> dict:
    """Parse a model answer as JSON, tolerating markdown code fences around it."""
    response_text = (text or "").strip()
    if response_text.startswith("```json"):
        response_text = response_text[7:]
    if response_text.startswith("```"):
        response_text = response_text[3:]
    if response_text.endswith("```"):
        response_text = response_text[:-3]
    response_text = response_text.strip()

    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        start, end = response_text.find("{"), response_text.rfind("}")
        if start < 0 or end <= start:
            logger.error(f"Model returned no JSON object: {response_text[:500]}")
            raise AIResponseError("AI response was not valid JSON")
        try:
            parsed = json.loads(response_text[start:end + 1])
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {e}")
            raise AIResponseError("AI response was not valid JSON", details=str(e))

    if not isinstance(parsed, dict):
        raise AIResponseError("AI response was not a JSON object")
    return parsed


class AIProvider:
    """Base class: subclasses implement _complete() for one SDK."""

    def __init__(self, provider_id: str, api_key: str):
        self.provider_id = provider_id
        self.api_key = api_key

    async def _complete(self, model: str, system: str, prompt: str,
                        temperature: float) -> Tuple[str, TokenUsage]:
        raise NotImplementedError

    async def generate_json(self, model: str, system: str, prompt: str,
                            temperature: float = 0.7) -> Tuple[dict, TokenUsage]:
        text, usage = await self._complete(model, f"{system}\n\n{JSON_ONLY}", prompt, temperature)
        return parse_json_response(text), usage


class OpenAIProvider(AIProvider):
    def __init__(self, provider_id: str, api_key: str, base_url: Optional[str] = None):
        super().__init__(provider_id, api_key)
        from openai import AsyncOpenAI
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _complete(self, model, system, prompt, temperature):
        kwargs = {}
        if self.provider_id == "openai":
            kwargs["response_format"] = {"type": "json_object"}
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
            **kwargs,
        )
        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
            )
        return response.choices[0].message.content or "", usage


class AnthropicProvider(AIProvider):
    max_tokens = 8192

    def __init__(self, provider_id: str, api_key: str):
        super().__init__(provider_id, api_key)
        from anthropic import AsyncAnthropic
        self.client = AsyncAnthropic(api_key=api_key)

    async def _complete(self, model, system, prompt, temperature):
        response = await self.client.messages.create(
            model=model,
            max_tokens=self.max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
        )
        text = "".join(block.text for block in response.content if block.type == "text")
        usage = TokenUsage(
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
        )
        return text, usage


class GoogleProvider(AIProvider):
    def __init__(self, provider_id: str, api_key: str):
        super().__init__(provider_id, api_key)
        from google import genai
        self.client = genai.Client(api_key=api_key)

    async def _complete(self, model, system, prompt, temperature):
        from google import genai
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=prompt,
            config=genai.types.GenerateContentConfig(
                system_instruction=system,
                temperature=temperature,
                response_mime_type="application/json",
            ),
        )
        usage = TokenUsage()
        metadata = response.usage_metadata
        if metadata:
            usage = TokenUsage(
                prompt_tokens=metadata.prompt_token_count or 0,
                completion_tokens=metadata.candidates_token_count or 0,
            )
        return response.text or "", usage


def create_ai_provider(provider_id: str, api_key: str) -> AIProvider:
    if provider_id == "openai":
        return OpenAIProvider(provider_id, api_key)
    if provider_id == "anthropic":
        return AnthropicProvider(provider_id, api_key)
    if provider_id in ("google", "google-vertex"):
        return GoogleProvider(provider_id, api_key)
    if provider_id in OPENAI_COMPATIBLE_PROVIDERS:
        return OpenAIProvider(provider_id, api_key, base_url=OPENAI_COMPATIBLE_PROVIDERS[provider_id])

    raise ProviderError(
        400,
        f'Provider "{provider_id}" is not yet supported. '
        f'Supported providers: {", ".join(SUPPORTED_PROVIDERS)}',
    )


def resolve_provider(user, missing_message: str = MISSING_KEY_MESSAGE) -> AICredentials:
    """
    Credentials for a user's AI calls: their own decrypted key, else the
    platform Gemini key when one is configured.
    """
    if user.api_key_encrypted:
        try:
            api_key = decrypt(user.api_key_encrypted)
        except Exception as e:
            logger.exception(f"Failed to decrypt API key for user {user.id}")
            raise ProviderError(500, "Failed to decrypt API key", details=str(e))
        return AICredentials(
            provider=user.api_key_provider,
            api_key=api_key,
            model=user.api_key_model,
        )

    if settings.gemini_api_key:
        return AICredentials(
            provider="google",
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            source="platform",
        )

    raise ProviderError(400, missing_message)


async def generate_json(credentials: AICredentials, system: str, prompt: str,
                        temperature: float = 0.7) -> Tuple[dict, TokenUsage]:
    """One JSON completion with the given credentials."""
    provider = create_ai_provider(credentials.provider, credentials.api_key)
    return await provider.generate_json(credentials.model, system, prompt, temperature)
