"""
AI models registry backed by the models.dev repository on GitHub.

Provider and model TOML files are fetched with httpx, cached in-process for
settings.models_cache_ttl_seconds, and merged over a static fallback list.
"""
import asyncio
import logging
import time
import tomllib
from typing import Dict, List, Optional

import httpx
from pydantic import Field

from ..config import get_settings
from ..schemas.base import CamelModel

logger = logging.getLogger(__name__)
settings = get_settings()

SUPPORTED_PROVIDER_IDS = [
    "openai", "anthropic", "google", "google-vertex", "azure", "groq",
    "mistral", "cohere", "deepseek", "fireworks", "together",
]
PROVIDER_ORDER = [
    "openai", "anthropic", "google", "groq", "mistral", "deepseek",
    "together", "fireworks", "google-vertex", "azure", "cohere",
]
GITHUB_CONTENTS_API = "https://api.github.com/repos/anomalyco/models.dev/contents/providers"
MAX_MODELS_PER_PROVIDER = 50
BATCH_SIZE = 5


class ModelCapabilities(CamelModel):
    tool_call: bool = False
    reasoning: bool = False
    structured_output: bool = False


class ModelPricing(CamelModel):
    input: float = 0
    output: float = 0
    cache_read: Optional[float] = None


class ModelLimits(CamelModel):
    context: int = 0
    output: int = 0


class ModelModalities(CamelModel):
    input: List[str] = Field(default_factory=lambda: ["text"])
    output: List[str] = Field(default_factory=lambda: ["text"])


class ModelInfo(CamelModel):
    id: str
    name: str
    family: str = ""
    provider: str
    provider_id: str
    capabilities: ModelCapabilities = Field(default_factory=ModelCapabilities)
    pricing: ModelPricing = Field(default_factory=ModelPricing)
    limits: ModelLimits = Field(default_factory=ModelLimits)
    modalities: Optional[ModelModalities] = None
    release_date: Optional[str] = None
    last_updated: Optional[str] = None


class ProviderInfo(CamelModel):
    id: str
    name: str
    models: List[ModelInfo] = Field(default_factory=list)


# ============================================================================
# Static fallback
# ============================================================================

def _fallback(provider_id: str, provider: str, models: list) -> ProviderInfo:
    return ProviderInfo(
        id=provider_id,
        name=provider,
        models=[
            ModelInfo(
                id=model_id, name=name, family=family, provider=provider, provider_id=provider_id,
                capabilities=ModelCapabilities(tool_call=tool_call, reasoning=reasoning, structured_output=True),
                pricing=ModelPricing(input=price_in, output=price_out),
                limits=ModelLimits(context=context, output=output),
            )
            for model_id, name, family, tool_call, reasoning, price_in, price_out, context, output in models
        ],
    )


FALLBACK_PROVIDERS: List[ProviderInfo] = [
    _fallback("openai", "OpenAI", [
        ("gpt-4o", "GPT-4o", "gpt", True, False, 2.5, 10, 128000, 16384),
        ("gpt-4o-mini", "GPT-4o Mini", "gpt", True, False, 0.15, 0.6, 128000, 16384),
        ("o1", "o1", "o1", True, True, 15, 60, 200000, 100000),
        ("o1-mini", "o1 Mini", "o1", True, True, 3, 12, 128000, 65536),
    ]),
    _fallback("anthropic", "Anthropic", [
        ("claude-sonnet-4-20250514", "Claude Sonnet 4", "claude", True, True, 3, 15, 200000, 64000),
        ("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", "claude", True, False, 3, 15, 200000, 8192),
        ("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", "claude", True, False, 1, 5, 200000, 8192),
    ]),
    _fallback("google", "Google", [
        ("gemini-2.0-flash", "Gemini 2.0 Flash", "gemini", True, False, 0.1, 0.4, 1000000, 8192),
        ("gemini-1.5-pro", "Gemini 1.5 Pro", "gemini", True, False, 1.25, 5, 2000000, 8192),
        ("gemini-1.5-flash", "Gemini 1.5 Flash", "gemini", True, False, 0.075, 0.3, 1000000, 8192),
    ]),
    _fallback("groq", "Groq", [
        ("llama-3.3-70b-versatile", "Llama 3.3 70B", "llama", True, False, 0.59, 0.79, 128000, 32768),
        ("llama-3.1-8b-instant", "Llama 3.1 8B", "llama", True, False, 0.05, 0.08, 128000, 8192),
        ("mixtral-8x7b-32768", "Mixtral 8x7B", "mixtral", True, False, 0.24, 0.24, 32768, 4096),
    ]),
    _fallback("mistral", "Mistral", [
        ("mistral-large-latest", "Mistral Large", "mistral", True, False, 2, 6, 128000, 8192),
        ("mistral-small-latest", "Mistral Small", "mistral", True, False, 0.2, 0.6, 32000, 8192),
    ]),
    _fallback("deepseek", "DeepSeek", [
        ("deepseek-chat", "DeepSeek V3", "deepseek", True, False, 0.27, 1.1, 64000, 8192),
        ("deepseek-reasoner", "DeepSeek R1", "deepseek", False, True, 0.55, 2.19, 64000, 8192),
    ]),
    _fallback("together", "Together AI", [
        ("meta-llama/Llama-3.3-70B-Instruct-Turbo", "Llama 3.3 70B Turbo", "llama", True, False, 0.88, 0.88, 128000, 8192),
        ("Qwen/Qwen2.5-72B-Instruct-Turbo", "Qwen 2.5 72B Turbo", "qwen", True, False, 1.2, 1.2, 32768, 8192),
    ]),
    _fallback("fireworks", "Fireworks", [
        ("accounts/fireworks/models/llama-v3p3-70b-instruct", "Llama 3.3 70B", "llama", True, False, 0.9, 0.9, 128000, 8192),
        ("accounts/fireworks/models/qwen2p5-72b-instruct", "Qwen 2.5 72B", "qwen", True, False, 0.9, 0.9, 32768, 8192),
    ]),
]


# ============================================================================
# Fetching
# ============================================================================

_cache: Dict[str, ProviderInfo] = {}
_last_fetch = 0.0


def _github_headers() -> dict:
    headers = {"Accept": "application/vnd.github.v3+json"}
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"
    return headers


def parse_model(provider_id: str, provider_name: str, model_id: str, data: dict) -> Optional[ModelInfo]:
    """ModelInfo from a model TOML document; None for embedding and non-text models."""
    name = data.get("name") or model_id
    if "embed" in name.lower():
        return None
    modalities = data.get("modalities")
    if modalities and modalities.get("output") and "text" not in modalities["output"]:
        return None

    cost = data.get("cost") or {}
    limit = data.get("limit") or {}
    return ModelInfo(
        id=model_id,
        name=name,
        family=data.get("family", ""),
        provider=provider_name,
        provider_id=provider_id,
        capabilities=ModelCapabilities(
            tool_call=bool(data.get("tool_call")),
            reasoning=bool(data.get("reasoning")),
            structured_output=bool(data.get("tool_call") or data.get("structured_output") or data.get("json_mode")),
        ),
        pricing=ModelPricing(
            input=cost.get("input", 0),
            output=cost.get("output", 0),
            cache_read=cost.get("cache_read"),
        ),
        limits=ModelLimits(context=limit.get("context", 0), output=limit.get("output", 0)),
        modalities=ModelModalities(
            input=modalities.get("input") or ["text"],
            output=modalities.get("output") or ["text"],
        ) if modalities else None,
        release_date=str(data["release_date"]) if data.get("release_date") else None,
        last_updated=str(data["last_updated"]) if data.get("last_updated") else None,
    )


def _sort_models(models: List[ModelInfo]) -> List[ModelInfo]:
    dated = sorted([m for m in models if m.last_updated], key=lambda m: m.last_updated, reverse=True)
    undated = sorted([m for m in models if not m.last_updated], key=lambda m: m.name)
    return dated + undated


async def _fetch_model(client: httpx.AsyncClient, provider_id: str, provider_name: str,
                       file_name: str) -> Optional[ModelInfo]:
    try:
        response = await client.get(
            f"{settings.models_registry_url}/providers/{provider_id}/models/{file_name}"
        )
        if response.status_code != 200:
            return None
        return parse_model(provider_id, provider_name, file_name[:-len(".toml")], tomllib.loads(response.text))
    except (httpx.HTTPError, tomllib.TOMLDecodeError, ValueError) as e:
        logger.debug(f"Skipping model {provider_id}/{file_name}: {e}")
        return None


async def fetch_provider_info(client: httpx.AsyncClient, provider_id: str) -> Optional[ProviderInfo]:
    try:
        response = await client.get(f"{settings.models_registry_url}/providers/{provider_id}/provider.toml")
        if response.status_code != 200:
            return None
        provider_name = tomllib.loads(response.text).get("name") or provider_id

        listing = await client.get(
            f"{GITHUB_CONTENTS_API}/{provider_id}/models",
            params={"ref": "dev"},
            headers=_github_headers(),
        )
        if listing.status_code != 200:
            return None
        files = [f["name"] for f in listing.json() if f.get("name", "").endswith(".toml")]
    except (httpx.HTTPError, tomllib.TOMLDecodeError, ValueError) as e:
        logger.error(f"Failed to fetch provider {provider_id}: {e}")
        return None

    models: List[ModelInfo] = []
    files = files[:MAX_MODELS_PER_PROVIDER]
    for start in range(0, len(files), BATCH_SIZE):
        batch = files[start:start + BATCH_SIZE]
        results = await asyncio.gather(
            *[_fetch_model(client, provider_id, provider_name, name) for name in batch]
        )
        models.extend(m for m in results if m is not None)

    return ProviderInfo(id=provider_id, name=provider_name, models=_sort_models(models))


async def get_providers() -> List[ProviderInfo]:
    """Providers fetched from models.dev, cached for the configured TTL."""
    global _cache, _last_fetch
    now = time.monotonic()
    if _cache and now - _last_fetch < settings.models_cache_ttl_seconds:
        return list(_cache.values())

    async with httpx.AsyncClient(timeout=20.0) as client:
        results = await asyncio.gather(
            *[fetch_provider_info(client, pid) for pid in SUPPORTED_PROVIDER_IDS]
        )

    _cache = {p.id: p for p in results if p is not None and p.models}
    _last_fetch = now
    logger.info(f"Fetched {len(_cache)} provider(s) from models.dev")
    return list(_cache.values())


async def get_providers_with_fallback() -> List[ProviderInfo]:
    """Fallback providers, replaced by fetched ones that returned at least two models."""
    merged: Dict[str, ProviderInfo] = {p.id: p for p in FALLBACK_PROVIDERS}
    try:
        for provider in await get_providers():
            if len(provider.models) >= 2:
                merged[provider.id] = provider
    except Exception:
        logger.exception("Failed to fetch providers from models.dev, using fallback only")

    ordered = [merged.pop(pid) for pid in PROVIDER_ORDER if pid in merged]
    return ordered + list(merged.values())
