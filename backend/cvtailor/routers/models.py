"""
Models Router - provider and model metadata for the settings screen
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from ..services.models_registry import FALLBACK_PROVIDERS, get_providers_with_fallback

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/models", tags=["Models"])


@router.get("")
async def list_models():
    """No authentication: the list is public metadata."""
    fetched_at = datetime.now(timezone.utc).isoformat()
    try:
        providers = await get_providers_with_fallback()
    except Exception:
        logger.exception("Failed to fetch models")
        return {
            "success": True,
            "providers": [p.to_wire() for p in FALLBACK_PROVIDERS],
            "fetchedAt": fetched_at,
            "fallback": True,
        }

    return {
        "success": True,
        "providers": [p.to_wire() for p in providers],
        "fetchedAt": fetched_at,
    }
