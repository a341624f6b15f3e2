"""
Settings Router - the user's own LLM API key
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.user import ApiKeyStatus, ApiKeyUpdate
from ..services.ai_providers import SUPPORTED_PROVIDERS
from ..services.auth import get_current_user
from ..services.encryption import encrypt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get("/api-key", response_model=ApiKeyStatus, response_model_by_alias=True)
async def get_api_key_status(current_user: User = Depends(get_current_user)):
    """Whether a key is stored. The key itself is never returned."""
    configured = bool(current_user.api_key_encrypted)
    return ApiKeyStatus(
        configured=configured,
        provider=current_user.api_key_provider if configured else None,
        model=current_user.api_key_model if configured else None,
    )


@router.put("/api-key")
async def save_api_key(
    data: ApiKeyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    provider = data.provider.strip()
    api_key = data.api_key.strip()
    model = data.model.strip()

    if not provider or not api_key or not model:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provider, API key, and model are required"
        )
    if provider not in SUPPORTED_PROVIDERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid provider"
        )

    try:
        encrypted = encrypt(api_key)
    except ValueError as e:
        logger.error(f"Cannot store API key: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save API key"
        )

    current_user.api_key_encrypted = encrypted
    current_user.api_key_provider = provider
    current_user.api_key_model = model
    await db.flush()
    logger.info(f"Stored {provider} API key for user {current_user.id}")
    return {"success": True}


@router.delete("/api-key")
async def delete_api_key(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    current_user.api_key_encrypted = None
    current_user.api_key_provider = None
    current_user.api_key_model = None
    await db.flush()
    return {"success": True}
