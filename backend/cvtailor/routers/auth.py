"""
Auth Router - current user lookup
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.user import CreditBalance, UserResponse
from ..services.auth import get_current_user
from ..services.credits import check_and_reset_monthly

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.get("/me", response_model=UserResponse, response_model_by_alias=True)
async def get_me(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Current user with credit balances. Applies a pending monthly reset first."""
    await check_and_reset_monthly(db, current_user)
    return UserResponse(
        id=current_user.id,
        email=current_user.email,
        display_name=current_user.display_name,
        credits=CreditBalance(
            free=current_user.credits_free,
            purchased=current_user.credits_purchased,
            total=current_user.total_credits,
        ),
        api_key_configured=bool(current_user.api_key_encrypted),
        created_at=current_user.created_at,
    )
