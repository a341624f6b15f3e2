"""
Credits Router - balances and the monthly free-credit reset
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.user import CreditsResponse
from ..services.auth import get_current_user
from ..services.credits import check_and_reset_monthly, days_until_reset, get_balance

router = APIRouter(prefix="/api/credits", tags=["Credits"])


@router.get("", response_model=CreditsResponse, response_model_by_alias=True)
async def get_credits(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    free, purchased = await get_balance(db, current_user.id)
    return CreditsResponse(
        free=free,
        purchased=purchased,
        total=free + purchased,
        days_until_reset=days_until_reset(),
        last_free_reset=current_user.last_free_reset,
    )


@router.post("/check-reset")
async def check_reset(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    reset = await check_and_reset_monthly(db, current_user)
    return {
        "success": True,
        "reset": reset,
        "message": "Monthly credits reset" if reset else "No reset needed",
    }
