"""
Credit ledger: monthly free credits, atomic deduction and transaction records.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..exceptions import InsufficientCreditsError
from ..models.transaction import CreditTransaction, TransactionType
from ..models.user import User

logger = logging.getLogger(__name__)
settings = get_settings()

RESET_DAY_OF_MONTH = 1


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def days_until_reset(now: Optional[datetime] = None) -> int:
    """Whole days (rounded up) until the 1st of next month."""
    now = now or datetime.now(timezone.utc)
    if now.month == 12:
        next_reset = now.replace(year=now.year + 1, month=1, day=RESET_DAY_OF_MONTH,
                                 hour=0, minute=0, second=0, microsecond=0)
    else:
        next_reset = now.replace(month=now.month + 1, day=RESET_DAY_OF_MONTH,
                                 hour=0, minute=0, second=0, microsecond=0)
    seconds = (next_reset - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def needs_monthly_reset(user: User, now: Optional[datetime] = None) -> bool:
    if user.last_free_reset is None:
        return True
    now = now or datetime.now(timezone.utc)
    last = _as_utc(user.last_free_reset)
    return (now.year, now.month) != (last.year, last.month)


async def check_and_reset_monthly(db: AsyncSession, user: User) -> bool:
    """Refill the free credits when the last reset was in an earlier month."""
    if not needs_monthly_reset(user):
        return False

    user.credits_free = settings.monthly_free_credits
    user.last_free_reset = datetime.now(timezone.utc)
    db.add(CreditTransaction(
        user_id=user.id,
        amount=settings.monthly_free_credits,
        type=TransactionType.MONTHLY_FREE,
        description="Maandelijkse gratis credits",
    ))
    await db.flush()
    await db.refresh(user)
    logger.info(f"Monthly free credits reset for user {user.id}")
    return True


async def deduct_credit(
    db: AsyncSession,
    user_id: str,
    transaction_type: TransactionType,
    description: str,
    cv_id: Optional[str] = None,
    profile_id: Optional[str] = None,
) -> Tuple[str, CreditTransaction]:
    """
    Take one credit, free credits first. The balance check and the decrement
    are a single conditional UPDATE, so concurrent requests cannot overdraw.

    Returns ("free" | "purchased", transaction).
    """
    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.credits_free >= 1)
        .values(credits_free=User.credits_free - 1)
        .execution_options(synchronize_session=False)
    )
    source = "free"
    if result.rowcount == 0:
        result = await db.execute(
            update(User)
            .where(User.id == user_id, User.credits_purchased >= 1)
            .values(credits_purchased=User.credits_purchased - 1)
            .execution_options(synchronize_session=False)
        )
        source = "purchased"
        if result.rowcount == 0:
            raise InsufficientCreditsError()

    transaction = CreditTransaction(
        user_id=user_id,
        amount=-1,
        type=transaction_type,
        description=description,
        cv_id=cv_id,
        profile_id=profile_id,
    )
    db.add(transaction)
    await db.flush()
    await db.refresh(transaction)
    logger.info(f"Deducted 1 {source} credit from user {user_id} ({transaction_type.value})")
    return source, transaction


async def get_balance(db: AsyncSession, user_id: str) -> Tuple[int, int]:
    row = (await db.execute(
        select(User.credits_free, User.credits_purchased).where(User.id == user_id)
    )).one_or_none()
    if row is None:
        return 0, 0
    return row[0] or 0, row[1] or 0
