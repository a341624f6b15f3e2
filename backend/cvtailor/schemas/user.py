from typing import Optional
from datetime import datetime

from .base import CamelModel


class CreditBalance(CamelModel):
    free: int
    purchased: int
    total: int


class UserResponse(CamelModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    credits: CreditBalance
    api_key_configured: bool = False
    created_at: Optional[datetime] = None


class CreditsResponse(CamelModel):
    free: int
    purchased: int
    total: int
    days_until_reset: int
    last_free_reset: Optional[datetime] = None


class ApiKeyUpdate(CamelModel):
    provider: str
    api_key: str
    model: str


class ApiKeyStatus(CamelModel):
    configured: bool
    provider: Optional[str] = None
    model: Optional[str] = None
