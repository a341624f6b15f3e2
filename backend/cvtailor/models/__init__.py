from .user import User
from .profile import SavedProfile
from .template import CVTemplate, TemplateFileType
from .transaction import CreditTransaction, TransactionType
from .cv import GeneratedCV, CVStatus

__all__ = [
    "User",
    "SavedProfile",
    "CVTemplate", "TemplateFileType",
    "CreditTransaction", "TransactionType",
    "GeneratedCV", "CVStatus",
]
