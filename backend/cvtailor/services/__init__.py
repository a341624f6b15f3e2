from .auth import (
    create_access_token,
    decode_token,
    get_current_user,
    security
)
from .ai_providers import (
    AICredentials,
    generate_json,
    resolve_provider,
    SUPPORTED_PROVIDERS
)
from .credits import (
    check_and_reset_monthly,
    days_until_reset,
    deduct_credit,
    get_balance
)
from .encryption import encrypt, decrypt
from .retry import with_retry, is_retryable_error
from .prompts import (
    build_cv_prompt,
    build_enrichment_prompt,
    build_linkedin_export_prompt
)
from .models_registry import get_providers_with_fallback
from .storage import (
    StorageError,
    upload_file,
    download_file,
    delete_file
)

__all__ = [
    # Auth
    "create_access_token",
    "decode_token",
    "get_current_user",
    "security",
    # AI
    "AICredentials",
    "generate_json",
    "resolve_provider",
    "SUPPORTED_PROVIDERS",
    "with_retry",
    "is_retryable_error",
    "get_providers_with_fallback",
    # Prompts
    "build_cv_prompt",
    "build_enrichment_prompt",
    "build_linkedin_export_prompt",
    # Credits
    "check_and_reset_monthly",
    "days_until_reset",
    "deduct_credit",
    "get_balance",
    # Encryption
    "encrypt",
    "decrypt",
    # Storage
    "StorageError",
    "upload_file",
    "download_file",
    "delete_file"
]
