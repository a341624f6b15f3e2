from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "CV Tailor API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Database - supports both SQLite (local) and PostgreSQL (production)
    database_url: str = "sqlite+aiosqlite:///./cvtailor.db"

    # Security - MUST be set via environment variables in production
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    # Identity provider: "local" (HS256 tokens signed with secret_key) or "firebase"
    auth_provider: str = "local"
    firebase_project_id: str = ""
    auth_cookie_name: str = "firebase-token"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Secret used to derive the AES key for stored API keys
    encryption_key: str = ""

    # Credits
    monthly_free_credits: int = 5

    # Platform AI fallback (used when a user has no key of their own)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # Supabase Storage (template files)
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    template_bucket: str = "templates"
    uploads_dir: str = "uploads"
    max_template_size_mb: int = 20

    # Models registry (models.dev)
    models_registry_url: str = "https://raw.githubusercontent.com/anomalyco/models.dev/dev"
    models_cache_ttl_seconds: int = 3600
    github_token: str = ""

    # LibreOffice binary for DOCX -> PDF conversion
    soffice_path: str = "soffice"

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
