import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME: str = "Islamic Financing Intake and AI Scoring"
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "mongo")
    MONGODB_URI: str = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    SCORING_TIMEOUT_SECONDS: float = float(os.getenv("SCORING_TIMEOUT_SECONDS", "60"))
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    AUTH_TOKEN_URL: str = os.getenv("AUTH_TOKEN_URL", "/api/login")
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")
    SUPABASE_URL: str = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str = os.getenv("SUPABASE_SERVICE_ROLE")
    SUPABASE_ANON_PUBLIC: str = os.getenv("SUPABASE_ANON_PUBLIC")
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "loan-documents")
    MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))
    REDIS_URL: str = os.getenv("REDIS_URL")
    IDEMPOTENCY_TTL_SECONDS: int = int(os.getenv("IDEMPOTENCY_TTL_SECONDS", str(24 * 3600)))
    # Reject submissions whose documents fail the contract gate. Off by default:
    # the wizard gate is advisory and the oracle flags missing proofs.
    ENFORCE_DOCUMENT_GATE: bool = _as_bool(os.getenv("ENFORCE_DOCUMENT_GATE", "false"))


settings = Settings()


def mask_secret(val: str) -> str:
    if not val:
        return "<missing>"
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


def log_settings_summary() -> None:
    """Log the loaded configuration with every secret redacted."""
    logger.info(
        "Loaded settings (redacted): %s",
        {
            "STORAGE_BACKEND": settings.STORAGE_BACKEND,
            "MONGODB_DB_NAME": settings.MONGODB_DB_NAME,
            "GEMINI_MODEL": settings.GEMINI_MODEL,
            "GEMINI_API_KEY": mask_secret(settings.GEMINI_API_KEY),
            "JWT_SECRET_KEY": mask_secret(settings.JWT_SECRET_KEY),
            "SUPABASE_SERVICE_ROLE": mask_secret(settings.SUPABASE_SERVICE_ROLE),
            "ENFORCE_DOCUMENT_GATE": settings.ENFORCE_DOCUMENT_GATE,
        },
    )
