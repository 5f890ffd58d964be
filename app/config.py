import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wedding.db")

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Public site URL used for RSVP links in emails
SITE_URL = os.getenv("SITE_URL", "http://localhost:5001").rstrip("/")

# Frontend base URL (CORS default)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",") if origin.strip()
]

# Session lifetimes
ADMIN_SESSION_MAX_AGE = int(os.getenv("ADMIN_SESSION_MAX_AGE", str(2 * 60 * 60)))
GUEST_SESSION_MAX_AGE = int(os.getenv("GUEST_SESSION_MAX_AGE", str(7 * 24 * 60 * 60)))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
DEFAULT_SENDER_NAME = "Your Wedding Site"
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", f"{DEFAULT_SENDER_NAME} <onboarding@resend.dev>")
EMAIL_DAILY_LIMIT = int(os.getenv("EMAIL_DAILY_LIMIT", "100"))
EMAIL_MONTHLY_LIMIT = int(os.getenv("EMAIL_MONTHLY_LIMIT", "3000"))

# Rate limits for public endpoints
RSVP_LOOKUP_WINDOW_SECONDS = int(os.getenv("RSVP_LOOKUP_WINDOW_SECONDS", "900"))
RSVP_LOOKUP_MAX = int(os.getenv("RSVP_LOOKUP_MAX", "10"))
SURVEY_RESPONSE_WINDOW_SECONDS = int(os.getenv("SURVEY_RESPONSE_WINDOW_SECONDS", "300"))
SURVEY_RESPONSE_MAX = int(os.getenv("SURVEY_RESPONSE_MAX", "5"))

# Cloudflare R2 Configuration (page images)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "wedding-images")
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "")

# Redis (rate limiting + arq worker). Unset means in-memory rate limiting only.
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
