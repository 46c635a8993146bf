import os

# PostgreSQL settings
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "coursedesk")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "db")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

# A full DATABASE_URL (e.g. sqlite+aiosqlite:///./coursedesk.db) wins over the parts above
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "production").lower()
DEBUG = ENVIRONMENT in ["development", "dev"]

# Database retry settings
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "3"))
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "1.0"))
DB_RETRY_BACKOFF_FACTOR = float(os.getenv("DB_RETRY_BACKOFF_FACTOR", "2.0"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if not DEBUG else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if not DEBUG else "text")

# Application
APP_NAME = os.getenv("APP_NAME", "Course Desk API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
INSTITUTE_NAME = os.getenv("INSTITUTE_NAME", "SANTMEGH COMPUTER EDUCATION")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
    ).split(",")
    if origin.strip()
]
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Auth
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "720"))
DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")
DEFAULT_WEBSITE_PASSWORD = os.getenv("DEFAULT_WEBSITE_PASSWORD", "santmegh123")
MIN_PASSWORD_LENGTH = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))

# Fees
PAYMENT_GRACE_DAYS = int(os.getenv("PAYMENT_GRACE_DAYS", "30"))

# SMS: console, msg91, fast2sms, textlocal, twilio
SMS_PROVIDER = os.getenv("SMS_PROVIDER", "console").lower()
SMS_TIMEOUT = float(os.getenv("SMS_TIMEOUT", "10.0"))
MSG91_API_KEY = os.getenv("MSG91_API_KEY")
MSG91_SENDER_ID = os.getenv("MSG91_SENDER_ID")
FAST2SMS_API_KEY = os.getenv("FAST2SMS_API_KEY")
TEXTLOCAL_API_KEY = os.getenv("TEXTLOCAL_API_KEY")
TEXTLOCAL_SENDER = os.getenv("TEXTLOCAL_SENDER")
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")

SMS_PROVIDERS = ["console", "msg91", "fast2sms", "textlocal", "twilio"]


def validate_config():
    """Validate configuration on startup"""
    errors = []

    if not DATABASE_URL:
        errors.append("DATABASE_URL or POSTGRES_HOST is required")

    if not JWT_SECRET_KEY and not DEBUG and ENVIRONMENT != "test":
        errors.append("JWT_SECRET_KEY is required outside development")

    if DB_RETRY_ATTEMPTS < 1:
        errors.append("DB_RETRY_ATTEMPTS must be >= 1")

    if DB_RETRY_DELAY < 0:
        errors.append("DB_RETRY_DELAY must be >= 0")

    if PAYMENT_GRACE_DAYS < 0:
        errors.append("PAYMENT_GRACE_DAYS must be >= 0")

    if MIN_PASSWORD_LENGTH < 1:
        errors.append("MIN_PASSWORD_LENGTH must be >= 1")

    if SMS_PROVIDER not in SMS_PROVIDERS:
        errors.append(f"SMS_PROVIDER must be one of: {', '.join(SMS_PROVIDERS)}")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")


# Validate on import (optional)
if os.getenv("VALIDATE_CONFIG_ON_IMPORT", "true").lower() == "true":
    try:
        validate_config()
    except ValueError as e:
        print(f"⚠️  Configuration warning: {e}")
