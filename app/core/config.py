from atams import AtamsBaseSettings


class Settings(AtamsBaseSettings):
    """
    Application Settings

    Inherits from AtamsBaseSettings which includes:
    - DATABASE_URL (required)
    - ATLAS_SSO_URL, ATLAS_APP_CODE, ATLAS_ENCRYPTION_KEY, ATLAS_ENCRYPTION_IV
    - ENCRYPTION_ENABLED, ENCRYPTION_KEY, ENCRYPTION_IV (response encryption)
    - LOGGING_ENABLED, LOG_LEVEL, LOG_TO_FILE, LOG_FILE_PATH
    - CORS_ORIGINS, CORS_ALLOW_CREDENTIALS, CORS_ALLOW_METHODS, CORS_ALLOW_HEADERS
    - RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS, RATE_LIMIT_WINDOW
    - DEBUG

    All settings can be overridden via .env file or by redefining them here.
    """
    APP_NAME: str = "Event Staff Attendance"
    APP_VERSION: str = "1.0.0"

    # QR JWT Settings
    QR_JWT_SECRET: str
    QR_JWT_ALG: str = "HS256"
    QR_JWT_ISSUER: str = "event-staff-attendance"
    QR_DEFAULT_TTL_MINUTES: int = 120
    QR_MIN_TTL_MINUTES: int = 30
    QR_MAX_TTL_MINUTES: int = 480

    # Check-in window around the event schedule
    CHECKIN_WINDOW_HOURS: int = 2

    # Admin override
    OVERRIDE_REASON_MIN_LENGTH: int = 10
    AUDIT_HISTORY_MAX_LIMIT: int = 500

    # Only honour X-Forwarded-For when running behind a trusted reverse proxy
    TRUST_PROXY_HEADERS: bool = False

    # Atlas role levels
    ADMIN_MIN_ROLE_LEVEL: int = 50
    STAFF_MIN_ROLE_LEVEL: int = 1


settings = Settings()
