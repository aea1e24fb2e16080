import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./invoices.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Message queue
    QUEUE_PREFIX = data.get("QUEUE_PREFIX", "")
    QUEUE_POLL_TIMEOUT_SECONDS = data.get("QUEUE_POLL_TIMEOUT_SECONDS", 5)

    # Issuance pipeline
    BATCH_ITEM_DELAY_SECONDS = data.get("BATCH_ITEM_DELAY_SECONDS", 1.5)  # Gateway rate limit
    RETRY_BACKOFF_SECONDS = data.get("RETRY_BACKOFF_SECONDS", 60)
    RETRY_MAX_ATTEMPTS = data.get("RETRY_MAX_ATTEMPTS", 5)

    # Payment gateway
    PAYMENT_API_BASE_URL = data.get("PAYMENT_API_BASE_URL", "https://toyyibpay.com")
    PAYMENT_RETURN_URL = data.get("PAYMENT_RETURN_URL", "")
    PAYMENT_CALLBACK_URL = data.get("PAYMENT_CALLBACK_URL", "")
    PAYMENT_API_TIMEOUT_SECONDS = data.get("PAYMENT_API_TIMEOUT_SECONDS", 30)

    # Notifications
    MAIL_API_URL = data.get("MAIL_API_URL", "")
    MAIL_API_KEY = data.get("MAIL_API_KEY", "")
    MAIL_FROM = data.get("MAIL_FROM", "")
    NOTIFICATION_WEBHOOK = data.get("NOTIFICATION_WEBHOOK", None)
