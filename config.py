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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./topup.db")
    DB_AUTO_CREATE = bool(data.get("DB_AUTO_CREATE", True))
    API_PREFIX = data.get("API_PREFIX", "")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", False))
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    AUTH_DISABLED = bool(data.get("AUTH_DISABLED", False))
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Payment gateway
    GATEWAY_BASE_URL = data.get("GATEWAY_BASE_URL", "https://tripay.co.id/api-sandbox")
    GATEWAY_API_KEY = data.get("GATEWAY_API_KEY", "")
    GATEWAY_PRIVATE_KEY = data.get("GATEWAY_PRIVATE_KEY", "")
    GATEWAY_MERCHANT_CODE = data.get("GATEWAY_MERCHANT_CODE", "")
    GATEWAY_TIMEOUT_SECONDS = data.get("GATEWAY_TIMEOUT_SECONDS", 30)
    GATEWAY_CALLBACK_URL = data.get("GATEWAY_CALLBACK_URL", "")
    GATEWAY_RETURN_URL = data.get("GATEWAY_RETURN_URL", "")

    # Top-up pricing
    TOPUP_UNIT_PRICE = data.get("TOPUP_UNIT_PRICE", 5000)  # Rupiah per install
    TOPUP_PRODUCT_SKU = data.get("TOPUP_PRODUCT_SKU", "WIN-INSTALL-QUOTA")
    TOPUP_PRODUCT_NAME = data.get("TOPUP_PRODUCT_NAME", "Windows Install Quota")
    TOPUP_EXPIRY_SECONDS = data.get("TOPUP_EXPIRY_SECONDS", 86400)  # 24 hours

    NOTIFICATION_WEBHOOK = data.get("NOTIFICATION_WEBHOOK", None)

    # Top-up reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 300)
    RECONCILIATION_BATCH_SIZE = data.get("RECONCILIATION_BATCH_SIZE", 100)
