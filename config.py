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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sessions.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENVIRONMENT = os.environ.get("ENVIRONMENT", data.get("ENVIRONMENT", "development"))
    ADMIN_API_KEY = os.environ.get(
        "ADMIN_API_KEY", data.get("ADMIN_API_KEY", "test-admin-key-12345")
    )

    # Session engine
    SESSION_SECRET_KEY = os.environ.get(
        "SESSION_SECRET_KEY",
        data.get("SESSION_SECRET_KEY", "dev-secret-key-change-in-production-0000"),
    )
    SESSION_COOKIE_PREFIX = data.get("SESSION_COOKIE_PREFIX", "session")
    SESSION_EXPIRY_MINUTES = data.get("SESSION_EXPIRY_MINUTES", 43200)
    SESSION_SAME_SITE = data.get("SESSION_SAME_SITE", "lax")
    SESSION_CSRF_METHOD = data.get("SESSION_CSRF_METHOD", "essential")
    # None means: secure in production only
    SESSION_SECURE_COOKIES = data.get("SESSION_SECURE_COOKIES", None)
    SESSION_DOMAIN = data.get("SESSION_DOMAIN", None)
    SESSION_PUBLIC_DATA_KEYS_TO_SYNC = data.get(
        "SESSION_PUBLIC_DATA_KEYS_TO_SYNC", ["role", "roles"]
    )
