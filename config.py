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
    DB_AUTO_CREATE = bool(data.get("DB_AUTO_CREATE", True))
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    # Only enable when every request arrives through a proxy that sets X-Forwarded-For
    TRUST_FORWARDED_FOR = bool(data.get("TRUST_FORWARDED_FOR", False))
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_ALGORITHM = data.get("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = data.get("JWT_ISSUER", "session-service")
    JWT_AUDIENCE = data.get("JWT_AUDIENCE", "mobile-client")
    ACCESS_TOKEN_TTL_MINUTES = int(data.get("ACCESS_TOKEN_TTL_MINUTES", 15))
    REFRESH_TOKEN_TTL_DAYS = int(data.get("REFRESH_TOKEN_TTL_DAYS", 30))
    REFRESH_GRACE_PERIOD_SECONDS = int(data.get("REFRESH_GRACE_PERIOD_SECONDS", 300))
    SESSION_REVOKE_BATCH_SIZE = int(data.get("SESSION_REVOKE_BATCH_SIZE", 500))
    SESSION_CLEANUP_ENABLED = bool(data.get("SESSION_CLEANUP_ENABLED", True))
    SESSION_CLEANUP_INTERVAL_SECONDS = int(data.get("SESSION_CLEANUP_INTERVAL_SECONDS", 3600))
    BCRYPT_ROUNDS = int(data.get("BCRYPT_ROUNDS", 12))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
