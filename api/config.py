"""
Environment-aware configuration.
Token secrets and lifetimes, cookie attributes and the database URL all come
from the environment (or .env); create_app() reads them once.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Storage
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///token-auth.db")
    DATABASE_ECHO = _env_bool("DATABASE_ECHO")
    STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))

    # Token signing; access and refresh secrets must differ
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "cookie-token-auth")
    JWT_LEEWAY_SECONDS = int(os.getenv("JWT_LEEWAY_SECONDS", "0"))
    ACCESS_TOKEN_SECRET = os.getenv("JWT_ACCESS_SECRET")
    REFRESH_TOKEN_SECRET = os.getenv("JWT_REFRESH_SECRET")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "1800")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "2592000")))

    # Cookies
    ACCESS_COOKIE_NAME = os.getenv("ACCESS_COOKIE_NAME", "access_token")
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    COOKIE_PATH = os.getenv("COOKIE_PATH", "/")
    COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "Lax")
    COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    ACCESS_TOKEN_SECRET = os.getenv("JWT_ACCESS_SECRET", "dev-access-secret-change-me")
    REFRESH_TOKEN_SECRET = os.getenv("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me")


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite:///:memory:"
    ACCESS_TOKEN_SECRET = "test-access-secret"
    REFRESH_TOKEN_SECRET = "test-refresh-secret"
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=1800)
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=2592000)
    JWT_LEEWAY_SECONDS = 0


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/testing/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
