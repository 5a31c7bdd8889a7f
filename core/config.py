import json
from functools import lru_cache
from typing import List, Literal, NamedTuple, Optional

from dotenv import load_dotenv
from pydantic import SecretBytes
from pydantic_settings import BaseSettings, SettingsConfigDict

from keys.key_manager import KeyManager

load_dotenv(dotenv_path=".env.local", override=False)


class Settings(BaseSettings):
    """
    Application-wide configuration settings.
    Loaded from environment variables or the .env.local file.
    """

    # === General ===
    APP_NAME: str = "Shoppersky Store API"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: Literal["development", "testing", "production"] = "development"
    APP_ENV: Literal["local", "cloud"] = "local"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    LOG_DIR: Optional[str] = None
    DEBUG: bool = False
    DESCRIPTION: str = (
        "Shoppersky back-office API for authentication and role-based access."
    )

    # === Database ===
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_SCHEME: str = "postgresql"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "shoppersky"
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        """Builds the SQLAlchemy-compatible database URL."""
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        return (
            f"{self.POSTGRES_SCHEME}+{self.POSTGRES_DRIVER}://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # === Default admin account (seeded on startup when both are set) ===
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_NAME: str = "Store Admin"

    # === CORS ===
    ALLOWED_ORIGINS: str = "http://localhost,http://localhost:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        try:
            parsed = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(parsed, list):
                return parsed
        except json.JSONDecodeError:
            pass
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    # === JWT ===
    JWT_ALGORITHM: str = "RS256"
    JWT_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 60 * 60
    JWT_KEYS_DIR: str = "keys"
    JWT_KEY_REFRESH_DAYS: int = 30
    JWT_ISSUER: str = "udt-store"
    AUTH_COOKIE_NAME: str = "auth-token"

    # === Session ===
    SESSION_SECRET_KEY: str = "change-me-session-secret"
    SESSION_COOKIE_NAME: str = "shoppersky-session"
    SESSION_MAX_AGE: int = 7 * 24 * 60 * 60

    # === Rate limiting ===
    RATE_LIMIT_ENABLED: bool = True

    @property
    def COOKIE_SECURE(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


# Load settings synchronously for module-level access
settings: Settings = get_settings()


class SigningKeys(NamedTuple):
    private_key: SecretBytes
    public_key: SecretBytes


@lru_cache()
def get_signing_keys() -> SigningKeys:
    """Load (generating or rotating if needed) the RSA key pair used for JWTs."""
    key_manager = KeyManager(
        key_dir=settings.JWT_KEYS_DIR,
        key_refresh_days=settings.JWT_KEY_REFRESH_DAYS,
    )
    return SigningKeys(
        private_key=SecretBytes(key_manager.get_private_key()),
        public_key=SecretBytes(key_manager.get_public_key()),
    )
