"""Configuration settings for the Bufi financial dashboard."""
from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Bufi Financial Dashboard"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # API
    API_PREFIX: str = "/api"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Database
    DATABASE_URL: Optional[str] = None
    DB_HOST: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_NAME: Optional[str] = None
    DB_PORT: int = 3306
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_RECYCLE: int = 1800
    SQLITE_FALLBACK_URL: str = "sqlite:///./bufi.db"

    # Dashboard
    DEFAULT_TRANSACTION_LIMIT: int = 50
    MAX_TRANSACTION_LIMIT: int = 500
    RECENT_TRANSACTIONS_LIMIT: int = 10
    TREND_MONTHS: int = 6

    # Test data endpoints, off unless explicitly enabled or in debug mode
    ENABLE_SEED_ENDPOINTS: Optional[bool] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def empty_url_is_unset(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def database_url(self) -> str:
        """Resolve the SQLAlchemy URL.

        An explicit DATABASE_URL wins. Otherwise the MySQL URL is assembled
        from the DB_* variables, and a local SQLite file is the last resort.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST and self.DB_NAME:
            return URL.create(
                "mysql+pymysql",
                username=self.DB_USER,
                password=self.DB_PASSWORD,
                host=self.DB_HOST,
                port=self.DB_PORT,
                database=self.DB_NAME,
            ).render_as_string(hide_password=False)
        return self.SQLITE_FALLBACK_URL

    @property
    def seed_endpoints_enabled(self) -> bool:
        if self.ENABLE_SEED_ENDPOINTS is None:
            return self.DEBUG
        return self.ENABLE_SEED_ENDPOINTS

# Create settings instance
settings = Settings()

# Configure logging
import logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Log configuration at startup
logger.info(f"Loaded configuration for {settings.APP_NAME} v{settings.APP_VERSION}")
logger.debug(f"Debug mode: {settings.DEBUG}")
logger.debug(f"Database host: {settings.DB_HOST or 'n/a'} (database: {settings.DB_NAME or 'n/a'})")
