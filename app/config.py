from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # 🎯 Application
    APP_NAME: str = "MvcMovie API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | production
    DEBUG: bool = False  # ⚠️ Must be False in production
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # 🌐 Server
    HOST: str = '0.0.0.0'
    PORT: int = 8000

    # 🗄️ Database
    # Development uses an embedded SQLite file, production a PostgreSQL server
    DATABASE_URL: str = "sqlite:///./mvcmovie.db"
    PRODUCTION_DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False

    # 🔒 CORS
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # 🔐 Admin Account (seeded on startup)
    ADMIN_EMAIL: str = "Nkadimeng@example.com"
    ADMIN_PASSWORD: str = "Ogilvy123!"
    SEED_ON_STARTUP: bool = True

    # 📊 Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = 'ignore'

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',') if origin.strip()]

    @property
    def database_url(self) -> str:
        """
        Connection string for the current environment.

        Raises:
            RuntimeError: production environment without PRODUCTION_DATABASE_URL
        """
        if self.is_production:
            if not self.PRODUCTION_DATABASE_URL:
                raise RuntimeError("Connection string 'PRODUCTION_DATABASE_URL' not found.")
            return self.PRODUCTION_DATABASE_URL
        return self.DATABASE_URL


def to_async_url(url: str) -> str:
    """Rewrite a plain database URL to its async driver form."""
    clean_url = url.split('?')[0] if url.startswith('postgres') else url

    if clean_url.startswith('sqlite://'):
        return clean_url.replace('sqlite://', 'sqlite+aiosqlite://', 1)

    return clean_url.replace(
        'postgresql+psycopg2://',
        'postgresql+asyncpg://'
    ).replace(
        'postgresql://',
        'postgresql+asyncpg://'
    )

settings = Settings()
