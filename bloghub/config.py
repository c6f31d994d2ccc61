from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.
    Every variable uses the BLOGHUB_ prefix, e.g. BLOGHUB_DATABASE_URL.
    """
    environment: str = "development"
    debug: bool = True

    database_url: str = "sqlite:///./bloghub.db"

    # Session lifetime in hours.
    # Used both for the server-side validity check and the cookie max-age.
    session_expire_hours: int = 24

    # Cookie carrying the opaque session token
    cookie_name: str = "auth-token"
    cookie_secure: bool = False
    cookie_domain: str = "localhost"
    cookie_httponly: bool = True
    cookie_samesite: str = "lax"

    cors_origins: list[str] = ["http://localhost:3000"]

    # Optional first administrator, created on startup when all four are set
    admin_username: Optional[str] = None
    admin_email: Optional[str] = None
    admin_phone: Optional[str] = None
    admin_password: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="BLOGHUB_",
        env_file=".env",
        case_sensitive=False,
    )

    @property
    def secure_cookies(self) -> bool:
        # Secure flag is mandatory once deployed
        return self.cookie_secure or self.environment == "production"

    @property
    def session_max_age(self) -> int:
        return self.session_expire_hours * 3600


@lru_cache
def get_settings() -> Settings:
    """
    Settings are read from the environment once per process.
    """
    return Settings()
