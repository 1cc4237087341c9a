# config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",            # auto-load .env (optional; process env wins)
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_NAME: str = "construction-admin"
    APP_VERSION: str = "1.0"
    LOG_LEVEL: str = "INFO"

    # JWT access tokens (issued by the external auth service)
    JWT_SECRET: str = "change-this-in-prod"
    JWT_ALG: str = "HS256"
    JWT_LEEWAY_SECONDS: int = 30
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Visible-menu cache (per role)
    MENU_CACHE_ENABLED: bool = True
    MENU_CACHE_TTL_SECONDS: float = 300.0   # 5 minutes
    MENU_CACHE_MAX_ROLES: int = 500
    MENU_CACHE_DEBUG: bool = False

    # Prefix repeated once per depth level in parent dropdown labels
    MENU_INDENT_TOKEN: str = "  "

settings = Settings()
