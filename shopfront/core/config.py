from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "Shopfront"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Mongo (tables live as collections)
    MONGO_URI: str
    MONGO_DB: str

    # Redis (optional, empty disables the history cache)
    REDIS_URL: str = ""

    # CORS, CSV list
    ALLOWED_ORIGINS: str = ""

    # Compare
    compare_max_items: int = 3

    # Browsing history
    history_default_limit: int = 10
    history_max_limit: int = 100
    history_cache_ttl: int = 5 * 60            # 5 minutes
    history_atomic_views: bool = True          # False = legacy read-then-write

    # Recommendations
    recommendation_limit: int = 4
    recommendation_pool_size: int = 20

    # Sessions
    session_idle_ttl: int = 30 * 60            # 30 minutes

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
