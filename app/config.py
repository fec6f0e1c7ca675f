from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True)
    database_url: str = Field(alias="DATABASE_URL")
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_expires_days: int = Field(default=30, alias="JWT_EXPIRES_DAYS")
    local_tz: str = Field(default="UTC", alias="LOCAL_TZ")
    environment: str = Field(default="production", alias="ENVIRONMENT")
    scheduler_enabled: int = Field(default=1, alias="SCHEDULER_ENABLED")
    trash_retention_days: int = Field(default=30, alias="TRASH_RETENTION_DAYS")
    backfill_default_days: int = Field(default=30, alias="BACKFILL_DEFAULT_DAYS")
    default_avatar_url: str = Field(
        default="https://api.dicebear.com/7.x/avataaars/svg?seed=Felix",
        alias="DEFAULT_AVATAR_URL",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in ("production", "prod")

settings = Settings()
