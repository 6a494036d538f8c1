from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "PortfolioPilot"
    debug: bool = True
    database_url: str = Field("sqlite://", validation_alias="DATABASE_URL")
    under_utilization_ratio: float = 0.75
    max_suggestions: int = 5
    export_filename: str = "portfolio_export.csv"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
