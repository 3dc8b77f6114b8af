"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # API
    app_name: str = "Forecast Brain API"
    app_version: str = "1.0.0"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Variance analysis
    variance_min_periods: int = 3  # periods needed before a trend is reported


settings = Settings()
