"""Application configuration via Pydantic Settings v2."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "DemandCast"
    app_env: Literal["development", "testing", "staging", "production"] = "development"
    debug: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Forecasting
    forecast_random_seed: int = 42
    forecast_default_horizon: int = 14
    forecast_max_horizon: int = 90
    forecast_test_ratio: float = 0.2
    forecast_min_train_size: int = 3
    forecast_strict_inputs: bool = True
    forecast_data_path: str = "./data/retail_store_inventory.csv"

    # Data preview
    data_preview_max_rows: int = 100

    # LLM forecasting (time_llm model)
    openai_api_key: str = ""
    llm_model: str = "gpt-4o"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 500
    llm_timeout_seconds: float = 30.0
    llm_context_points: int = 20

    @field_validator("forecast_test_ratio")
    @classmethod
    def validate_test_ratio(cls, v: float) -> float:
        """Ensure the hold-out ratio leaves data for training.

        Args:
            v: Fraction of the series held out for validation.

        Returns:
            Validated ratio.

        Raises:
            ValueError: If ratio is outside [0, 1).
        """
        if not 0.0 <= v < 1.0:
            raise ValueError(f"forecast_test_ratio must be in [0, 1), got {v}")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
