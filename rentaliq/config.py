from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    # Bright Data (bulk datasets and live scrapes)
    bright_data_api_token: str = ""
    bright_data_dataset_id: str = "gd_lwh4f6i08oqu8aw1q5"
    bright_data_offender_dataset_id: str = ""

    # API Keys
    rapidapi_key: str = ""
    hud_api_token: str = ""
    fbi_api_key: str = "DEMO_KEY"
    great_schools_api_key: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # App Settings
    debug: bool = False
    log_level: str = "INFO"

    # Job polling
    job_poll_attempts: int = 10
    job_poll_delay_seconds: float = 2.0
    offender_poll_attempts: int = 5

    # Search Settings
    demo_property_count: int = 10
    http_timeout_seconds: float = 30.0

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        return str(v).strip().upper() or "INFO"

    @property
    def has_bright_data(self) -> bool:
        return bool(self.bright_data_api_token)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
