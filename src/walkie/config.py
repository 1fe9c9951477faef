from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./walkie.db"
    default_goal_km: float = 2.0
    history_display_limit: int = 25
    health_profile: str = "canonical"  # key into analysis.health.WEIGHT_PROFILES

    # Forwarded to the position source on subscribe
    position_high_accuracy: bool = True
    position_max_sample_age_ms: int = 1000
    position_timeout_ms: int = 10000

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "WALKIE_"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
