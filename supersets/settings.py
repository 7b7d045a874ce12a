from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./supersets.db"
    week_start: int = 0  # 0 = Monday ... 6 = Sunday
    trend_weeks: int = 8
    workout_met: float = 5.5  # resistance training
    recent_lift_limit: int = 10
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "SUPERSETS_"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
