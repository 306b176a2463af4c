# barbershop/config.py

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Standard business hours used when a barber never configured their own.
FALLBACK_HOURS = [
    "08:00", "09:00", "10:00", "11:00", "12:00", "13:00",
    "14:00", "15:00", "16:00", "17:00", "18:00",
]

SERVICES = {
    "shape_up": 15,
    "beard_trim": 15,
    "haircut": 30,
    "fade": 30,
    "scissors_cut": 30,
    "cut_and_beard": 45,
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BARBERSHOP_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = "sqlite:///./barber.db"
    secret_key: str = "change-me-later"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    timezone: str = "America/New_York"
    fallback_hours: List[str] = FALLBACK_HOURS
    # same-day slots must start at least this far in the future
    booking_buffer_minutes: int = 20
    poll_interval_seconds: float = 10.0

    log_level: str = "INFO"

    @field_validator("booking_buffer_minutes")
    @classmethod
    def _non_negative_buffer(cls, v: int) -> int:
        if v < 0:
            raise ValueError("booking_buffer_minutes cannot be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
