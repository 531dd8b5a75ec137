import logging
from datetime import date
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hilal.util import clamp, tags

log = logging.getLogger(__name__)

MIN_TIME_SCALE = 0.1
MAX_TIME_SCALE = 100.0

# Malé, Maldives
DEFAULT_LATITUDE = 4.1755
DEFAULT_LONGITUDE = 73.5093
REGION_LATITUDE = (-10.0, 10.0)
REGION_LONGITUDE = (70.0, 85.0)


class Settings(BaseSettings):
    latitude: float = DEFAULT_LATITUDE
    longitude: float = DEFAULT_LONGITUDE
    time_scale: float = 24.0  # one real hour is one game day
    use_astronomical_calculation: bool = True
    simulate_moon_sighting: bool = False
    moon_visibility_threshold: float = 0.5
    moon_sighting_seed: int = 0

    solar_noon_hour: float = 12.0 + 5.0 / 60.0
    base_date: date = date(2024, 1, 1)
    start_day: int = 0
    start_hour: float = 6.0

    init_retry_delay: float = 0.5
    tps: int = 30
    holidays_file: Path | None = None
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="hilal_", env_nested_delimiter="__", env_file="hilal.env"
    )

    @field_validator("time_scale")
    @classmethod
    def clamp_time_scale(cls, v: float) -> float:
        out = clamp(v, MIN_TIME_SCALE, MAX_TIME_SCALE)
        if out != v:
            log.warning("time_scale clamped %s", tags(got=v, used=out))
        return out

    @field_validator("moon_visibility_threshold")
    @classmethod
    def clamp_threshold(cls, v: float) -> float:
        out = clamp(v, 0.0, 1.0)
        if out != v:
            log.warning("moon_visibility_threshold clamped %s", tags(got=v, used=out))
        return out

    @field_validator("start_hour")
    @classmethod
    def clamp_start_hour(cls, v: float) -> float:
        out = clamp(v, 0.0, 23.999)
        if out != v:
            log.warning("start_hour clamped %s", tags(got=v, used=out))
        return out

    @field_validator("tps")
    @classmethod
    def clamp_tps(cls, v: int) -> int:
        out = max(1, v)
        if out != v:
            log.warning("tps clamped %s", tags(got=v, used=out))
        return out

    @model_validator(mode="after")
    def warn_outside_region(self) -> "Settings":
        lat_lo, lat_hi = REGION_LATITUDE
        lon_lo, lon_hi = REGION_LONGITUDE
        if not (lat_lo <= self.latitude <= lat_hi and lon_lo <= self.longitude <= lon_hi):
            log.warning(
                "coordinates outside the Maldives region; prayer times may be off %s",
                tags(lat=self.latitude, lon=self.longitude),
            )
        return self


settings = Settings()
