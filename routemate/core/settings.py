from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    # Environment name
    ENVIRONMENT: str = "development"

    # Google Maps (geocoding + directions)
    GOOGLE_MAPS_API_KEY: str | None = None
    GEOCODE_LANGUAGE: str = "zh-TW"
    GEOCODE_REGION: str = "tw"
    GEOCODE_DELAY_SECONDS: float = 0.2

    # LINE Messaging API
    LINE_CHANNEL_ACCESS_TOKEN: str | None = None
    LINE_CHANNEL_SECRET: str | None = None

    # Run without calling Google Maps / LINE; synthetic values are used instead
    SIMULATION_MODE: bool = False

    # Bounding box for synthetic coordinates (roughly Taipei)
    FALLBACK_LAT_MIN: float = 25.02
    FALLBACK_LAT_MAX: float = 25.07
    FALLBACK_LNG_MIN: float = 121.5
    FALLBACK_LNG_MAX: float = 121.6

    # Uploads and outbound HTTP
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    HTTP_TIMEOUT_SECONDS: float = 10.0

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def maps_simulated(self) -> bool:
        """True when geocoding and directions should produce synthetic values."""
        return self.SIMULATION_MODE or not self.GOOGLE_MAPS_API_KEY

    @property
    def messaging_simulated(self) -> bool:
        """True when LINE pushes are logged instead of sent."""
        return self.SIMULATION_MODE or not self.LINE_CHANNEL_ACCESS_TOKEN

    class Config:
        case_sensitive = True  # Variables are case-sensitive
        env_file = ".env"      # Load environment variables from .env file
        env_file_encoding = "utf-8" # Encoding for the .env file
        extra = "ignore"


@lru_cache() # Cache the settings object for performance
def get_settings() -> Settings:
    return Settings()
