from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "TripMuse Trip Engine"
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./tripmuse.db"

    # Device media
    MEDIA_ROOT: str = "media"

    # TripMuse backend (album / media API)
    TRIPMUSE_API_BASE_URL: str = "http://localhost:8080/api/v1"
    TRIPMUSE_API_TOKEN: str = ""

    # Reverse geocoding
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODER_LANGUAGE: str = "ko"
    GEOCODER_USER_AGENT: str = "tripmuse-trip-engine/1.0"

    HTTP_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"

configs = Settings()
