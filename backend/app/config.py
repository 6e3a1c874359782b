from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "SafeFood"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://safefood:safefood_pass@db:5432/safefood"
    DATABASE_ECHO: bool = False

    # JWT (صادر عن مزود الهوية الخارجي)
    JWT_SECRET_KEY: str = "change-this-to-a-secure-random-string"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # يوم واحد

    # Timeouts
    OPERATION_TIMEOUT_SECONDS: float = 10.0
    MAX_OPERATION_TIMEOUT_SECONDS: float = 60.0
    UNAVAILABLE_RETRY_AFTER_SECONDS: int = 5

    # Matching
    MATCH_DISTANCE_METRIC: str = "haversine"      # haversine, equirectangular
    MATCH_MAX_DISTANCE_KM: Optional[float] = 50.0
    CHARITY_SELECTION_POLICY: str = "nearest"     # nearest, round_robin

    # Impact conversion factors
    IMPACT_MEALS_PER_KG: float = 2.5
    IMPACT_CO2_KG_PER_KG: float = 2.5
    IMPACT_BENEFICIARIES_PER_DONATION: int = 4

    # Geocoding provider (none, nominatim)
    GEOCODER_PROVIDER: str = "none"
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/search"
    GEOCODER_TIMEOUT_SECONDS: float = 5.0
    GEOCODER_USER_AGENT: str = "safefood-backend"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "case_sensitive": True}


settings = Settings()
