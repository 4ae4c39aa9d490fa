from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    API_BASE_URL: str = "http://localhost:3002/api/v1"
    API_TIMEOUT_SECONDS: float = 10.0

    SIMULATED_MODE: bool = False
    SIMULATED_LATENCY_MS: int = 300

    BOOKINGS_PAGE_SIZE: int = 20

    BUSINESS_TIMEZONE: str = "Africa/Johannesburg"
    OPENING_HOUR: int = 8
    CLOSING_HOUR: int = 18
    SLOT_STEP_MINUTES: int = 30

    TRAVEL_FEE_CENTS: int = 5000
    PLATFORM_FEE_PERCENT: int = 10
    CURRENCY_SYMBOL: str = "R"


settings = Settings()
