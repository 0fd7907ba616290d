from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    SLOT_GRANULARITY_MINUTES: int = 15
    IDEMPOTENCY_TTL_SECONDS: int = 86400

    STORE_PROVIDER: str = "memory"
    DATA_DIR: str = "./data"
    SEED_DEMO_DATA: bool = True

    PAYMENT_GATEWAY_API_KEY: str | None = None
    PAYMENT_GATEWAY_BASE_URL: str = "https://api.razorpay.com/v1"
    PAYMENT_GATEWAY_TIMEOUT_SECONDS: float = 10.0
    CURRENCY: str = "INR"


settings = Settings()
