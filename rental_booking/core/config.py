from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict



class Settings(BaseSettings):
    APP_ENV: str = "dev"
    PORT: int = 8085
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]
    DATABASE_URL: str
    REDIS_URL: str = "redis://localhost:6379/0"
    CATALOG_SERVICE_URL: str = "http://localhost:8082"
    USER_SERVICE_URL: str = "http://localhost:8081"
    SERVICE_TIMEOUT_SECONDS: float = 10.0
    RAZORPAY_KEY_ID: str | None = None
    RAZORPAY_KEY_SECRET: str | None = None
    RAZORPAY_WEBHOOK_SECRET: str | None = None
    WALLET_GATEWAY_URL: str | None = None
    WALLET_APP_KEY: str | None = None
    WALLET_NUMBER_PATTERN: str = r"^01\d{9}$"
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    CURRENCY: str = "BDT"
    DEFAULT_COMMISSION_PERCENTAGE: Decimal = Decimal("10")
    PENDING_PAYMENT_TTL_MINUTES: int = 30
    PAYMENT_LOCK_TTL_SECONDS: int = 30
    ADMIN_RECIPIENT_STRATEGY: str = "directory"
    ADMIN_RECIPIENT_IDS: list[str] = []
    AWS_ACCESS_KEY: str | None = None
    AWS_SECRET_KEY: str | None = None
    AWS_REGION: str | None = None
    NOTIFICATION_QUEUE_URL: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


Config = Settings()
