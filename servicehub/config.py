# servicehub/config.py
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from typing import List
from functools import lru_cache

DEV_ENVIRONMENTS = {"development", "test"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra='ignore')

    # Application Settings
    APP_NAME: str = "ServiceHub API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | test | production
    DEBUG: bool = False
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Database Settings
    DATABASE_URL: str = "sqlite:///./servicehub.db"

    # Security Settings
    JWT_SECRET_KEY: str = "change-me-in-prod"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60  # 7 days
    PASSWORD_HASH_ROUNDS: int = 10

    # OTP Settings
    OTP_EXPIRY_MINUTES: int = 10
    OTP_INVALIDATE_PREVIOUS: bool = False
    OTP_CLEANUP_INTERVAL_SECONDS: int = 300  # 0 disables the reaper

    # Twilio Settings
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_MESSAGING_SERVICE_SID: str = ""
    TWILIO_PHONE_NUMBER: str = ""
    SMS_TIMEOUT_SECONDS: int = 5
    SMS_BRAND: str = "SERVICEHUB"

    # CORS Settings
    ALLOWED_ORIGINS: str = "*"

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def dev_mode(self) -> bool:
        """Only known non-production environments echo OTP codes and expose the testing lookup.

        Unknown or misspelt values fall back to production behaviour.
        """
        return self.ENVIRONMENT.strip().lower() in DEV_ENVIRONMENTS

    @property
    def twilio_configured(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN)

    # Helper methods for list envs
    def _split_csv(self, value: str) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)

@lru_cache()
def get_settings() -> Settings:
    return Settings()
