# ebay_watch/config.py
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    EBAY_CLIENT_ID: Optional[str] = None
    EBAY_CLIENT_SECRET: Optional[str] = None
    EBAY_API_BASE: str = "https://api.ebay.com/buy/browse/v1"
    EBAY_OAUTH_URL: str = "https://api.ebay.com/identity/v1/oauth2/token"
    EBAY_OAUTH_SCOPE: str = "https://api.ebay.com/oauth/api_scope"
    EBAY_MARKETPLACE_ID: Optional[str] = None

    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_TIMEOUT: float = 30.0
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    EMAIL_FROM: Optional[str] = None
    ADMIN_EMAIL: Optional[str] = None

    CRITERIA_FILE: str = "search-criteria.json"

    CHECK_MINUTE: int = 0
    RUN_IMMEDIATELY: bool = False
    DEMO_MODE: bool = False
    HTTP_TIMEOUT: float = 20.0

    LOG_LEVEL: str = "INFO"

    WEB_HOST: str = "0.0.0.0"
    PORT: int = 3000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def has_ebay_credentials(self) -> bool:
        return bool(self.EBAY_CLIENT_ID and self.EBAY_CLIENT_SECRET)

    @property
    def sender_address(self) -> Optional[str]:
        return self.EMAIL_FROM or self.EMAIL_USER

settings = Settings()
