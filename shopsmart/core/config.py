from pydantic_settings import BaseSettings
from pydantic import field_validator, model_validator
from typing import List
import ipaddress


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "ShopSmart E-Commerce API"
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: str = "sqlite:///./shopsmart.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600

    # Security / sessions
    SECRET_KEY: str
    SESSION_COOKIE_NAME: str = "shopsmart_session"
    SESSION_MAX_AGE: int = 14 * 24 * 60 * 60
    TRUST_PROXY_HEADERS: bool = False
    TRUSTED_PROXY_IPS: str = "127.0.0.1,::1"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["*"]

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Monitoring (Optional - Add to .env for production)
    SENTRY_DSN: str = ""

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "5/minute"

    # Catalog
    PRODUCTS_DEFAULT_LIMIT: int = 12
    PRODUCTS_MAX_LIMIT: int = 50

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @model_validator(mode="after")
    def validate_production_secret(self):
        if self.ENVIRONMENT == "production":
            normalized_secret = (self.SECRET_KEY or "").strip()
            if len(normalized_secret) < 32 or "your-secret-key-here" in normalized_secret.lower():
                raise ValueError("SECRET_KEY must be at least 32 chars and not use placeholders in production")
        return self

    @field_validator("TRUSTED_PROXY_IPS")
    @classmethod
    def validate_trusted_proxy_ip_format(cls, value: str) -> str:
        normalized = [ip.strip() for ip in value.split(",") if ip.strip()]
        for ip in normalized:
            try:
                ipaddress.ip_address(ip)
            except ValueError as exc:
                raise ValueError(f"Invalid proxy IP address: {ip}") from exc
        return ",".join(normalized)

    @property
    def trusted_proxy_ips(self) -> List[str]:
        return [ip for ip in self.TRUSTED_PROXY_IPS.split(",") if ip]

    def is_trusted_proxy(self, ip: str | None) -> bool:
        if not ip:
            return False
        return ip in self.trusted_proxy_ips

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def allow_credentials(self) -> bool:
        # Browsers reject credentialed requests against a wildcard origin.
        return "*" not in self.BACKEND_CORS_ORIGINS

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
