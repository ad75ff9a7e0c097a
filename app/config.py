from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from decimal import Decimal
from typing import List


DEFAULT_APP_BASE_URL = "https://app.alquiloscooter.com"


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./alquilo.db",
        alias="DATABASE_URL"
    )

    # Security
    secret_key: str = Field(default="dev-secret-key-at-least-32-characters-long-for-development", alias="SECRET_KEY")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    min_password_length: int = Field(default=8, alias="MIN_PASSWORD_LENGTH")

    # CORS - Frontend URLs from environment (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,https://app.alquiloscooter.com",
        alias="ALLOWED_ORIGINS"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # Rate limiting (slowapi storage backend)
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    # ==============================================
    # Contracts
    # ==============================================
    # Public base URL used to compose inspection links
    app_base_url: str = Field(default="", alias="APP_BASE_URL")

    # VAT included in every price; subtotal = total / (1 + rate)
    contract_tax_rate: Decimal = Field(default=Decimal("0.21"), alias="CONTRACT_TAX_RATE")

    # Version assigned to a freshly created contract
    contract_base_version: int = Field(default=1, alias="CONTRACT_BASE_VERSION")

    default_contract_language: str = Field(default="es", alias="DEFAULT_CONTRACT_LANGUAGE")

    # Public inspection links
    inspection_link_days: int = Field(default=30, alias="INSPECTION_LINK_DAYS")

    # Remote signature links sent to the customer
    remote_signature_days: int = Field(default=30, alias="REMOTE_SIGNATURE_DAYS")

    # Signed URLs for inspection photos (7 days)
    photo_url_expiry_seconds: int = Field(default=604800, alias="PHOTO_URL_EXPIRY_SECONDS")

    # Logo compression for object-storage logos
    logo_max_dimension: int = Field(default=300, alias="LOGO_MAX_DIMENSION")
    logo_quality: int = Field(default=75, alias="LOGO_QUALITY")

    # Relative local asset paths are resolved under this directory
    public_assets_dir: str = Field(default="./public", alias="PUBLIC_ASSETS_DIR")

    # ==============================================
    # Object storage (Azure Blob)
    # ==============================================
    azure_storage_connection_string: str = Field(default="", alias="AZURE_STORAGE_CONNECTION_STRING")
    azure_storage_container_name: str = Field(default="uploads", alias="AZURE_STORAGE_CONTAINER_NAME")

    # HTTP timeout for remote assets
    asset_fetch_timeout_seconds: int = Field(default=10, alias="ASSET_FETCH_TIMEOUT_SECONDS")

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate SECRET_KEY is strong enough"""
        if not v:
            raise ValueError("SECRET_KEY is required and cannot be empty")
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator('contract_tax_rate')
    @classmethod
    def validate_tax_rate(cls, v: Decimal) -> Decimal:
        if v < 0 or v >= 1:
            raise ValueError("CONTRACT_TAX_RATE must be between 0 and 1")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def inspection_base_url(self) -> str:
        """Base URL for public inspection links, without trailing slash"""
        return (self.app_base_url or DEFAULT_APP_BASE_URL).rstrip("/")

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        if not self.allowed_origins:
            return ["http://localhost:3000"]

        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        return origins or ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Initialize settings on module load
settings = get_settings()
