from typing import List, Optional
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_STORAGE_BACKENDS = ("azure", "gcs", "memory")


class ConfigurationError(Exception):
    """Required startup configuration is missing or invalid."""

    def __init__(self, message: str):
        self.message = message
        self.error_code = "CONFIGURATION_ERROR"
        self.details = {}
        super().__init__(message)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # FastAPI Configuration
    PROJECT_NAME: str = "Document Manager API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Blob storage backend
    STORAGE_BACKEND: str = Field(
        default="azure", description="Blob backend: azure, gcs or memory"
    )
    BLOB_CONTAINER_NAME: str = Field(
        default="documents",
        description="Container (Azure) or bucket (GCS) holding every document blob",
    )
    CREATE_CONTAINER_IF_MISSING: bool = True

    # Azure Blob Storage Configuration
    AZURE_STORAGE_ACCOUNT: Optional[str] = None
    AZURE_STORAGE_ACCESS_KEY: Optional[str] = None
    AZURE_BLOB_ENDPOINT: Optional[str] = None  # e.g. Azurite: http://127.0.0.1:10000/devstoreaccount1

    # Google Cloud Platform Configuration
    GCP_PROJECT_ID: Optional[str] = None
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None  # Path to service account file

    # Document Configuration
    MAX_UPLOAD_SIZE: int = 50 * 1024 * 1024  # 50MB in bytes
    ROLLBACK_ON_ATTACHMENT_FAILURE: bool = Field(
        default=False,
        description="Delete the primary blob again when the attachment upload fails",
    )

    # CORS Settings - a single exact origin is allowed
    CORS_EXACT_ORIGIN: str = Field(
        ..., description="The only origin allowed to call the API from a browser"
    )
    CORS_CREDENTIALS: bool = True
    CORS_METHODS: List[str] = ["GET", "POST", "PUT", "DELETE"]

    @field_validator("CORS_METHODS", mode="before")
    @classmethod
    def parse_cors_methods(cls, v):
        """Parse CORS_METHODS from comma-separated string or JSON array."""
        if isinstance(v, str) and not v.startswith("["):
            return [x.strip().upper() for x in v.split(",") if x.strip()]
        return v

    @field_validator("CORS_EXACT_ORIGIN")
    @classmethod
    def validate_cors_origin(cls, v: str) -> str:
        """Reject blank origins and drop a trailing slash."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("CORS_EXACT_ORIGIN cannot be empty")
        return v

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in SUPPORTED_STORAGE_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {', '.join(SUPPORTED_STORAGE_BACKENDS)}"
            )
        return v

    @model_validator(mode="after")
    def validate_backend_credentials(self) -> "Settings":
        """The selected backend must have its account and credential configured."""
        if self.STORAGE_BACKEND == "azure":
            missing = [
                name
                for name in ("AZURE_STORAGE_ACCOUNT", "AZURE_STORAGE_ACCESS_KEY")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"{', '.join(missing)} not set")
        elif self.STORAGE_BACKEND == "gcs" and not self.GCP_PROJECT_ID:
            raise ValueError("GCP_PROJECT_ID not set")
        return self

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # json or text

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Check if the application is running in development mode."""
        return self.ENVIRONMENT.lower() in ["development", "dev", "local"]

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production mode."""
        return self.ENVIRONMENT.lower() in ["production", "prod"]

    @property
    def azure_account_url(self) -> str:
        """Blob service endpoint for the configured storage account."""
        if self.AZURE_BLOB_ENDPOINT:
            return self.AZURE_BLOB_ENDPOINT.rstrip("/")
        return f"https://{self.AZURE_STORAGE_ACCOUNT}.blob.core.windows.net"


def load_settings(**overrides) -> Settings:
    """Load settings, turning validation failures into a fatal ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(x) for x in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


# Global settings instance
settings = load_settings()
