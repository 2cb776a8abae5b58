"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class APIConfig(BaseModel):
    """HTTP client settings shared by every outbound client."""
    timeout: int = 30
    max_retries: int = 3
    retry_delay: int = 1
    exponential_backoff: bool = True


class AssetConfig(BaseModel):
    """Image re-hosting limits."""
    max_image_bytes: int = 10485760  # 10MB
    download_timeout: int = 30


class LoggingFilesConfig(BaseModel):
    """Log file paths."""
    importer: str = "logs/import.log"
    server: str = "logs/server.log"
    error: str = "logs/error.log"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    files: LoggingFilesConfig = LoggingFilesConfig()


class ServerConfig(BaseModel):
    """HTTP surface configuration."""
    require_token: bool = True
    catalog_listing_path: str = "/dashboard/products"


class YAMLConfig(BaseModel):
    """Configuration loaded from YAML file."""
    api: APIConfig = APIConfig()
    assets: AssetConfig = AssetConfig()
    logging: LoggingConfig = LoggingConfig()
    server: ServerConfig = ServerConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Supabase settings
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_service_key: str = Field(..., description="Supabase service role key")
    storage_bucket: str = Field(default="product-images", description="Storage bucket for product images")

    # Cache revalidation
    revalidate_url: Optional[str] = Field(default=None, description="Storefront revalidation hook URL")
    revalidate_secret: Optional[str] = Field(default=None, description="Shared secret for the revalidation hook")

    # Application settings
    import_api_token: Optional[str] = Field(default=None, description="Token required by the import endpoint")
    environment: str = Field(default="development", description="Environment (development/production)")
    log_level: Optional[str] = Field(default=None, description="Override log level")
    port: int = Field(default=8000, description="Server port")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig:
    """Combined application configuration."""

    def __init__(self):
        self.env = Settings()

        # Load YAML config
        config_path = Path(__file__).parent.parent.parent / "config" / "config.yml"
        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_data = yaml.safe_load(f) or {}
                self.yaml = YAMLConfig(**yaml_data)
        else:
            self.yaml = YAMLConfig()

        # Override log level if specified in env
        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level

    @property
    def api(self) -> APIConfig:
        return self.yaml.api

    @property
    def assets(self) -> AssetConfig:
        return self.yaml.assets

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def server(self) -> ServerConfig:
        return self.yaml.server

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()
