"""
Configuration management for CourseIntel application.
"""

from pathlib import Path
from typing import Optional
from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "CourseIntel API"
    description: str = "UCR Course Difficulty Intelligence API - Student-verified course ratings and professor insights"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    project_root: Path = Path(__file__).parent.parent.parent.parent
    data_dir: Path = project_root / "data"
    csv_path: Optional[Path] = Field(default=None, validate_default=True)

    # Course data
    preload_data: bool = True

    # Enhanced professor service
    enable_enhanced_professors: bool = True
    professor_api_url: str = "http://localhost:5000"

    # API
    api_host: str = "0.0.0.0"
    port: int = 3000

    @field_validator("csv_path", mode="after")
    @classmethod
    def assemble_csv_path(cls, v: Optional[Path], info: ValidationInfo) -> Path:
        if v is not None:
            return v
        return Path(info.data.get("data_dir")) / "ucr-courses.csv"

    @field_validator("professor_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
