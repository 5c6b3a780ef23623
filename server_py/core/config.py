"""Application configuration settings."""
import os
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

from core.constants import PREVIEW_CHAR_LIMIT


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Repo TestGen API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # CORS
    cors_origins: list[str] = ["*"]

    # GitHub
    github_api_url: str = "https://api.github.com"
    github_user_agent: str = "Repo-TestGen"
    github_timeout: Optional[float] = None

    # AI/GenAI
    genai_endpoint_url: str = "https://generativelanguage.googleapis.com/v1beta"
    genai_model: str = "gemini-1.5-flash"
    genai_timeout: Optional[float] = None

    # Pipeline
    preview_char_limit: int = PREVIEW_CHAR_LIMIT
    generated_tests_dir: str = "generated-tests"
    branch_prefix: str = "testgen"
    pull_request_title: str = "Add AI-generated tests"

    class Config:
        # Look for .env in project root (parent of server_py)
        env_file = os.path.join(Path(__file__).parent.parent.parent, ".env")
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
