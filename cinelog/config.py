"""
Application Configuration

Load settings from environment variables with validation.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: Optional[str] = None

    # Firebase
    firebase_credentials_path: str = "./service-account.json"
    firebase_project_id: Optional[str] = None

    # Firestore collections
    users_collection: str = "users"
    friend_requests_collection: str = "friend_requests"
    lists_collection: str = "lists"

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 60

    # Friends
    friend_request_dedupe: bool = False  # Reject a second pending request for the same pair
    top_movies_list_name: str = "Top 5 Movies"

    # CORS
    cors_origins: List[str] = ["https://cinelog.app"]

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
