"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 4000
    cors_allowed_origin: str = "http://localhost:3000"

    metadata_strategy: Literal["document", "render_service"] = "document"
    document_source: Literal["browser", "http"] = "browser"
    browser_profile: Literal["local", "serverless"] = "local"
    browser_executable_path: Optional[str] = None
    navigation_timeout_ms: int = 60_000

    render_service_url: str = ""
    render_service_api_key: str = ""
    render_service_timeout: float = 30.0

    # Identity provider; consumed only by the session gate.
    session_connection_uri: str = ""
    session_api_key: str = ""
    session_required: bool = False
    google_client_id: str = ""
    google_client_secret: str = ""
    apple_client_id: str = ""
    apple_key_id: str = ""
    apple_private_key: str = ""
    apple_team_id: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
