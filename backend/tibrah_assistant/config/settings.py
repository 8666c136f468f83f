"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Tibrah Assistant"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "production"  # "development" relaxes CORS

    # Storage
    local_storage_path: str = "./data"

    # LLM providers (tried in llm_provider_order, skipped when key is unset)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    groq_api_key: Optional[str] = None
    groq_model: str = "llama3-8b-8192"
    groq_base_url: str = "https://api.groq.com/openai/v1"
    llm_provider_order: list[str] = ["gemini", "groq"]
    llm_timeout_seconds: float = 30.0

    # Rate limiting for the chat endpoint
    rate_limit_max_requests: int = 30
    rate_limit_window_ms: int = 60 * 1000
    rate_limit_sweep_interval_seconds: float = 60.0
    trust_forwarded_for: bool = True  # only behind a proxy that overwrites X-Forwarded-For

    # CORS
    public_base_url: Optional[str] = None
    cors_origins: list[str] = [
        "https://tibrah.com",
        "https://www.tibrah.com",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/tibrah.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log method/path/status/duration of API requests
    log_request_bodies: bool = False  # Also log (filtered) bodies; off to keep health data out of logs

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def allowed_origins(self) -> list[str]:
        """CORS allow-list: the public base URL plus configured origins."""
        origins = [self.public_base_url] if self.public_base_url else []
        return origins + [o for o in self.cors_origins if o not in origins]


settings = Settings()
