"""
Configuration management.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Cadastral registry
    catastro_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("CATASTRO_API_KEY") or None
    )
    catastro_api_base: str = field(
        default_factory=lambda: os.getenv("CATASTRO_API_BASE", "https://api.catastro-api.es")
    )
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "15")))

    # Street View imagery
    google_maps_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY") or None
    )

    # Storage
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))

    # Email delivery
    email_function_url: Optional[str] = field(
        default_factory=lambda: os.getenv("EMAIL_FUNCTION_URL") or None
    )
    email_function_key: Optional[str] = field(
        default_factory=lambda: os.getenv("EMAIL_FUNCTION_KEY") or None
    )

    # Public report links
    public_report_base_url: str = field(
        default_factory=lambda: os.getenv(
            "PUBLIC_REPORT_BASE_URL", "https://valorador-online.vercel.app/v"
        )
    )

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def valuations_path(self) -> str:
        return os.path.join(self.data_dir, "valuations.json")

    @property
    def clients_path(self) -> str:
        return os.path.join(self.data_dir, "clients.json")

    def report_url(self, token: str) -> str:
        return f"{self.public_report_base_url.rstrip('/')}/{token}"

    def to_dict(self) -> dict:
        """Convert config to dictionary (secrets masked)."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "catastro_api_configured": bool(self.catastro_api_key),
            "catastro_api_base": self.catastro_api_base,
            "request_timeout": self.request_timeout,
            "google_maps_configured": bool(self.google_maps_api_key),
            "data_dir": self.data_dir,
            "email_function_url": self.email_function_url,
            "public_report_base_url": self.public_report_base_url,
        }


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
