"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


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
    allowed_origins: List[str] = field(
        default_factory=lambda: _split_csv(os.getenv("ALLOWED_ORIGINS", ""))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Matching
    # "skip" leaves unparseable rows out of counts; "raise" rejects the request
    invalid_record_policy: str = field(
        default_factory=lambda: os.getenv("INVALID_RECORD_POLICY", "skip").lower()
    )
    preview_limit: int = field(default_factory=lambda: int(os.getenv("MATCH_PREVIEW_LIMIT", "5")))

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.invalid_record_policy not in ("skip", "raise"):
            raise ValueError("INVALID_RECORD_POLICY must be 'skip' or 'raise'")
        if self.preview_limit < 0:
            raise ValueError("MATCH_PREVIEW_LIMIT must be non-negative")

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "allowed_origins": self.allowed_origins,
            "log_level": self.log_level,
            "invalid_record_policy": self.invalid_record_policy,
            "preview_limit": self.preview_limit,
        }
