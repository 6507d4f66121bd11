"""Configuration management for the growth engine.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Catalog override (None = packaged templates)
    catalog_path: Optional[Path]

    # Signed-in user for the CLI
    user_id: Optional[str]

    # Logging
    log_level: str

    # Progress computation
    progress_workers: int
    streak_lookback_days: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "SHEPHERD_DB_PATH",
            str(Path.home() / ".shepherd" / "growth.db"),
        )
        catalog_path_str = os.environ.get("SHEPHERD_CATALOG_PATH")

        return cls(
            db_path=Path(db_path_str).expanduser(),
            catalog_path=Path(catalog_path_str).expanduser() if catalog_path_str else None,
            user_id=os.environ.get("SHEPHERD_USER_ID") or None,
            log_level=os.environ.get("SHEPHERD_LOG_LEVEL", "WARNING").upper(),
            progress_workers=int(os.environ.get("SHEPHERD_PROGRESS_WORKERS", "4")),
            streak_lookback_days=int(
                os.environ.get("SHEPHERD_STREAK_LOOKBACK_DAYS", "400")
            ),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.catalog_path is not None and not self.catalog_path.exists():
            errors.append(f"Catalog file not found: {self.catalog_path}")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.log_level}")

        if self.progress_workers < 1:
            errors.append("SHEPHERD_PROGRESS_WORKERS must be at least 1")

        if self.streak_lookback_days < 1:
            errors.append("SHEPHERD_STREAK_LOOKBACK_DAYS must be at least 1")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
