"""Configuration settings for the medication tracker."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize settings by loading from .env file and environment variables.

        Args:
            env_path: Path to .env file (default: project_root/.env)
        """
        # Load .env file if it exists
        if env_path is None:
            env_path = Path(__file__).parent.parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)

        # Logging Configuration
        self.log_level: str = self._get_env("LOG_LEVEL", "INFO")
        log_dir = self._get_env("LOG_DIR", "")
        self.log_dir: Optional[Path] = Path(log_dir) if log_dir else None

        # Storage Configuration
        self.data_dir: Path = Path(self._get_env("DATA_DIR", "data"))
        self.storage_backend: str = self._get_env("STORAGE_BACKEND", "json").lower()
        self.database_path: Path = Path(
            self._get_env("DATABASE_PATH", str(self.data_dir / "medtracker.db"))
        )

        # Timezone Configuration (empty means host local offset)
        self.timezone_offset: str = self._get_env("TIMEZONE_OFFSET", "")

        if self.storage_backend not in ("json", "sqlite"):
            raise ValueError(
                f"Unsupported STORAGE_BACKEND '{self.storage_backend}'. "
                f"Expected 'json' or 'sqlite'."
            )

    def _get_env(self, key: str, default: str) -> str:
        """Get environment variable with default value.

        Args:
            key: Environment variable name
            default: Default value if variable is not set

        Returns:
            Environment variable value or default
        """
        return os.getenv(key, default)

    def __repr__(self) -> str:
        """Return string representation of settings."""
        return (
            f"Settings("
            f"log_level={self.log_level}, "
            f"log_dir={self.log_dir}, "
            f"data_dir={self.data_dir}, "
            f"storage_backend={self.storage_backend}, "
            f"database_path={self.database_path}, "
            f"timezone_offset={self.timezone_offset or 'local'}"
            f")"
        )
