"""Configuration and environment handling for restbridge."""

import os
from pathlib import Path

from dotenv import load_dotenv


class Config:
    """Central configuration object."""

    def __init__(self):
        # Load .env file if it exists
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        # Base URL that server-relative endpoint URLs are resolved against
        self.app_url: str = os.getenv("RB_APP_URL", "http://localhost")

        # Transport (pass-through, no retries)
        self.connect_timeout: float = float(os.getenv("RB_CONNECT_TIMEOUT", "10.0"))
        self.read_timeout: float = float(os.getenv("RB_READ_TIMEOUT", "30.0"))
        self.verify_ssl: bool = os.getenv("RB_VERIFY_SSL", "1") == "1"

        # Logging
        self.log_level: str = os.getenv("RB_LOG_LEVEL", "INFO")

    def url(self, path: str) -> str:
        """Absolute URL for a server-relative path."""
        return f"{self.app_url.rstrip('/')}/{path.lstrip('/')}"


# Global config instance
config = Config()
