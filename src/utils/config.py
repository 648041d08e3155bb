"""Configuration management for ChefAI.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults

A missing GEMINI_API_KEY is not a validation failure: the application starts
and routes into the setup-required screen instead of making doomed requests.
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Default: gemini-3-flash-preview (fast, supports structured output)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
        # Image Detection Model: falls back to GEMINI_MODEL when unset
        self.IMAGE_DETECTION_MODEL: str = os.getenv("IMAGE_DETECTION_MODEL", self.GEMINI_MODEL)
        # Number of recipes requested per generation. Default: 3
        self.RECIPE_COUNT: int = int(os.getenv("RECIPE_COUNT", "3"))
        # Temperature: unset leaves the backend default in place
        temperature = os.getenv("TEMPERATURE")
        self.TEMPERATURE: Optional[float] = float(temperature) if temperature else None
        # Image Compression: shrink large photos before upload. Off by default so
        # the image reaches the model exactly as captured.
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "false")
        # Only compress images at or above this size (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))
        # Compressed images are resized down to this width (in pixels)
        self.COMPRESS_IMG_MAX_WIDTH: int = int(os.getenv("COMPRESS_IMG_MAX_WIDTH", "1024"))

    def has_api_key(self) -> bool:
        """Return True if a non-blank Gemini credential is configured."""
        return bool(self.GEMINI_API_KEY and self.GEMINI_API_KEY.strip())

    def validate(self) -> None:
        """Validate configuration values.

        The credential is deliberately not checked here; see has_api_key().

        Raises:
            ValueError: If a setting holds an out-of-range value.
        """
        if not self.GEMINI_MODEL:
            raise ValueError("GEMINI_MODEL must not be empty")
        if not (1 <= self.RECIPE_COUNT <= 10):
            raise ValueError(f"RECIPE_COUNT must be between 1 and 10, got: {self.RECIPE_COUNT}")
        if self.TEMPERATURE is not None and not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}")
        if self.COMPRESS_IMG_THRESHOLD_KB < 0:
            raise ValueError(
                f"COMPRESS_IMG_THRESHOLD_KB must not be negative, got: {self.COMPRESS_IMG_THRESHOLD_KB}"
            )
        if self.COMPRESS_IMG_MAX_WIDTH < 64:
            raise ValueError(f"COMPRESS_IMG_MAX_WIDTH must be at least 64, got: {self.COMPRESS_IMG_MAX_WIDTH}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
