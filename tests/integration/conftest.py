"""Pytest configuration and fixtures for integration tests.

Loads .env from the project root and skips the whole suite when no Gemini
API key is configured, since every test here talks to the live API.
"""

import os
import pytest
from dotenv import load_dotenv
from pathlib import Path


def pytest_configure(config):
    """Load .env before collection so src.utils.config sees the key."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: These tests require a valid GEMINI_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip integration tests if GEMINI_API_KEY is not configured."""
    if not os.getenv("GEMINI_API_KEY", "").strip():
        pytest.skip(
            "Integration tests skipped. Missing API key: GEMINI_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )


@pytest.fixture(scope="session")
def images_dir() -> Path:
    """Directory with sample fridge photos; tests using it skip if empty."""
    return Path(__file__).parent.parent.parent / "images"
