"""Shared fixtures for unit tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.models import Recipe
from src.services.gemini import GeminiGateway

# Smallest byte strings filetype recognizes
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01"


def _recipe_data(recipe_id: str = "r1", **overrides) -> dict:
    data = {
        "id": recipe_id,
        "title": "Spinach Omelette",
        "description": "A fluffy omelette with wilted spinach.",
        "ingredients": ["2 eggs", "1 cup spinach", "salt"],
        "instructions": ["Whisk the eggs.", "Wilt the spinach.", "Cook together."],
        "prepTime": "5 mins",
        "cookTime": "10 mins",
        "difficulty": "Easy",
        "cuisine": "French",
        "macros": {"protein": 14, "carbs": 3, "fat": 11, "calories": 170},
        "matchPercentage": 85,
    }
    data.update(overrides)
    return data


@pytest.fixture
def recipe_data():
    """Factory for recipe dicts shaped like Gemini's reply (camelCase keys)."""
    return _recipe_data


@pytest.fixture
def recipes_json():
    """Factory serializing recipe dicts into a reply body."""

    def _dump(*recipes: dict) -> str:
        return json.dumps(list(recipes))

    return _dump


@pytest.fixture
def make_recipe():
    """Factory for validated Recipe objects."""

    def _make(recipe_id: str = "r1", **overrides) -> Recipe:
        return Recipe.model_validate(_recipe_data(recipe_id, **overrides))

    return _make


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def jpeg_bytes():
    return JPEG_BYTES


@pytest.fixture
def mock_gateway():
    """Gateway double with a credential and async operations."""
    gateway = MagicMock(spec=GeminiGateway)
    gateway.has_credential.return_value = True
    gateway.identify_ingredients_from_image = AsyncMock(return_value=[])
    gateway.generate_recipes = AsyncMock(return_value=[])
    return gateway
