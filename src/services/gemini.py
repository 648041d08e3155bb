"""Gemini gateway: ingredient detection and recipe generation.

Both operations follow the same contract:
- The credential is checked locally first. A missing key raises
  ConfigurationError before any client is created or request is sent.
- Exactly one generate_content call is made, with a structured-output schema
  and response_mime_type="application/json", so the model replies with JSON
  of a known shape.
- The reply is parsed and validated against the domain models. Any failure
  (transport, authorization, malformed or mismatching JSON) is logged with
  full detail and re-raised as a generic GatewayError subclass whose message
  is safe to show to users. The original exception is not chained.

No retries, no caching. The blocking SDK call runs in a worker thread via
asyncio.to_thread so the event loop stays responsive.

Core Functions:
- ingredient_list_schema() / recipe_list_schema(): response schemas
- parse_ingredient_list() / parse_recipes(): JSON -> validated domain values
- GeminiGateway: the two backend operations plus has_credential()
"""

import asyncio
import base64
import json
import re
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import TypeAdapter, ValidationError

from src.models.errors import (
    ConfigurationError,
    IngredientIdentificationError,
    RecipeGenerationError,
    ResponseParseError,
)
from src.models.models import Difficulty, Recipe, UserPreferences
from src.prompts.prompts import IDENTIFY_INGREDIENTS_PROMPT, get_recipe_prompt
from src.utils.config import config
from src.utils.logger import logger

_INGREDIENT_LIST = TypeAdapter(list[str])
_RECIPE_LIST = TypeAdapter(list[Recipe])

RECIPE_FIELDS = [
    "id",
    "title",
    "description",
    "ingredients",
    "instructions",
    "prepTime",
    "cookTime",
    "difficulty",
    "cuisine",
    "macros",
    "matchPercentage",
]
MACRO_FIELDS = ["protein", "carbs", "fat", "calories"]


# ============================================================================
# Response schemas
# ============================================================================


def ingredient_list_schema() -> types.Schema:
    """Schema for the ingredient-detection reply: an array of strings."""
    return types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))


def recipe_list_schema() -> types.Schema:
    """Schema for the recipe-generation reply.

    An array of recipe objects, every field required. Difficulty is limited to
    the Difficulty enum values, matchPercentage is an integer and macros is a
    nested object with four required numbers.
    """
    string = types.Schema(type=types.Type.STRING)
    string_list = types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))
    number = types.Schema(type=types.Type.NUMBER)

    macros = types.Schema(
        type=types.Type.OBJECT,
        properties={name: number for name in MACRO_FIELDS},
        required=list(MACRO_FIELDS),
    )
    recipe = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "id": string,
            "title": string,
            "description": string,
            "ingredients": string_list,
            "instructions": string_list,
            "prepTime": string,
            "cookTime": string,
            "difficulty": types.Schema(type=types.Type.STRING, enum=[d.value for d in Difficulty]),
            "cuisine": string,
            "matchPercentage": types.Schema(type=types.Type.INTEGER),
            "macros": macros,
        },
        required=list(RECIPE_FIELDS),
    )
    return types.Schema(type=types.Type.ARRAY, items=recipe)


# ============================================================================
# Parsing
# ============================================================================


def _load_json_array(response_text: str) -> Any:
    """Decode a JSON array from the reply text.

    Tries a direct json.loads first, then falls back to the outermost [...]
    span so a reply wrapped in a markdown fence still parses.

    Raises:
        ResponseParseError: If no JSON can be decoded.
    """
    try:
        return json.loads(response_text)
    except json.JSONDecodeError:
        pass

    json_match = re.search(r"\[.*\]", response_text, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group())
        except json.JSONDecodeError:
            pass

    raise ResponseParseError(f"Reply is not valid JSON: {response_text[:80]!r}")


def parse_ingredient_list(response_text: Optional[str]) -> list[str]:
    """Parse the ingredient-detection reply into ingredient names.

    Args:
        response_text: Raw reply text. None or blank means "nothing found".

    Returns:
        Ingredient names in reply order, whitespace-trimmed, blanks dropped.

    Raises:
        ResponseParseError: If the reply is not a JSON array of strings.
    """
    if not response_text or not response_text.strip():
        return []

    data = _load_json_array(response_text)
    try:
        names = _INGREDIENT_LIST.validate_python(data)
    except ValidationError as e:
        raise ResponseParseError(f"Expected a JSON array of strings: {e.error_count()} error(s)") from e

    return [name.strip() for name in names if name.strip()]


def parse_recipes(response_text: Optional[str]) -> list[Recipe]:
    """Parse the recipe-generation reply into Recipe objects.

    Args:
        response_text: Raw reply text. None or blank yields an empty list.

    Returns:
        Recipes in reply order. The count is whatever the model returned.

    Raises:
        ResponseParseError: If the JSON does not match the Recipe schema or two
            recipes share an id.
    """
    if not response_text or not response_text.strip():
        return []

    data = _load_json_array(response_text)
    try:
        recipes = _RECIPE_LIST.validate_python(data)
    except ValidationError as e:
        raise ResponseParseError(f"Reply does not match the recipe schema: {e}") from e

    ids = [recipe.id for recipe in recipes]
    if len(set(ids)) != len(ids):
        raise ResponseParseError(f"Duplicate recipe ids in reply: {ids}")

    return recipes


# ============================================================================
# Gateway
# ============================================================================


class GeminiGateway:
    """Client-side boundary to the Gemini content-generation endpoint.

    Settings default to the module-level config; pass explicit values to
    override them (tests inject a key this way).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        recipe_model: Optional[str] = None,
        image_model: Optional[str] = None,
        recipe_count: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.api_key = config.GEMINI_API_KEY if api_key is None else api_key
        self.recipe_model = recipe_model or config.GEMINI_MODEL
        self.image_model = image_model or config.IMAGE_DETECTION_MODEL
        self.recipe_count = recipe_count or config.RECIPE_COUNT
        self.temperature = config.TEMPERATURE if temperature is None else temperature

    def has_credential(self) -> bool:
        """Local check for a usable API key. Never touches the network."""
        return bool(self.api_key and self.api_key.strip())

    def _require_credential(self) -> None:
        if not self.has_credential():
            raise ConfigurationError("GEMINI_API_KEY is missing")

    def _generation_config(self, schema: types.Schema) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            temperature=self.temperature,
        )

    async def _generate(self, model: str, contents: list, schema: types.Schema) -> Optional[str]:
        """Send one generate_content request and return the reply text."""
        client = genai.Client(api_key=self.api_key)
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=model,
            contents=contents,
            config=self._generation_config(schema),
        )
        return response.text

    async def identify_ingredients_from_image(self, base64_image: str, mime_type: str = "image/jpeg") -> list[str]:
        """Detect ingredient names in a photo.

        Args:
            base64_image: Image content, base64-encoded by the caller.
            mime_type: MIME type of the image (default: image/jpeg).

        Returns:
            Ingredient names in the order the model listed them; empty if the
            model returned no content.

        Raises:
            ConfigurationError: No API key configured (raised before any request).
            IngredientIdentificationError: The request or its parsing failed.
        """
        self._require_credential()
        extra = {"operation": "identify_ingredients", "model": self.image_model}

        try:
            image_bytes = base64.b64decode(base64_image, validate=True)
            logger.info(f"Identifying ingredients ({mime_type}, {len(image_bytes) / 1024:.1f} KB)", extra=extra)
            text = await self._generate(
                self.image_model,
                [
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    IDENTIFY_INGREDIENTS_PROMPT,
                ],
                ingredient_list_schema(),
            )
            ingredients = parse_ingredient_list(text)
        except Exception as e:
            logger.error(f"Error identifying ingredients: {e}", exc_info=True, extra=extra)
            raise IngredientIdentificationError() from None

        logger.info(f"Identified {len(ingredients)} ingredient(s)", extra=extra)
        return ingredients

    async def generate_recipes(self, ingredients: Sequence[str], preferences: UserPreferences) -> list[Recipe]:
        """Ask the model for recipe suggestions.

        The ingredient list is not checked for emptiness here; callers reject
        an empty list before calling.

        Args:
            ingredients: Ingredient names in entry order.
            preferences: Dietary restrictions, cuisines and meal type.

        Returns:
            Validated recipes in reply order (normally recipe_count of them).

        Raises:
            ConfigurationError: No API key configured (raised before any request).
            RecipeGenerationError: The request or its parsing failed.
        """
        self._require_credential()
        extra = {"operation": "generate_recipes", "model": self.recipe_model}

        try:
            prompt = get_recipe_prompt(ingredients, preferences, recipe_count=self.recipe_count)
            logger.info(f"Generating recipes for {len(ingredients)} ingredient(s)", extra=extra)
            logger.debug(f"Recipe prompt:\n{prompt}", extra=extra)
            text = await self._generate(self.recipe_model, [prompt], recipe_list_schema())
            recipes = parse_recipes(text)
        except Exception as e:
            logger.error(f"Error generating recipes: {e}", exc_info=True, extra=extra)
            raise RecipeGenerationError() from None

        logger.info(f"Generated {len(recipes)} recipe(s)", extra=extra)
        return recipes
