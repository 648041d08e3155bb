"""Prompts sent to Gemini.

Holds the fixed ingredient-detection instruction and a factory that renders
the recipe-generation prompt from the current ingredients and preferences.
The JSON shape of each reply is enforced separately through the response
schemas in src/services/gemini.py; the prompts only describe the task.
"""

from typing import Sequence

from src.models.models import UserPreferences

PANTRY_STAPLES = ["salt", "pepper", "oil", "flour", "sugar", "water"]

IDENTIFY_INGREDIENTS_PROMPT = (
    "Identify all the food ingredients visible in this image. "
    'Return ONLY a simple JSON list of strings, e.g., ["apple", "milk"]. '
    "Do not include quantities or adjectives unless necessary."
)


def _join_or(values: Sequence[str], fallback: str) -> str:
    """Comma-join values, or return fallback when there are none."""
    joined = ", ".join(v for v in values if v)
    return joined or fallback


def get_recipe_prompt(
    ingredients: Sequence[str],
    preferences: UserPreferences,
    recipe_count: int = 3,
) -> str:
    """Generate the recipe-suggestion prompt.

    Args:
        ingredients: Ingredient names in the order the user entered them.
        preferences: Current dietary restrictions, cuisines and meal type.
        recipe_count: Number of distinct recipes to ask for (default: 3).

    Returns:
        str: Prompt text. Empty restrictions render as "None", empty cuisines
        and meal type as "Any".
    """
    restrictions = _join_or(preferences.dietary_restrictions, "None")
    cuisines = _join_or(preferences.cuisines, "Any")
    meal_type = preferences.meal_type or "Any"
    staples = ", ".join(PANTRY_STAPLES)

    return f"""You are a world-class chef and nutritionist.

User Ingredients: {", ".join(ingredients)}.
Dietary Restrictions: {restrictions}.
Preferred Cuisines: {cuisines}.
Meal Type: {meal_type}.

Task: Suggest {recipe_count} creative and distinct recipes that use the provided ingredients.
It is okay to assume the user has basic pantry staples like {staples}.

For each recipe, estimate the nutritional values (macros): protein, carbs and fat in grams, and calories.
Calculate a 'matchPercentage' (0-100) based on how many of the User Ingredients are used vs how many extra are needed.
Give every recipe a short unique 'id'.
"""
