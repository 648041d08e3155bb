"""Data models for the ChefAI recipe suggestion app.

Defines Pydantic models for the data exchanged with Gemini and the session
state owned by the controller. Recipes arrive from the backend with camelCase
keys (prepTime, matchPercentage, ...); they are exposed here as snake_case
attributes through field aliases.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DIETARY_OPTIONS = ["Vegetarian", "Vegan", "Gluten-Free", "Keto", "Paleo", "Dairy-Free"]
CUISINE_OPTIONS = ["Italian", "Mexican", "Asian", "Mediterranean", "Indian", "American"]
MEAL_TYPES = ["Breakfast", "Lunch", "Dinner", "Snack", "Any"]
DEFAULT_MEAL_TYPE = "Any"


def match_option(value: str, options: List[str]) -> str:
    """Case-insensitive lookup of a preference option; unknown values pass through."""
    for option in options:
        if option.lower() == value.strip().lower():
            return option
    return value


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class LoadingState(str, Enum):
    """Which backend operation, if any, is currently in flight."""

    IDLE = "idle"
    ANALYZING_IMAGE = "analyzing-image"
    GENERATING_RECIPES = "generating-recipes"
    ERROR = "error"


class View(str, Enum):
    HOME = "home"
    RESULTS = "results"


class MacroNutrients(BaseModel):
    """Estimated nutrition for one serving. Grams, except calories (kcal)."""

    model_config = ConfigDict(frozen=True)

    protein: Annotated[float, Field(ge=0, description="Protein in grams")]
    carbs: Annotated[float, Field(ge=0, description="Carbohydrates in grams")]
    fat: Annotated[float, Field(ge=0, description="Fat in grams")]
    calories: Annotated[float, Field(ge=0, description="Energy in kcal")]


class Recipe(BaseModel):
    """Domain model for a generated recipe.

    Produced only by the gateway's parse step and never modified afterwards
    (the model is frozen). Durations are free text as returned by the model,
    e.g. "15 mins".
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    id: Annotated[str, Field(min_length=1, description="Identifier, unique within one response")]
    title: Annotated[str, Field(min_length=1, description="Recipe name")]
    description: str
    ingredients: Annotated[tuple[str, ...], Field(description="Ingredients in display order")]
    instructions: Annotated[tuple[str, ...], Field(description="Cooking steps in order")]
    prep_time: Annotated[str, Field(alias="prepTime")]
    cook_time: Annotated[str, Field(alias="cookTime")]
    difficulty: Difficulty
    cuisine: str
    macros: MacroNutrients
    match_percentage: Annotated[
        int,
        Field(
            alias="matchPercentage",
            description="Estimated share of the user's ingredients the recipe uses (0-100)",
        ),
    ]

    @field_validator("match_percentage")
    @classmethod
    def clamp_match_percentage(cls, v: int) -> int:
        """Clamp the model's estimate into 0-100 rather than rejecting the recipe."""
        return max(0, min(100, v))


class UserPreferences(BaseModel):
    """Dietary preferences chosen in the preferences panel.

    The two list fields behave as sets: duplicates are dropped and every value
    must come from the corresponding option list.
    """

    model_config = ConfigDict(validate_assignment=True)

    dietary_restrictions: List[str] = Field(default_factory=list)
    cuisines: List[str] = Field(default_factory=list)
    meal_type: str = DEFAULT_MEAL_TYPE

    @staticmethod
    def _check_options(values: List[str], options: List[str], label: str) -> List[str]:
        unknown = [v for v in values if v not in options]
        if unknown:
            raise ValueError(f"Unknown {label}: {', '.join(unknown)}. Choose from: {', '.join(options)}")
        return list(dict.fromkeys(values))

    @field_validator("dietary_restrictions")
    @classmethod
    def validate_dietary_restrictions(cls, v: List[str]) -> List[str]:
        return cls._check_options(v, DIETARY_OPTIONS, "dietary restriction")

    @field_validator("cuisines")
    @classmethod
    def validate_cuisines(cls, v: List[str]) -> List[str]:
        return cls._check_options(v, CUISINE_OPTIONS, "cuisine")

    @field_validator("meal_type")
    @classmethod
    def validate_meal_type(cls, v: str) -> str:
        if v not in MEAL_TYPES:
            raise ValueError(f"Unknown meal type: {v}. Choose from: {', '.join(MEAL_TYPES)}")
        return v


class AppState(BaseModel):
    """Everything the UI renders. Owned and mutated only by RecipeController."""

    ingredients: List[str] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    recipes: List[Recipe] = Field(default_factory=list)
    selected_recipe: Optional[Recipe] = None
    loading_state: LoadingState = LoadingState.IDLE
    error: Optional[str] = None
    view: View = View.HOME
    setup_required: bool = False

    @property
    def is_busy(self) -> bool:
        return self.loading_state != LoadingState.IDLE
