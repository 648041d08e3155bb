"""Application state controller.

RecipeController owns the session's AppState and is the only code that mutates
it. Every user action maps to one named transition method:

    add_ingredient / remove_ingredient      ingredient list edits
    toggle_* / set_meal_type                preferences panel
    set_preferences                         whole preference set at once
    upload_image                            idle -> analyzing-image -> idle
    generate_recipes                        idle -> generating-recipes -> idle
    reset / go_home                         results -> home
    select_recipe / close_recipe            detail view
    dismiss_error                           clears the error banner

The two backend transitions are single-flight: calling either while
loading_state is not idle raises OperationInProgressError and leaves the state
untouched. loading_state is set before the first await, so the guard holds
for coroutines scheduled concurrently on the same event loop. Whatever the
outcome, a backend transition always ends with loading_state back at idle.

If the gateway has no credential, setup_required is set at construction and
both backend transitions raise ConfigurationError without touching the
network or the filesystem.
"""

from pathlib import Path
from typing import Optional, Sequence

from src.models.errors import (
    ConfigurationError,
    GatewayError,
    ImageLoadError,
    OperationInProgressError,
)
from src.models.models import AppState, LoadingState, Recipe, UserPreferences, View
from src.services.gemini import GeminiGateway
from src.services.images import load_image
from src.utils.logger import logger

IMAGE_ERROR_MESSAGE = "Could not identify ingredients from the image. Please try again."
GENERATE_ERROR_MESSAGE = "Failed to generate recipes. Please check your API key or try again later."
EMPTY_INGREDIENTS_MESSAGE = "Please add at least one ingredient."


class RecipeController:
    """State machine driving the UI. See module docstring for transitions."""

    def __init__(self, gateway: GeminiGateway, state: Optional[AppState] = None) -> None:
        self.gateway = gateway
        self.state = state if state is not None else AppState()

        if not gateway.has_credential():
            logger.error("GEMINI_API_KEY is missing from environment variables; setup required")
            self.state.setup_required = True

    # ------------------------------------------------------------------
    # Ingredient list
    # ------------------------------------------------------------------

    def add_ingredient(self, name: str) -> bool:
        """Append name unless an identical entry exists. Returns True if added."""
        if name in self.state.ingredients:
            logger.debug(f"Ingredient already present: {name!r}")
            return False
        self.state.ingredients.append(name)
        return True

    def remove_ingredient(self, name: str) -> bool:
        """Remove every entry equal to name. Returns True if anything was removed."""
        remaining = [i for i in self.state.ingredients if i != name]
        removed = len(remaining) != len(self.state.ingredients)
        self.state.ingredients = remaining
        return removed

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def toggle_dietary_restriction(self, option: str) -> None:
        """Add or remove a dietary restriction.

        Raises:
            ValueError: If option is not one of DIETARY_OPTIONS.
        """
        prefs = self.state.preferences
        prefs.dietary_restrictions = _toggled(prefs.dietary_restrictions, option)

    def toggle_cuisine(self, option: str) -> None:
        """Add or remove a preferred cuisine.

        Raises:
            ValueError: If option is not one of CUISINE_OPTIONS.
        """
        prefs = self.state.preferences
        prefs.cuisines = _toggled(prefs.cuisines, option)

    def set_meal_type(self, meal_type: str) -> None:
        """Select a single meal type.

        Raises:
            ValueError: If meal_type is not one of MEAL_TYPES.
        """
        self.state.preferences.meal_type = meal_type

    def set_preferences(
        self,
        dietary_restrictions: Sequence[str] = (),
        cuisines: Sequence[str] = (),
        meal_type: Optional[str] = None,
    ) -> None:
        """Select exactly the given options. Repeated values count once.

        Raises:
            ValueError: If any value is not a known option. Nothing is changed.
        """
        self.state.preferences = UserPreferences(
            dietary_restrictions=list(dietary_restrictions),
            cuisines=list(cuisines),
            meal_type=meal_type or self.state.preferences.meal_type,
        )

    # ------------------------------------------------------------------
    # Backend transitions
    # ------------------------------------------------------------------

    def _guard(self) -> None:
        if self.state.setup_required:
            raise ConfigurationError("GEMINI_API_KEY is missing")
        if self.state.is_busy:
            raise OperationInProgressError(f"Cannot start while {self.state.loading_state.value}")

    def _begin(self, loading_state: LoadingState) -> None:
        self._guard()
        self.state.loading_state = loading_state
        self.state.error = None
        logger.debug(f"Loading state: idle -> {loading_state.value}")

    def _finish(self) -> None:
        logger.debug(f"Loading state: {self.state.loading_state.value} -> idle")
        self.state.loading_state = LoadingState.IDLE

    async def upload_image(self, image_source: str | bytes | Path) -> list[str]:
        """Detect ingredients in an image and merge them into the list.

        The merge is an exact-match union: existing entries keep their order,
        new names are appended in the order the model returned them.

        Args:
            image_source: File path, http(s) URL, data URI or raw bytes.

        Returns:
            The detected names (possibly including ones already listed), or an
            empty list if detection failed. On failure state.error is set.

        Raises:
            ConfigurationError: Setup required; nothing was attempted.
            OperationInProgressError: Another backend operation is in flight.
        """
        self._begin(LoadingState.ANALYZING_IMAGE)
        try:
            image = await load_image(image_source)
            detected = await self.gateway.identify_ingredients_from_image(image.data, image.mime_type)
        except ConfigurationError:
            self.state.setup_required = True
            raise
        except (ImageLoadError, GatewayError) as e:
            logger.warning(f"Image analysis failed: {e}", extra={"operation": "upload_image"})
            self.state.error = IMAGE_ERROR_MESSAGE
            return []
        finally:
            self._finish()

        self.state.ingredients = list(dict.fromkeys([*self.state.ingredients, *detected]))
        logger.info(
            f"Merged {len(detected)} detected ingredient(s); list now has {len(self.state.ingredients)}",
            extra={"operation": "upload_image"},
        )
        return detected

    async def generate_recipes(self) -> list[Recipe]:
        """Request recipes for the current ingredients and preferences.

        An empty ingredient list is rejected locally: state.error is set and
        the gateway is never called.

        Returns:
            The recipes now stored in state.recipes, or an empty list if the
            request was rejected or failed (state.error says which).

        Raises:
            ConfigurationError: Setup required; nothing was attempted.
            OperationInProgressError: Another backend operation is in flight.
        """
        self._guard()
        if not self.state.ingredients:
            self.state.error = EMPTY_INGREDIENTS_MESSAGE
            return []

        self._begin(LoadingState.GENERATING_RECIPES)
        try:
            recipes = await self.gateway.generate_recipes(list(self.state.ingredients), self.state.preferences)
        except ConfigurationError:
            self.state.setup_required = True
            raise
        except GatewayError as e:
            logger.warning(f"Recipe generation failed: {e}", extra={"operation": "generate_recipes"})
            self.state.error = GENERATE_ERROR_MESSAGE
            return []
        finally:
            self._finish()

        self.state.recipes = recipes
        self.state.selected_recipe = None
        self.state.view = View.RESULTS
        return recipes

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Back to the home view, discarding stored recipes."""
        self.state.view = View.HOME
        self.state.recipes = []
        self.state.selected_recipe = None

    def go_home(self) -> None:
        """Back to the home view, keeping recipes (header logo behaviour)."""
        self.state.view = View.HOME
        self.state.selected_recipe = None

    def select_recipe(self, recipe_id: str) -> Recipe:
        """Open the detail view for one of the stored recipes.

        Raises:
            KeyError: If no stored recipe has that id.
        """
        for recipe in self.state.recipes:
            if recipe.id == recipe_id:
                self.state.selected_recipe = recipe
                return recipe
        raise KeyError(recipe_id)

    def close_recipe(self) -> None:
        self.state.selected_recipe = None

    def dismiss_error(self) -> None:
        self.state.error = None


def _toggled(values: list[str], option: str) -> list[str]:
    if option in values:
        return [v for v in values if v != option]
    return [*values, option]
