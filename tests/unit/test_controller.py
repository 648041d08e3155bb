"""Unit tests for the application state controller.

Tests cover:
- Ingredient list edits (dedup on add, remove-all on remove)
- Preference toggles
- Image upload: merge, failure message, loading state
- Recipe generation: empty-list rejection, results view, failure message
- Single-flight guard and setup-required short-circuit
- Navigation (reset, go_home, select/close recipe)
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from src.controller.controller import (
    EMPTY_INGREDIENTS_MESSAGE,
    GENERATE_ERROR_MESSAGE,
    IMAGE_ERROR_MESSAGE,
    RecipeController,
)
from src.models.errors import (
    ConfigurationError,
    ImageLoadError,
    IngredientIdentificationError,
    OperationInProgressError,
    RecipeGenerationError,
)
from src.models.models import AppState, LoadingState, View
from src.services.images import EncodedImage


@pytest.fixture
def controller(mock_gateway):
    return RecipeController(mock_gateway)


@pytest.fixture
def no_key_controller(mock_gateway):
    mock_gateway.has_credential.return_value = False
    return RecipeController(mock_gateway)


@pytest.fixture
def fake_image():
    with patch("src.controller.controller.load_image", new_callable=AsyncMock) as mock_load:
        mock_load.return_value = EncodedImage(data="aW1n", mime_type="image/png")
        yield mock_load


class TestIngredients:
    """Test add/remove transitions."""

    def test_add_appends_in_order(self, controller):
        controller.add_ingredient("egg")
        controller.add_ingredient("flour")
        assert controller.state.ingredients == ["egg", "flour"]

    def test_duplicate_add_suppressed(self, controller):
        for name in ["egg", "egg", "flour"]:
            controller.add_ingredient(name)
        assert controller.state.ingredients == ["egg", "flour"]

    def test_add_returns_whether_added(self, controller):
        assert controller.add_ingredient("egg") is True
        assert controller.add_ingredient("egg") is False

    def test_add_is_case_sensitive(self, controller):
        controller.add_ingredient("Egg")
        controller.add_ingredient("egg")
        assert controller.state.ingredients == ["Egg", "egg"]

    def test_remove(self, controller):
        controller.state.ingredients = ["egg", "flour", "milk"]
        assert controller.remove_ingredient("flour") is True
        assert controller.state.ingredients == ["egg", "milk"]

    def test_remove_absent_is_noop(self, controller):
        controller.state.ingredients = ["egg"]
        assert controller.remove_ingredient("milk") is False
        assert controller.state.ingredients == ["egg"]

    def test_remove_drops_all_equal_entries(self, mock_gateway):
        controller = RecipeController(mock_gateway, AppState(ingredients=["egg", "milk", "egg"]))
        controller.remove_ingredient("egg")
        assert controller.state.ingredients == ["milk"]

    def test_add_does_not_touch_loading_state_or_view(self, controller):
        controller.add_ingredient("egg")
        assert controller.state.loading_state is LoadingState.IDLE
        assert controller.state.view is View.HOME


class TestPreferences:
    """Test preference transitions."""

    def test_toggle_dietary_restriction(self, controller):
        controller.toggle_dietary_restriction("Vegan")
        controller.toggle_dietary_restriction("Keto")
        assert controller.state.preferences.dietary_restrictions == ["Vegan", "Keto"]

        controller.toggle_dietary_restriction("Vegan")
        assert controller.state.preferences.dietary_restrictions == ["Keto"]

    def test_toggle_cuisine(self, controller):
        controller.toggle_cuisine("Italian")
        assert controller.state.preferences.cuisines == ["Italian"]
        controller.toggle_cuisine("Italian")
        assert controller.state.preferences.cuisines == []

    def test_set_meal_type(self, controller):
        controller.set_meal_type("Breakfast")
        controller.set_meal_type("Dinner")
        assert controller.state.preferences.meal_type == "Dinner"

    def test_unknown_option_rejected_and_state_kept(self, controller):
        with pytest.raises(ValidationError):
            controller.toggle_cuisine("Martian")
        with pytest.raises(ValueError):
            controller.set_meal_type("Brunch")

        assert controller.state.preferences.cuisines == []
        assert controller.state.preferences.meal_type == "Any"

    def test_set_preferences_selects_each_option_once(self, controller):
        controller.toggle_cuisine("Asian")

        controller.set_preferences(dietary_restrictions=["Vegan", "Vegan"], cuisines=["Italian"])

        assert controller.state.preferences.dietary_restrictions == ["Vegan"]
        assert controller.state.preferences.cuisines == ["Italian"]
        assert controller.state.preferences.meal_type == "Any"

    def test_set_preferences_rejects_unknown_without_change(self, controller):
        controller.toggle_cuisine("Asian")

        with pytest.raises(ValueError):
            controller.set_preferences(dietary_restrictions=["Carnivore"], meal_type="Dinner")

        assert controller.state.preferences.cuisines == ["Asian"]
        assert controller.state.preferences.meal_type == "Any"


class TestUploadImage:
    """Test the image-analysis transition."""

    @pytest.mark.asyncio
    async def test_merge_is_exact_union(self, controller, mock_gateway, fake_image):
        controller.state.ingredients = ["a", "c"]
        mock_gateway.identify_ingredients_from_image.return_value = ["a", "b"]

        detected = await controller.upload_image("fridge.png")

        assert detected == ["a", "b"]
        assert controller.state.ingredients == ["a", "c", "b"]
        assert set(controller.state.ingredients) == {"a", "b", "c"}

    @pytest.mark.asyncio
    async def test_duplicates_within_reply_collapse(self, controller, mock_gateway, fake_image):
        mock_gateway.identify_ingredients_from_image.return_value = ["egg", "egg", "milk"]

        await controller.upload_image("fridge.png")

        assert controller.state.ingredients == ["egg", "milk"]

    @pytest.mark.asyncio
    async def test_passes_encoded_image(self, controller, mock_gateway, fake_image):
        await controller.upload_image("fridge.png")

        fake_image.assert_awaited_once_with("fridge.png")
        mock_gateway.identify_ingredients_from_image.assert_awaited_once_with("aW1n", "image/png")

    @pytest.mark.asyncio
    async def test_real_bytes_source(self, controller, mock_gateway, png_bytes):
        mock_gateway.identify_ingredients_from_image.return_value = ["tomato"]

        await controller.upload_image(png_bytes)

        assert controller.state.ingredients == ["tomato"]
        assert mock_gateway.identify_ingredients_from_image.call_args.args[1] == "image/png"

    @pytest.mark.asyncio
    async def test_loading_state_during_call(self, controller, mock_gateway, fake_image):
        seen = []

        async def identify(*_):
            seen.append(controller.state.loading_state)
            return ["egg"]

        mock_gateway.identify_ingredients_from_image.side_effect = identify

        await controller.upload_image("fridge.png")

        assert seen == [LoadingState.ANALYZING_IMAGE]
        assert controller.state.loading_state is LoadingState.IDLE

    @pytest.mark.asyncio
    async def test_gateway_failure(self, controller, mock_gateway, fake_image):
        controller.state.ingredients = ["egg"]
        mock_gateway.identify_ingredients_from_image.side_effect = IngredientIdentificationError()

        assert await controller.upload_image("fridge.png") == []

        assert controller.state.error == IMAGE_ERROR_MESSAGE
        assert controller.state.loading_state is LoadingState.IDLE
        assert controller.state.ingredients == ["egg"]

    @pytest.mark.asyncio
    async def test_unreadable_file(self, controller, mock_gateway, fake_image):
        fake_image.side_effect = ImageLoadError("Failed to read image file")

        await controller.upload_image("missing.png")

        assert controller.state.error == IMAGE_ERROR_MESSAGE
        assert controller.state.loading_state is LoadingState.IDLE
        mock_gateway.identify_ingredients_from_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_path_shows_image_error(self, controller, mock_gateway):
        await controller.upload_image("fridge\x00.jpg")

        assert controller.state.error == IMAGE_ERROR_MESSAGE
        assert controller.state.loading_state is LoadingState.IDLE
        mock_gateway.identify_ingredients_from_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_clears_previous_error(self, controller, mock_gateway, fake_image):
        controller.state.error = "old"
        await controller.upload_image("fridge.png")
        assert controller.state.error is None


class TestGenerateRecipes:
    """Test the recipe-generation transition."""

    @pytest.mark.asyncio
    async def test_empty_ingredients_rejected_locally(self, controller, mock_gateway):
        assert await controller.generate_recipes() == []

        assert controller.state.error == EMPTY_INGREDIENTS_MESSAGE
        assert controller.state.loading_state is LoadingState.IDLE
        assert controller.state.view is View.HOME
        mock_gateway.generate_recipes.assert_not_called()

    @pytest.mark.asyncio
    async def test_success_moves_to_results(self, controller, mock_gateway, make_recipe):
        recipes = [make_recipe("r1"), make_recipe("r2"), make_recipe("r3")]
        mock_gateway.generate_recipes.return_value = recipes
        controller.add_ingredient("egg")

        result = await controller.generate_recipes()

        assert result == recipes
        assert controller.state.recipes == recipes
        assert [r.id for r in controller.state.recipes] == ["r1", "r2", "r3"]
        assert controller.state.view is View.RESULTS
        assert controller.state.loading_state is LoadingState.IDLE
        assert controller.state.error is None

    @pytest.mark.asyncio
    async def test_sends_ingredients_and_preferences(self, controller, mock_gateway):
        controller.add_ingredient("egg")
        controller.add_ingredient("flour")
        controller.toggle_dietary_restriction("Vegetarian")

        await controller.generate_recipes()

        ingredients, prefs = mock_gateway.generate_recipes.call_args.args
        assert ingredients == ["egg", "flour"]
        assert prefs.dietary_restrictions == ["Vegetarian"]

    @pytest.mark.asyncio
    async def test_loading_state_during_call(self, controller, mock_gateway):
        seen = []

        async def generate(*_):
            seen.append(controller.state.loading_state)
            return []

        mock_gateway.generate_recipes.side_effect = generate
        controller.add_ingredient("egg")

        await controller.generate_recipes()

        assert seen == [LoadingState.GENERATING_RECIPES]
        assert controller.state.loading_state is LoadingState.IDLE

    @pytest.mark.asyncio
    async def test_failure_keeps_view_and_previous_results(self, controller, mock_gateway, make_recipe):
        controller.add_ingredient("egg")
        controller.state.recipes = [make_recipe("old")]
        mock_gateway.generate_recipes.side_effect = RecipeGenerationError()

        assert await controller.generate_recipes() == []

        assert controller.state.error == GENERATE_ERROR_MESSAGE
        assert controller.state.loading_state is LoadingState.IDLE
        assert controller.state.view is View.HOME
        assert [r.id for r in controller.state.recipes] == ["old"]

    @pytest.mark.asyncio
    async def test_manual_retry_after_failure(self, controller, mock_gateway, make_recipe):
        controller.add_ingredient("egg")
        mock_gateway.generate_recipes.side_effect = [RecipeGenerationError(), [make_recipe()]]

        await controller.generate_recipes()
        await controller.generate_recipes()

        assert controller.state.view is View.RESULTS
        assert controller.state.error is None
        assert mock_gateway.generate_recipes.await_count == 2


class TestSingleFlight:
    """Test that only one backend operation runs at a time."""

    @pytest.mark.asyncio
    async def test_second_operation_rejected_while_in_flight(self, controller, mock_gateway, fake_image):
        release = asyncio.Event()

        async def slow_generate(*_):
            await release.wait()
            return []

        mock_gateway.generate_recipes.side_effect = slow_generate
        controller.add_ingredient("egg")

        task = asyncio.create_task(controller.generate_recipes())
        await asyncio.sleep(0)
        assert controller.state.loading_state is LoadingState.GENERATING_RECIPES

        with pytest.raises(OperationInProgressError):
            await controller.generate_recipes()
        with pytest.raises(OperationInProgressError):
            await controller.upload_image("fridge.png")

        assert controller.state.loading_state is LoadingState.GENERATING_RECIPES
        release.set()
        await task

        assert controller.state.loading_state is LoadingState.IDLE
        assert mock_gateway.generate_recipes.await_count == 1
        mock_gateway.identify_ingredients_from_image.assert_not_called()

    @pytest.mark.asyncio
    async def test_busy_state_rejects_even_with_empty_list(self, controller, mock_gateway):
        controller.state.loading_state = LoadingState.ANALYZING_IMAGE

        with pytest.raises(OperationInProgressError):
            await controller.generate_recipes()


class TestSetupRequired:
    """Test the missing-credential short-circuit."""

    def test_flag_set_at_construction(self, no_key_controller):
        assert no_key_controller.state.setup_required is True

    @pytest.mark.asyncio
    async def test_no_backend_or_file_activity(self, no_key_controller, mock_gateway, fake_image):
        no_key_controller.add_ingredient("egg")

        with pytest.raises(ConfigurationError):
            await no_key_controller.generate_recipes()
        with pytest.raises(ConfigurationError):
            await no_key_controller.upload_image("fridge.png")

        fake_image.assert_not_called()
        mock_gateway.generate_recipes.assert_not_called()
        mock_gateway.identify_ingredients_from_image.assert_not_called()
        assert no_key_controller.state.loading_state is LoadingState.IDLE

    @pytest.mark.asyncio
    async def test_configuration_error_from_gateway_switches_to_setup(self, controller, mock_gateway):
        controller.add_ingredient("egg")
        mock_gateway.generate_recipes.side_effect = ConfigurationError("GEMINI_API_KEY is missing")

        with pytest.raises(ConfigurationError):
            await controller.generate_recipes()

        assert controller.state.setup_required is True
        assert controller.state.loading_state is LoadingState.IDLE


class TestNavigation:
    """Test view transitions."""

    @pytest.mark.asyncio
    async def test_reset_returns_home_and_clears(self, controller, mock_gateway, make_recipe):
        mock_gateway.generate_recipes.return_value = [make_recipe()]
        controller.add_ingredient("egg")
        await controller.generate_recipes()
        controller.select_recipe("r1")

        controller.reset()

        assert controller.state.view is View.HOME
        assert controller.state.recipes == []
        assert controller.state.selected_recipe is None
        assert controller.state.ingredients == ["egg"]

    def test_reset_from_home_is_harmless(self, controller):
        controller.reset()
        assert controller.state.view is View.HOME
        assert controller.state.recipes == []

    def test_go_home_keeps_recipes(self, controller, make_recipe):
        controller.state.recipes = [make_recipe()]
        controller.state.view = View.RESULTS

        controller.go_home()

        assert controller.state.view is View.HOME
        assert len(controller.state.recipes) == 1

    def test_select_and_close_recipe(self, controller, make_recipe):
        controller.state.recipes = [make_recipe("r1"), make_recipe("r2")]

        assert controller.select_recipe("r2").id == "r2"
        assert controller.state.selected_recipe.id == "r2"

        controller.close_recipe()
        assert controller.state.selected_recipe is None

    def test_select_unknown_recipe(self, controller):
        with pytest.raises(KeyError):
            controller.select_recipe("missing")

    def test_dismiss_error(self, controller):
        controller.state.error = "boom"
        controller.dismiss_error()
        assert controller.state.error is None
