#!/usr/bin/env python3
"""One-shot recipe query runner for ChefAI.

Generate recipes directly from the command line without the interactive shell.

Usage:
    python query.py "chicken, rice, spinach"
    python query.py --diet Vegetarian --cuisine Italian --meal Dinner "tomato, basil, pasta"
    python query.py --image images/fridge.jpg  # Detect ingredients, then generate
    python query.py --image images/fridge.jpg "eggs"  # Photo plus typed ingredients
    python query.py --debug "eggs, flour"  # Print recipes as JSON instead of cards

Features:
- Ingredients as comma-separated text (duplicates ignored)
- Repeatable --diet and --cuisine flags, single --meal flag
- Optional --image for ingredient detection before generation
- Debug mode to dump the validated recipes as JSON
"""

import asyncio
import sys
from typing import Optional

from rich.console import Console

from src.controller.controller import RecipeController
from src.models.errors import ConfigurationError
from src.models.models import CUISINE_OPTIONS, DIETARY_OPTIONS, MEAL_TYPES, match_option
from src.services.gemini import GeminiGateway
from src.ui.render import render_error, render_recipe_detail, render_recipe_grid, render_setup_required
from src.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--debug] [--image PATH] [--diet X] [--cuisine X] [--meal X] "<ingredients>"'


async def run_query(
    ingredients: list[str],
    diets: list[str],
    cuisines: list[str],
    meal_type: Optional[str] = None,
    image_path: Optional[str] = None,
    debug: bool = False,
) -> int:
    """Run image detection (optional) and recipe generation once, then print.

    Returns:
        Process exit code: 0 on success, 1 on any failure.
    """
    controller = RecipeController(GeminiGateway())
    if controller.state.setup_required:
        console.print(render_setup_required())
        return 1

    for name in ingredients:
        controller.add_ingredient(name)
    controller.set_preferences(
        dietary_restrictions=[match_option(diet, DIETARY_OPTIONS) for diet in diets],
        cuisines=[match_option(cuisine, CUISINE_OPTIONS) for cuisine in cuisines],
        meal_type=match_option(meal_type, MEAL_TYPES) if meal_type else None,
    )

    try:
        if image_path:
            with console.status("Analyzing image..."):
                detected = await controller.upload_image(image_path)
            if controller.state.error:
                console.print(render_error(controller.state.error))
                return 1
            logger.info(f"Detected ingredients: {', '.join(detected) or 'none'}")

        with console.status("✨ Chef is thinking..."):
            recipes = await controller.generate_recipes()
    except ConfigurationError:
        console.print(render_setup_required())
        return 1

    if controller.state.error:
        console.print(render_error(controller.state.error))
        return 1

    if debug:
        console.print_json(data=[recipe.model_dump(mode="json", by_alias=True) for recipe in recipes])
        return 0

    console.print(render_recipe_grid(recipes, len(controller.state.ingredients)))
    for recipe in recipes:
        console.print(render_recipe_detail(recipe))
    return 0


def parse_args(argv: list[str]) -> dict:
    """Parse flags and the trailing ingredient text.

    Raises:
        ValueError: On unknown flags, a flag missing its value, or no input.
    """
    options = {"ingredients": [], "diets": [], "cuisines": [], "meal_type": None, "image_path": None, "debug": False}
    valued_flags = {"--image": "image_path", "--meal": "meal_type", "--diet": "diets", "--cuisine": "cuisines"}

    idx = 0
    while idx < len(argv) and argv[idx].startswith("--"):
        flag = argv[idx]
        if flag == "--debug":
            options["debug"] = True
            idx += 1
            continue
        if flag not in valued_flags:
            raise ValueError(f"Unknown flag: {flag}")
        if idx + 1 >= len(argv):
            raise ValueError(f"{flag} flag requires a value")
        key = valued_flags[flag]
        if isinstance(options[key], list):
            options[key].append(argv[idx + 1])
        else:
            options[key] = argv[idx + 1]
        idx += 2

    text = " ".join(argv[idx:])
    options["ingredients"] = [name.strip() for name in text.split(",") if name.strip()]

    if not options["ingredients"] and not options["image_path"]:
        raise ValueError("No ingredients or image provided")
    return options


if __name__ == "__main__":
    try:
        args = parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"Error: {e}")
        print(USAGE)
        sys.exit(1)

    try:
        sys.exit(asyncio.run(run_query(**args)))
    except ValueError as e:
        # Invalid preference option
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Query interrupted by user.")
        sys.exit(0)
