"""Rich renderers for the ChefAI terminal UI.

Pure functions from state to rich renderables. Nothing here mutates state or
talks to the backend; app.py and query.py print what these return.
"""

from typing import Sequence

from rich.columns import Columns
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from src.models.models import (
    CUISINE_OPTIONS,
    DIETARY_OPTIONS,
    MEAL_TYPES,
    AppState,
    Difficulty,
    LoadingState,
    MacroNutrients,
    Recipe,
    UserPreferences,
    View,
)

DIFFICULTY_STYLES = {
    Difficulty.EASY: "green",
    Difficulty.MEDIUM: "yellow",
    Difficulty.HARD: "red",
}

MACRO_STYLES = {"Protein": "green", "Carbs": "yellow", "Fat": "blue"}


def macro_breakdown(macros: MacroNutrients) -> list[tuple[str, float, float]]:
    """Split protein, carbs and fat into shares of their combined grams.

    Returns:
        (name, grams, percent) triples. Percent is 0 for every entry when the
        total is zero.
    """
    parts = [("Protein", macros.protein), ("Carbs", macros.carbs), ("Fat", macros.fat)]
    total = sum(grams for _, grams in parts)
    return [(name, grams, (grams / total * 100) if total else 0.0) for name, grams in parts]


def _format_number(value: float) -> str:
    return f"{value:g}"


def render_setup_required() -> RenderableType:
    body = Text.assemble(
        ("ChefAI requires a ", ""),
        ("Gemini API Key", "bold"),
        (" to function.\n\n", ""),
        ("How to fix this:\n", "bold"),
        ("  1. Get a key from Google AI Studio\n", ""),
        ("  2. Set GEMINI_API_KEY in your environment or a .env file\n", ""),
        ("  3. Restart ChefAI\n", ""),
    )
    return Panel(body, title="🔑 Setup Required", border_style="yellow", expand=False)


def render_error(message: str) -> RenderableType:
    return Panel(Text(message, style="red"), title="⚠ Error", border_style="red", expand=False)


def render_ingredients(ingredients: Sequence[str], analyzing: bool = False) -> RenderableType:
    if ingredients:
        body = Text(" · ".join(ingredients))
    else:
        body = Text("No ingredients yet. Add some or scan a photo of your fridge.", style="dim")
    if analyzing:
        body.append("\n⏳ Analyzing image...", style="cyan")
    return Panel(body, title="Your Ingredients", border_style="green")


def _option_line(options: Sequence[str], selected: Sequence[str], style: str) -> Text:
    line = Text()
    for option in options:
        if option in selected:
            line.append(f"[x] {option}", style=f"bold {style}")
        else:
            line.append(f"[ ] {option}", style="dim")
        line.append("  ")
    return line


def render_preferences(preferences: UserPreferences) -> RenderableType:
    table = Table.grid(padding=(0, 1))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Dietary", _option_line(DIETARY_OPTIONS, preferences.dietary_restrictions, "green"))
    table.add_row("Cuisines", _option_line(CUISINE_OPTIONS, preferences.cuisines, "yellow"))
    table.add_row("Meal type", _option_line(MEAL_TYPES, [preferences.meal_type], "blue"))
    return Panel(table, title="Preferences", border_style="blue")


def render_recipe_card(recipe: Recipe, index: int) -> RenderableType:
    difficulty_style = DIFFICULTY_STYLES.get(recipe.difficulty, "white")
    body = Text()
    body.append(f"{recipe.match_percentage}% Match\n", style="bold green")
    body.append(f"{recipe.description}\n\n")
    body.append(f"⏱ {recipe.prep_time} prep · {recipe.cook_time} cook\n", style="dim")
    body.append(recipe.difficulty.value, style=difficulty_style)
    body.append(f" · {_format_number(recipe.macros.calories)} kcal · {recipe.cuisine}", style="dim")
    return Panel(body, title=f"{index + 1}. {recipe.title}", subtitle=f"id: {recipe.id}", width=40)


def render_recipe_grid(recipes: Sequence[Recipe], ingredient_count: int) -> RenderableType:
    header = Text.assemble(
        ("Recommended Recipes\n", "bold"),
        (f"Based on {ingredient_count} ingredients and your preferences.", "dim"),
    )
    if not recipes:
        return Group(header, Text("\nNo recipes found. Try adjusting your ingredients.", style="yellow"))
    cards = [render_recipe_card(recipe, idx) for idx, recipe in enumerate(recipes)]
    return Group(header, Columns(cards))


def render_recipe_detail(recipe: Recipe) -> RenderableType:
    stats = Table.grid(padding=(0, 3))
    for _ in range(4):
        stats.add_column()
    stats.add_row(
        f"Prep: {recipe.prep_time}",
        f"Cook: {recipe.cook_time}",
        f"Calories: {_format_number(recipe.macros.calories)}",
        Text(f"Difficulty: {recipe.difficulty.value}", style=DIFFICULTY_STYLES.get(recipe.difficulty, "")),
    )

    ingredients = Text("\n".join(f"• {item}" for item in recipe.ingredients))
    instructions = Text("\n".join(f"{n}. {step}" for n, step in enumerate(recipe.instructions, start=1)))

    macros = Table(title="Nutrition (per serving)", show_header=True, header_style="bold")
    macros.add_column("Macro")
    macros.add_column("Grams", justify="right")
    macros.add_column("Share", justify="right")
    macros.add_column("")
    for name, grams, percent in macro_breakdown(recipe.macros):
        bar = Text("█" * round(percent / 5), style=MACRO_STYLES[name])
        macros.add_row(name, f"{_format_number(grams)}g", f"{percent:.0f}%", bar)

    body = Group(
        Text(recipe.description, style="italic"),
        Text(""),
        stats,
        Text(""),
        Text("Ingredients", style="bold underline"),
        ingredients,
        Text(""),
        Text("Instructions", style="bold underline"),
        instructions,
        Text(""),
        macros,
    )
    return Panel(body, title=f"{recipe.title} · {recipe.cuisine}", border_style="green")


def render_state(state: AppState) -> RenderableType:
    """Render the whole screen for the current state."""
    if state.setup_required:
        return render_setup_required()

    parts: list[RenderableType] = []
    if state.error:
        parts.append(render_error(state.error))

    if state.selected_recipe is not None:
        parts.append(render_recipe_detail(state.selected_recipe))
    elif state.view == View.RESULTS:
        parts.append(render_recipe_grid(state.recipes, len(state.ingredients)))
    else:
        parts.append(render_ingredients(state.ingredients, state.loading_state == LoadingState.ANALYZING_IMAGE))
        parts.append(render_preferences(state.preferences))
        if state.loading_state == LoadingState.GENERATING_RECIPES:
            parts.append(Text("✨ Chef is thinking...", style="cyan"))

    return Group(*parts)
