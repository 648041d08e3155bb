"""ChefAI - interactive recipe suggestion shell.

Enter ingredients you have, or scan a picture of your fridge, pick your
preferences, and ChefAI asks Gemini for personalized recipes.

Run with: python app.py

Commands:
    add <ingredient>        add an ingredient (duplicates are ignored)
    remove <ingredient>     remove an ingredient
    scan <path|url>         detect ingredients in a photo
    diet <option>           toggle a dietary restriction
    cuisine <option>        toggle a preferred cuisine
    meal <option>           choose the meal type
    generate                generate recipes
    show <n|id>             open a recipe from the results
    close                   close the open recipe
    back                    back to search (clears results)
    home                    back to search (keeps results)
    dismiss                 hide the error message
    help                    show this help
    quit                    exit
"""

import asyncio
import sys
from typing import Awaitable, Callable

from rich.console import Console

from src.controller.controller import RecipeController
from src.models.errors import ConfigurationError, OperationInProgressError
from src.models.models import CUISINE_OPTIONS, DIETARY_OPTIONS, MEAL_TYPES, match_option
from src.services.gemini import GeminiGateway
from src.ui.render import render_state
from src.utils.logger import logger

console = Console()

HELP_TEXT = __doc__.split("Commands:", 1)[1]


class Shell:
    """Maps typed commands onto controller transitions and redraws the screen."""

    def __init__(self, controller: RecipeController) -> None:
        self.controller = controller
        self.running = True
        self.commands: dict[str, Callable[[str], Awaitable[None] | None]] = {
            "add": self.add,
            "remove": self.remove,
            "scan": self.scan,
            "diet": self.diet,
            "cuisine": self.cuisine,
            "meal": self.meal,
            "generate": self.generate,
            "show": self.show,
            "close": lambda _: controller.close_recipe(),
            "back": lambda _: controller.reset(),
            "home": lambda _: controller.go_home(),
            "dismiss": lambda _: controller.dismiss_error(),
            "help": lambda _: console.print(HELP_TEXT),
            "quit": self.quit,
            "exit": self.quit,
        }

    def add(self, arg: str) -> None:
        name = arg.strip()
        if name:
            self.controller.add_ingredient(name)

    def remove(self, arg: str) -> None:
        self.controller.remove_ingredient(arg.strip())

    async def scan(self, arg: str) -> None:
        if not arg.strip():
            console.print("[yellow]Usage: scan <path|url>[/yellow]")
            return
        with console.status("Analyzing image..."):
            detected = await self.controller.upload_image(arg.strip())
        if detected:
            console.print(f"[green]Detected:[/green] {', '.join(detected)}")

    def diet(self, arg: str) -> None:
        self.controller.toggle_dietary_restriction(match_option(arg.strip(), DIETARY_OPTIONS))

    def cuisine(self, arg: str) -> None:
        self.controller.toggle_cuisine(match_option(arg.strip(), CUISINE_OPTIONS))

    def meal(self, arg: str) -> None:
        self.controller.set_meal_type(match_option(arg.strip(), MEAL_TYPES))

    async def generate(self, _: str) -> None:
        with console.status("✨ Chef is thinking..."):
            await self.controller.generate_recipes()

    def show(self, arg: str) -> None:
        key = arg.strip()
        recipes = self.controller.state.recipes
        if key.isdigit() and 1 <= int(key) <= len(recipes):
            key = recipes[int(key) - 1].id
        try:
            self.controller.select_recipe(key)
        except KeyError:
            console.print(f"[yellow]No recipe {arg.strip()!r}[/yellow]")

    def quit(self, _: str) -> None:
        self.running = False

    async def dispatch(self, line: str) -> None:
        command, _, arg = line.strip().partition(" ")
        handler = self.commands.get(command.lower())
        if handler is None:
            console.print(f"[yellow]Unknown command: {command}. Type 'help'.[/yellow]")
            return
        try:
            result = handler(arg)
            if asyncio.iscoroutine(result):
                await result
        except OperationInProgressError as e:
            console.print(f"[yellow]{e}[/yellow]")
        except ValueError as e:
            console.print(f"[yellow]{e}[/yellow]")

    async def run(self) -> None:
        console.print(render_state(self.controller.state))
        if self.controller.state.setup_required:
            return
        console.print("[dim]Type 'help' for commands.[/dim]")

        while self.running:
            line = await asyncio.to_thread(console.input, "[bold green]chef> [/bold green]")
            if not line.strip():
                continue
            try:
                await self.dispatch(line)
            except ConfigurationError:
                console.print(render_state(self.controller.state))
                return
            if self.running:
                console.print(render_state(self.controller.state))


def main() -> int:
    controller = RecipeController(GeminiGateway())
    try:
        asyncio.run(Shell(controller).run())
    except (KeyboardInterrupt, EOFError):
        logger.info("Session ended by user.")
    return 1 if controller.state.setup_required else 0


if __name__ == "__main__":
    sys.exit(main())
