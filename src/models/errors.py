"""Exception hierarchy for ChefAI.

Two families matter to callers:
- ConfigurationError: the Gemini credential is missing. Permanent for the
  session; the UI switches to the setup-required screen.
- GatewayError subclasses: a single backend attempt failed. The message is a
  fixed, user-safe string; the underlying cause is only logged.
"""

from typing import Optional


class ChefAIError(RuntimeError):
    """Base class for application errors."""


class ConfigurationError(ChefAIError):
    """Required configuration (the Gemini API key) is missing or empty."""


class OperationInProgressError(ChefAIError):
    """A backend operation was requested while another one is in flight."""


class ImageLoadError(ChefAIError):
    """An image could not be read, fetched or decoded."""


class ResponseParseError(ChefAIError):
    """Backend reply was not valid JSON or did not match the expected schema."""


class GatewayError(ChefAIError):
    """A Gemini request failed. Carries only a generic message."""

    default_message = "The AI request failed."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class IngredientIdentificationError(GatewayError):
    """Ingredient detection from an image failed."""

    default_message = "Failed to identify ingredients from image."


class RecipeGenerationError(GatewayError):
    """Recipe generation failed."""

    default_message = "Failed to generate recipes. Please try again."
