from typing import Optional


class FragranceLabError(Exception):
    """Base exception for the fragrance lab conversation core."""


class ConfigurationError(FragranceLabError):
    """Raised when required configuration is missing or invalid."""


class AgentNotInitializedError(FragranceLabError):
    """Raised when the service is used before initialization."""


class InvalidPhase(FragranceLabError):
    """Raised for a phase identifier outside the phase registry."""


class IllegalTransition(FragranceLabError):
    """Raised when a phase change is not in the transition table."""

    def __init__(self, source, target):
        self.source = source
        self.target = target
        super().__init__(f"Illegal phase transition: {source} -> {target}")


class EmptyInput(FragranceLabError):
    """Raised when user text is empty after trimming."""


class ModelCallFailed(FragranceLabError):
    """Raised when the language model call fails (transport, status or body)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RecipeParseFailed(FragranceLabError):
    """Raised when a structured block is present but malformed."""


class RecipeValidationFailed(FragranceLabError):
    """Raised when a recipe has a valid shape but fails catalog checks."""

    def __init__(self, message: str, violations=None):
        self.violations = list(violations or [])
        super().__init__(message)


class MissingRecipe(FragranceLabError):
    """Raised when a note is regenerated before any recipe exists."""


class TurnInProgress(FragranceLabError):
    """Raised when a turn is submitted while another one is outstanding."""
