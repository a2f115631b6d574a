"""
Recipe model: three-note structure, validation and extraction from model text.
"""
from .models import FragranceRecipe, RecipeViolation, ValidationResult
from .validation import is_complete, merge_note, validate_recipe
from .parser import ParseResult, ParsedReply, parse_reply

__all__ = [
    "FragranceRecipe",
    "RecipeViolation",
    "ValidationResult",
    "is_complete",
    "merge_note",
    "validate_recipe",
    "ParseResult",
    "ParsedReply",
    "parse_reply",
]
