"""
Recipe validation and editing.

validate_recipe reports problems instead of raising so a partially valid
recipe can still be shown with targeted feedback.
"""
from dataclasses import replace
from typing import Iterable, List

from ..catalog import OilCatalog
from ..models import NOTE_CATEGORIES
from .models import FragranceRecipe, RecipeViolation, ValidationResult

REASON_EMPTY = "no notes selected"
REASON_UNKNOWN = "not in the essential oil catalog"
REASON_DUPLICATE = "listed more than once"


def is_complete(recipe: FragranceRecipe) -> bool:
    """True iff top, middle and base notes are all non-empty."""
    return bool(recipe.top_notes) and bool(recipe.middle_notes) and bool(recipe.base_notes)


def merge_note(recipe: FragranceRecipe, category: str, notes: Iterable[str]) -> FragranceRecipe:
    """
    Replace a single category's notes, leaving the other two untouched.

    :param recipe: Current recipe
    :param category: 'top', 'middle' or 'base'
    :param notes: New note names for that category
    :return: New recipe value
    """
    if category not in NOTE_CATEGORIES:
        raise ValueError(f"Unknown note category: {category!r}")
    return replace(recipe, **{f"{category}_notes": tuple(notes)})


def validate_recipe(
    recipe: FragranceRecipe,
    catalog: OilCatalog,
) -> ValidationResult:
    """
    Check a recipe against the oil catalog.

    :param recipe: Recipe to check
    :param catalog: Oil catalog collaborator
    :return: ValidationResult with one violation per problem found
    """
    violations: List[RecipeViolation] = []

    for category in NOTE_CATEGORIES:
        notes = recipe.notes_for(category)
        if not notes:
            violations.append(RecipeViolation(category, "", REASON_EMPTY))
            continue

        seen = set()
        for note in notes:
            key = note.strip().casefold()
            if key in seen:
                violations.append(RecipeViolation(category, note, REASON_DUPLICATE))
                continue
            seen.add(key)

            oil = catalog.get(note)
            if oil is None:
                violations.append(RecipeViolation(
                    category,
                    note,
                    REASON_UNKNOWN,
                    suggestion=catalog.suggest(note, category) or "",
                ))

    return ValidationResult(valid=not violations, violations=tuple(violations))
