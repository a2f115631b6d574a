"""
Fragrance recipe domain objects.

Pure value objects; equal by value, never mutated in place.
"""
from dataclasses import dataclass, field
from typing import Iterable, Tuple

from ..models import NOTE_CATEGORIES


def _as_tuple(notes: Iterable[str]) -> Tuple[str, ...]:
    if isinstance(notes, str):
        raise TypeError("notes must be a sequence of names, not a string")
    return tuple(notes)


@dataclass(frozen=True)
class FragranceRecipe:
    """Three ordered note lists plus a name and free-text description."""
    top_notes: Tuple[str, ...] = ()
    middle_notes: Tuple[str, ...] = ()
    base_notes: Tuple[str, ...] = ()
    name: str = ""
    description: str = ""

    def __post_init__(self):
        # Accept lists from callers; store tuples
        object.__setattr__(self, "top_notes", _as_tuple(self.top_notes))
        object.__setattr__(self, "middle_notes", _as_tuple(self.middle_notes))
        object.__setattr__(self, "base_notes", _as_tuple(self.base_notes))

    def notes_for(self, category: str) -> Tuple[str, ...]:
        if category not in NOTE_CATEGORIES:
            raise ValueError(f"Unknown note category: {category!r}")
        return getattr(self, f"{category}_notes")

    def to_dict(self) -> dict:
        return {
            "top_notes": list(self.top_notes),
            "middle_notes": list(self.middle_notes),
            "base_notes": list(self.base_notes),
            "name": self.name,
            "description": self.description,
        }


@dataclass(frozen=True)
class RecipeViolation:
    category: str
    note: str
    reason: str
    suggestion: str = ""

    def describe(self) -> str:
        text = f"{self.category}: {self.reason}"
        if self.note:
            text = f"{self.category} '{self.note}': {self.reason}"
        if self.suggestion:
            text += f" (did you mean {self.suggestion}?)"
        return text


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    violations: Tuple[RecipeViolation, ...] = field(default_factory=tuple)

    def summary(self) -> str:
        return "; ".join(v.describe() for v in self.violations)
