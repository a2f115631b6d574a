"""
Explicit turn request types.

A turn is either a new conversational message or a request to regenerate
one note category of the current recipe.
"""
from dataclasses import dataclass
from typing import Union

from ..models import NOTE_CATEGORIES


@dataclass(frozen=True)
class NewTurn:
    text: str


@dataclass(frozen=True)
class RegenerateNote:
    category: str
    text: str

    def __post_init__(self):
        if self.category not in NOTE_CATEGORIES:
            raise ValueError(
                f"category must be one of {list(NOTE_CATEGORIES)}, got {self.category!r}"
            )


TurnRequest = Union[NewTurn, RegenerateNote]
