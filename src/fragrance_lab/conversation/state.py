"""
Conversation state value object.

State is immutable; every change produces a new value that replaces the old
one wholesale.
"""
import uuid
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from ..models import NOTE_CATEGORIES
from ..recipe.models import FragranceRecipe
from .message import Message, Role
from .phase import Phase


@dataclass(frozen=True)
class Selections:
    """Selected scent per note category."""
    top: Optional[str] = None
    middle: Optional[str] = None
    base: Optional[str] = None

    def get(self, category: str) -> Optional[str]:
        if category not in NOTE_CATEGORIES:
            raise ValueError(f"Unknown note category: {category!r}")
        return getattr(self, category)

    def with_selection(self, category: str, scent: Optional[str]) -> "Selections":
        if category not in NOTE_CATEGORIES:
            raise ValueError(f"Unknown note category: {category!r}")
        return replace(self, **{category: scent})

    def is_complete(self) -> bool:
        return all(self.get(c) for c in NOTE_CATEGORIES)

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {c: self.get(c) for c in NOTE_CATEGORIES}


@dataclass(frozen=True)
class ConversationState:
    session_id: str
    messages: Tuple[Message, ...] = ()
    phase: Phase = Phase.WELCOME
    selections: Selections = Selections()
    loading: bool = False
    error: Optional[str] = None
    recipe: Optional[FragranceRecipe] = None

    @classmethod
    def create(cls, session_id: Optional[str] = None) -> "ConversationState":
        """Fresh state for a new session: welcome phase, no messages."""
        return cls(session_id=session_id or str(uuid.uuid4()))

    def last_assistant_message(self) -> Optional[Message]:
        for message in reversed(self.messages):
            if message.role == Role.ASSISTANT:
                return message
        return None

    def with_loading(self, loading: bool) -> "ConversationState":
        return replace(self, loading=loading)

    def with_error(self, error: Optional[str]) -> "ConversationState":
        return replace(self, error=error)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "messages": [m.to_dict() for m in self.messages],
            "selections": self.selections.as_dict(),
            "loading": self.loading,
            "error": self.error,
            "recipe": self.recipe.to_dict() if self.recipe else None,
        }
