"""
Conversation message value objects.
"""
from dataclasses import dataclass, field
from enum import Enum
from time import time
from typing import Dict, Optional, Tuple

from ..recipe.models import FragranceRecipe


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Message:
    """
    One entry in the conversation.

    `created_at` is informational and excluded from equality so that
    replaying the same turn yields equal messages.
    """
    id: str
    role: Role
    content: str
    options: Tuple[str, ...] = ()
    option_descriptions: Dict[str, str] = field(default_factory=dict)
    recipe: Optional[FragranceRecipe] = None
    emotion_scores: Optional[Dict[str, float]] = None
    created_at: float = field(default_factory=time, compare=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "options": list(self.options),
            "option_descriptions": dict(self.option_descriptions),
            "recipe": self.recipe.to_dict() if self.recipe else None,
            "emotion_scores": dict(self.emotion_scores) if self.emotion_scores else None,
            "created_at": self.created_at,
        }


def message_id(session_id: str, position: int) -> str:
    """Deterministic id: unique per conversation, stable across replays."""
    return f"{session_id}:{position}"
