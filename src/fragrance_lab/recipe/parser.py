"""
Parsing boundary between free-form model text and structured replies.

The model is asked to put structured data in a fenced ```json block. Nothing
outside this module looks at raw model text.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..models import NOTE_CATEGORIES
from .models import FragranceRecipe

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```(?:json|JSON)?\s*(\{.*?\})\s*```", re.DOTALL)
# Unterminated fence at the end of a truncated reply
OPEN_FENCE = re.compile(r"```(?:json|JSON)\s*\{.*$", re.DOTALL)
DESCRIPTION_LINE = re.compile(r"^\s*-\s*([^:\n]+):\s*(.+)$")


def _split_notes(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = re.split(r"[、,]", value)
    if not isinstance(value, (list, tuple)):
        raise ValueError("notes must be a list of names")
    notes = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"note names must be strings, got {type(item).__name__}")
        item = item.strip()
        if item:
            notes.append(item)
    return notes


class RecipePayload(BaseModel):
    """Recipe shape inside a reply; snake_case and camelCase keys accepted."""
    model_config = ConfigDict(extra="ignore")

    top_notes: List[str] = Field(default_factory=list, validation_alias=AliasChoices("top_notes", "topNotes", "top"))
    middle_notes: List[str] = Field(default_factory=list, validation_alias=AliasChoices("middle_notes", "middleNotes", "middle"))
    base_notes: List[str] = Field(default_factory=list, validation_alias=AliasChoices("base_notes", "baseNotes", "base"))
    name: str = ""
    description: str = ""

    @field_validator("top_notes", "middle_notes", "base_notes", mode="before")
    @classmethod
    def _notes(cls, value):
        return _split_notes(value)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value).strip()

    def to_recipe(self) -> FragranceRecipe:
        return FragranceRecipe(
            top_notes=tuple(self.top_notes),
            middle_notes=tuple(self.middle_notes),
            base_notes=tuple(self.base_notes),
            name=self.name,
            description=self.description,
        )


class ReplyPayload(BaseModel):
    """Structured block the assistant attaches to a reply."""
    model_config = ConfigDict(extra="ignore")

    content: str = ""
    choices: List[Any] = Field(default_factory=list, validation_alias=AliasChoices("choices", "options"))
    choices_descriptions: Any = Field(default=None, validation_alias=AliasChoices("choices_descriptions", "choicesDescriptions"))
    recipe: Optional[RecipePayload] = None
    notes: Optional[Dict[str, List[str]]] = None
    theme: Optional[str] = None
    emotion_scores: Optional[Dict[str, float]] = Field(default=None, validation_alias=AliasChoices("emotion_scores", "emotionScores"))

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value):
        return "" if value is None else str(value)

    @field_validator("choices", mode="before")
    @classmethod
    def _choices(cls, value):
        return [] if value is None else value

    @field_validator("notes", mode="before")
    @classmethod
    def _regenerated_notes(cls, value):
        if value is None:
            return None
        if not isinstance(value, dict):
            raise ValueError("notes must map a category to a list of names")
        unknown = set(value) - set(NOTE_CATEGORIES)
        if unknown:
            raise ValueError(f"unknown note categories: {sorted(unknown)}")
        return {category: _split_notes(names) for category, names in value.items()}


class ParseStatus(str, Enum):
    PARSED = "parsed"
    NO_PAYLOAD = "no_payload"
    FAILED = "failed"


@dataclass(frozen=True)
class ParsedReply:
    """Assistant reply after extraction; text never contains the fenced block."""
    text: str
    options: Tuple[str, ...] = ()
    option_descriptions: Dict[str, str] = field(default_factory=dict)
    recipe: Optional[FragranceRecipe] = None
    notes: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    theme: Optional[str] = None
    emotion_scores: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class ParseResult:
    status: ParseStatus
    reply: ParsedReply
    error: Optional[str] = None

    @property
    def has_payload(self) -> bool:
        return self.status == ParseStatus.PARSED

    @property
    def failed(self) -> bool:
        return self.status == ParseStatus.FAILED


def _strip_blocks(text: str) -> str:
    text = FENCED_BLOCK.sub("", text)
    text = OPEN_FENCE.sub("", text)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def _normalize_choices(payload: ReplyPayload) -> Tuple[Tuple[str, ...], Dict[str, str]]:
    names: List[str] = []
    descriptions: Dict[str, str] = {}
    for choice in payload.choices:
        if isinstance(choice, dict):
            name = str(choice.get("name", "")).strip()
            if choice.get("description"):
                descriptions[name] = str(choice["description"]).strip()
        else:
            name = str(choice).strip()
        if name:
            names.append(name)

    extra = payload.choices_descriptions
    if isinstance(extra, dict):
        descriptions.update({str(k).strip(): str(v).strip() for k, v in extra.items()})
    elif isinstance(extra, list):
        for name, description in zip(names, extra):
            descriptions.setdefault(name, str(description).strip())

    return tuple(names), descriptions


def _pull_description_lines(content: str, descriptions: Dict[str, str]) -> str:
    """Move '- Name: description' lines out of the text into descriptions."""
    kept = []
    for line in content.split("\n"):
        match = DESCRIPTION_LINE.match(line)
        if match:
            descriptions.setdefault(match.group(1).strip(), match.group(2).strip())
        else:
            kept.append(line)
    return "\n".join(kept).strip()


def _locate_payload(text: str) -> Optional[str]:
    match = FENCED_BLOCK.search(text)
    if match:
        return match.group(1)
    truncated = OPEN_FENCE.search(text)
    if truncated:
        # Present but cannot be parsed
        return truncated.group(0)
    stripped = text.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        return stripped
    return None


def parse_reply(text: str) -> ParseResult:
    """
    Extract the structured payload from a model reply.

    :param text: Raw assistant text
    :return: ParseResult; PARSED with structured fields, NO_PAYLOAD with the
             text only, or FAILED when a block is present but malformed
    """
    text = text or ""
    raw = _locate_payload(text)
    if raw is None:
        return ParseResult(ParseStatus.NO_PAYLOAD, ParsedReply(text=text.strip()))

    # A bare JSON reply has no surrounding prose
    surrounding = "" if raw == text.strip() else _strip_blocks(text)

    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("payload must be a JSON object")
        payload = ReplyPayload.model_validate(data)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError subclasses ValueError
        logger.warning(f"Malformed structured block in model reply: {e}")
        return ParseResult(
            ParseStatus.FAILED,
            ParsedReply(text=surrounding),
            error=f"Could not read the recipe block: {str(e).splitlines()[0]}",
        )

    options, descriptions = _normalize_choices(payload)
    content = payload.content.strip()
    if options and content:
        content = _pull_description_lines(content, descriptions)

    parts = [p for p in (surrounding, content) if p]
    if len(parts) == 2 and parts[0] == parts[1]:
        parts = parts[:1]

    reply = ParsedReply(
        text="\n\n".join(parts),
        options=options,
        option_descriptions=descriptions,
        recipe=payload.recipe.to_recipe() if payload.recipe else None,
        notes={k: tuple(v) for k, v in (payload.notes or {}).items()},
        theme=payload.theme.strip() if payload.theme and payload.theme.strip() else None,
        emotion_scores=payload.emotion_scores,
    )
    return ParseResult(ParseStatus.PARSED, reply)
