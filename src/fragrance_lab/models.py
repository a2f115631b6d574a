from dataclasses import dataclass
from typing import Optional

NOTE_CATEGORIES = ("top", "middle", "base")


@dataclass(frozen=True)
class EssentialOil:
    name: str
    english_name: str
    description: str
    emotion: Optional[str]
    category: str  # top | middle | base
    source: Optional[str] = None
    info: Optional[str] = None
