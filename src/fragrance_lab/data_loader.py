import json
from pathlib import Path
from typing import List, Optional

from .exceptions import ConfigurationError
from .models import EssentialOil

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "essential_oils.json"

# JSON section -> note category
_SECTIONS = {
    "topNotes": "top",
    "middleNotes": "middle",
    "baseNotes": "base",
}


class OilDataLoader:
    """
    Loads and normalizes essential oil reference data from JSON.
    """
    def __init__(self, json_path: Optional[str] = None):
        self.json_path = Path(json_path) if json_path else DEFAULT_CATALOG_PATH

    def load_oils(self) -> List[EssentialOil]:
        try:
            with open(self.json_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not read oil catalog {self.json_path}: {e}")

        notes = data.get("perfumeNotes", data)
        oils: List[EssentialOil] = []
        for section, category in _SECTIONS.items():
            for row in notes.get(section, []):
                oil = self._parse_row(row, category)
                if oil:
                    oils.append(oil)

        return oils

    def _parse_row(self, row: dict, category: str) -> Optional[EssentialOil]:
        name = self._clean_text(row.get("name"))
        if not name:
            return None

        return EssentialOil(
            name=name,
            english_name=self._clean_text(row.get("english_name") or row.get("englishName")) or name,
            description=self._clean_text(row.get("description")) or "",
            emotion=self._clean_text(row.get("emotion")),
            category=category,
            source=self._clean_text(row.get("source")),
            info=self._clean_text(row.get("info")),
        )

    def _clean_text(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value if value else None
