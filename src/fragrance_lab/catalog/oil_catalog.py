"""
Read-only essential oil catalog.

Lookup by Japanese or English name, case-insensitive, with fuzzy suggestions.
"""
import re
from typing import Dict, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz, process, utils

from ..models import EssentialOil, NOTE_CATEGORIES


class OilCatalog:
    """
    Closed catalog of known essential oils.

    Never mutated by the conversation core.
    """

    def __init__(self, oils: Iterable[EssentialOil], suggestion_threshold: float = 0.7):
        self._oils: List[EssentialOil] = list(oils)
        self._suggestion_threshold = suggestion_threshold
        self._by_key: Dict[str, EssentialOil] = {}
        for oil in self._oils:
            if oil.category not in NOTE_CATEGORIES:
                raise ValueError(f"Unknown note category {oil.category!r} for {oil.name}")
            self._by_key[self._key(oil.name)] = oil
            self._by_key[self._key(oil.english_name)] = oil

    @classmethod
    def load(cls, json_path: Optional[str] = None) -> "OilCatalog":
        from ..data_loader import OilDataLoader
        return cls(OilDataLoader(json_path).load_oils())

    @staticmethod
    def _key(name: str) -> str:
        return " ".join(name.split()).casefold()

    def __len__(self) -> int:
        return len(self._oils)

    def all_oils(self) -> List[EssentialOil]:
        return list(self._oils)

    def get_oils_by_category(self, category: str) -> List[EssentialOil]:
        if category not in NOTE_CATEGORIES:
            raise ValueError(f"Unknown note category: {category!r}")
        return [oil for oil in self._oils if oil.category == category]

    def get(self, name: str) -> Optional[EssentialOil]:
        if not name:
            return None
        return self._by_key.get(self._key(name))

    def exists(self, name: str) -> bool:
        return self.get(name) is not None

    def suggest(self, name: str, category: Optional[str] = None) -> Optional[str]:
        """
        Closest known oil name for a misspelled or unknown note.

        :param name: Note name as written by the model or user
        :param category: Restrict candidates to one category
        :return: English name of the best match above threshold, or None
        """
        if not name:
            return None
        oils = self.get_oils_by_category(category) if category else self._oils
        candidates = [oil.english_name for oil in oils]
        if not candidates:
            return None

        result = process.extractOne(
            name, candidates, scorer=fuzz.WRatio, processor=utils.default_process
        )
        if result is None:
            return None
        matched, score, _ = result
        return matched if score / 100.0 >= self._suggestion_threshold else None

    def find_in_text(self, text: str, category: Optional[str] = None) -> List[EssentialOil]:
        """Oils whose name appears in free text, in order of first appearance."""
        oils = self.get_oils_by_category(category) if category else self._oils
        by_name: Dict[str, EssentialOil] = {}
        for oil in oils:
            by_name[oil.name] = oil
            by_name[oil.english_name] = oil

        hits: List[EssentialOil] = []
        for name in find_mentions(text, by_name):
            if by_name[name] not in hits:
                hits.append(by_name[name])
        return hits


def find_mentions(text: str, names: Iterable[str]) -> List[str]:
    """
    Names mentioned in free text, in order of first appearance.

    Latin names only match as whole words. Longer names claim their span
    first, so "rosemary" (or ローズマリー) never also counts as "rose".

    :param text: Free text written by the user
    :param names: Candidate names
    :return: Matched names from `names`
    """
    lowered = text.casefold()
    matches: List[Tuple[int, int, str]] = []
    for name in names:
        if not name:
            continue
        pattern = rf"(?<![a-z]){re.escape(name.casefold())}(?![a-z])"
        for match in re.finditer(pattern, lowered):
            matches.append((match.start(), match.end(), name))

    claimed: List[Tuple[int, int]] = []
    first_seen: Dict[str, int] = {}
    for start, end, name in sorted(matches, key=lambda m: m[0] - m[1]):
        if any(start < other_end and other_start < end for other_start, other_end in claimed):
            continue
        claimed.append((start, end))
        if name not in first_seen or start < first_seen[name]:
            first_seen[name] = start
    return sorted(first_seen, key=first_seen.get)
