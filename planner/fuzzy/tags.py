"""Tag vocabulary: synonym normalisation and one-level interest expansion."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Set, Tuple

from planner.config import get_log_level, get_vocabulary_path

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
logger.setLevel(getattr(logging, get_log_level(), logging.INFO))
logger.propagate = False

# Free-form spellings -> canonical tag.
NORMALIZED_TAGS: Mapping[str, str] = {
    "cafes": "cafe",
    "relaxing_cafes": "cafe",
    "local_market": "market",
    "romantic": "romantic",
    "romantic_spots": "romantic",
    "family_activities": "family_friendly",
    "nature_tripping": "nature",
    "eco_park": "park",
    "boating": "boat",
    "island_hopping": "boat",
    "beachfront": "beach_resort",
    "beach_resort": "beach_resort",
    "city_hotel": "hotel",
    "photospot": "photography",
    "pasalubong_center": "pasalubong",
    "scenic": "scenic_view",
    "museums": "museum",
}

# Canonical tag -> related canonical tags (expanded one level only).
INTEREST_TAG_ALIASES: Mapping[str, Tuple[str, ...]] = {
    # culture & heritage
    "culture": (
        "heritage", "museum", "art_gallery", "local_crafts", "religious_site",
        "architecture", "photography", "history", "city",
    ),
    "heritage": ("culture", "history", "museum"),
    "history": ("heritage", "museum", "culture"),
    "museum": ("culture", "heritage", "art_gallery"),
    "art_gallery": ("culture", "photography"),
    "local_crafts": ("culture", "heritage"),
    "religious_site": ("culture", "heritage"),
    "architecture": ("culture", "heritage"),
    # nature & outdoors
    "nature": (
        "park", "mountain", "waterfall", "forest", "beach", "island",
        "eco_resort", "scenic_view", "lake",
    ),
    "park": ("nature", "scenic_view"),
    "mountain": ("nature", "hiking", "adventure"),
    "waterfall": ("nature", "scenic_view"),
    "forest": ("nature",),
    "scenic_view": ("nature",),
    "beach": ("nature", "island", "relaxation"),
    "island": ("beach", "nature"),
    "eco_resort": ("resort", "relaxation"),
    "lake": ("nature", "relaxation"),
    # adventure
    "adventure": (
        "activity", "hiking", "surfing", "snorkeling", "diving", "zipline",
        "trekking", "kayaking", "camping",
    ),
    "activity": ("adventure",),
    "hiking": ("nature", "adventure"),
    "snorkeling": ("beach", "island", "adventure"),
    "diving": ("island", "adventure"),
    "zipline": ("adventure",),
    "trekking": ("hiking", "adventure"),
    "kayaking": ("adventure",),
    "camping": ("adventure", "nature"),
    "boat": ("island", "beach", "adventure"),
    # food
    "foodie": ("restaurant", "local_cuisine", "seafood", "buffet", "street_food"),
    "local_cuisine": ("restaurant", "foodie"),
    "seafood": ("foodie", "beach"),
    "buffet": ("foodie",),
    "street_food": ("foodie", "market"),
    "fine_dining": ("restaurant", "luxury_hotel"),
    "cafe": ("foodie", "desserts"),
    "desserts": ("cafe",),
    # shopping & urban
    "shopping": ("mall", "market", "souvenir"),
    "mall": ("shopping", "city"),
    "market": ("shopping", "street_food"),
    "souvenir": ("shopping",),
    "city": ("shopping", "nightlife"),
    "urban": ("city", "shopping"),
    "nightlife": ("entertainment", "music_events"),
    # relaxation & wellness
    "relaxation": ("resort", "spa", "quiet_place"),
    "spa": ("relaxation", "wellness"),
    "wellness": ("spa",),
    "romantic": ("relaxation", "beach", "cafe"),
    "resort": ("relaxation",),
    "quiet_place": ("relaxation",),
    "retreat": ("nature", "relaxation"),
    # family & groups
    "family_friendly": ("park", "pool", "amusement"),
    "kids_activity": ("family_friendly",),
    "amusement": ("family_friendly",),
    "pool": ("family_friendly",),
    "picnic": ("family_friendly",),
    "group_event": ("family_friendly",),
    # lodging
    "lodging": ("hotel", "resort"),
    "hotel": ("lodging",),
    "luxury_hotel": ("hotel",),
    "budget_inn": ("hotel",),
    "villa": ("lodging",),
    "homestay": ("lodging",),
    "transient_house": ("lodging",),
    "bed_and_breakfast": ("lodging",),
    # other attributes
    "budget": ("lodging",),
    "premium": ("lodging",),
    "hidden_gem": ("scenic_view", "nature"),
    "must_visit": ("scenic_view",),
}


def _fold(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip().lower()


@dataclass(frozen=True)
class TagVocabulary:
    """Read-only synonym and alias tables used for tag matching."""

    synonyms: Mapping[str, str] = field(default_factory=dict)
    aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        synonyms = {_fold(k): _fold(v) for k, v in dict(self.synonyms).items() if _fold(k)}
        aliases = {
            _fold(k): tuple(_fold(a) for a in v if _fold(a))
            for k, v in dict(self.aliases).items()
            if _fold(k)
        }
        object.__setattr__(self, "synonyms", MappingProxyType(synonyms))
        object.__setattr__(self, "aliases", MappingProxyType(aliases))

    @classmethod
    def from_json(cls, path: str | Path) -> "TagVocabulary":
        """Load ``{"synonyms": {...}, "aliases": {...}}`` from disk."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Tag vocabulary file must contain a JSON object")
        return cls(synonyms=data.get("synonyms") or {}, aliases=data.get("aliases") or {})


DEFAULT_VOCABULARY = TagVocabulary(synonyms=NORMALIZED_TAGS, aliases=INTEREST_TAG_ALIASES)


@lru_cache(maxsize=1)
def active_vocabulary() -> TagVocabulary:
    """Process-wide vocabulary: the ``PLANNER_TAG_VOCABULARY`` file or the built-in tables."""
    path = get_vocabulary_path()
    if not path:
        return DEFAULT_VOCABULARY
    try:
        vocabulary = TagVocabulary.from_json(path)
    except (OSError, ValueError) as exc:
        logger.warning("Unable to load tag vocabulary from %s (%s); using built-in tables", path, exc)
        return DEFAULT_VOCABULARY
    logger.info(
        "Loaded tag vocabulary from %s (%d synonyms, %d alias groups)",
        path,
        len(vocabulary.synonyms),
        len(vocabulary.aliases),
    )
    return vocabulary


def normalize_tag(raw: Any, vocabulary: TagVocabulary | None = None) -> str:
    """Canonical form of ``raw``; unknown tags come back case-folded but otherwise unchanged."""
    vocab = vocabulary or active_vocabulary()
    key = _fold(raw)
    if not key:
        return ""
    return vocab.synonyms.get(key, key)


def normalize_tags(tags: Iterable[Any] | None, vocabulary: TagVocabulary | None = None) -> List[str]:
    normalized: List[str] = []
    for tag in tags or []:
        key = normalize_tag(tag, vocabulary)
        if key:
            normalized.append(key)
    return normalized


def aliases_for_tag(raw: Any, vocabulary: TagVocabulary | None = None) -> Tuple[str, ...]:
    vocab = vocabulary or active_vocabulary()
    return vocab.aliases.get(normalize_tag(raw, vocab), ())


def expand_interest(interest: Any, vocabulary: TagVocabulary | None = None) -> Set[str]:
    """The interest's canonical tag plus its direct aliases (not transitive)."""
    vocab = vocabulary or active_vocabulary()
    core = normalize_tag(interest, vocab)
    if not core:
        return set()
    expanded = {core}
    for alias in vocab.aliases.get(core, ()):
        key = normalize_tag(alias, vocab)
        if key:
            expanded.add(key)
    return expanded
