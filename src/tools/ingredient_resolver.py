from __future__ import annotations

import logging
import re
from typing import Any

from src.storage.catalog_store import CatalogStore


logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_NAME = "Uncategorized"
DEFAULT_AVERAGE_WEIGHT = 100.0
MIN_NAME_LENGTH = 2

_CONTAINS_CANDIDATES = 5
_REVERSE_CANDIDATES = 500
_WORD_CANDIDATES = 30
_MIN_WORD_SCORE = 3.0

_WORD_SPLIT_RE = re.compile(r"[\s\-_,&+]+")


# Regional names and spellings the model tends to use interchangeably.
INGREDIENT_ALIASES: dict[str, list[str]] = {
    "capsicum": ["bell pepper", "sweet pepper", "pepper"],
    "bell pepper": ["capsicum", "sweet pepper"],
    "cilantro": ["coriander", "coriander leaves", "dhania"],
    "coriander": ["cilantro", "coriander leaves", "dhania"],
    "eggplant": ["aubergine", "brinjal", "baingan"],
    "aubergine": ["eggplant", "brinjal"],
    "zucchini": ["courgette"],
    "courgette": ["zucchini"],
    "scallion": ["spring onion", "green onion"],
    "spring onion": ["scallion", "green onion"],
    "green onion": ["scallion", "spring onion"],
    "chickpea": ["garbanzo", "garbanzo bean", "chana"],
    "garbanzo": ["chickpea", "chana"],
    "arugula": ["rocket", "rocket leaves"],
    "rocket": ["arugula"],
    "cornstarch": ["corn flour", "cornflour", "corn starch"],
    "corn flour": ["cornstarch", "cornflour"],
    "heavy cream": ["double cream", "whipping cream", "heavy whipping cream"],
    "double cream": ["heavy cream", "whipping cream"],
    "prawn": ["shrimp"],
    "shrimp": ["prawn"],
    "baking soda": ["bicarbonate of soda", "bicarb"],
    "bicarbonate of soda": ["baking soda"],
    "plain flour": ["all purpose flour", "all-purpose flour", "maida"],
    "all purpose flour": ["plain flour", "all-purpose flour", "maida"],
    "paneer": ["cottage cheese", "indian cottage cheese"],
    "cottage cheese": ["paneer"],
    "yogurt": ["yoghurt", "curd", "dahi"],
    "yoghurt": ["yogurt", "curd"],
    "curd": ["yogurt", "yoghurt", "dahi"],
    "tomato": ["tamatar"],
    "potato": ["aloo"],
    "onion": ["pyaaz", "pyaz"],
    "garlic": ["lahsun"],
    "ginger": ["adrak"],
    "turmeric": ["haldi"],
    "cumin": ["jeera"],
    "chili": ["chilli", "chile"],
    "chilli": ["chili", "chile"],
}


def word_variants(word: str) -> list[str]:
    """Singular/plural spellings of `word` (lower-cased, original first)."""
    w = word.lower()
    variants: list[str] = [w]

    def _add(v: str) -> None:
        if v not in variants:
            variants.append(v)

    if w.endswith("ies") and len(w) > 4:
        _add(w[:-3] + "y")  # berries -> berry
    elif w.endswith("ves") and len(w) > 4:
        _add(w[:-3] + "f")  # leaves -> leaf
        _add(w[:-3] + "fe")  # knives -> knife
    elif w.endswith("ses") or w.endswith("ches") or w.endswith("shes"):
        _add(w[:-2])  # peaches -> peach
    elif w.endswith("es") and len(w) > 4:
        _add(w[:-2])
    elif w.endswith("s") and len(w) > 3:
        _add(w[:-1])

    if not w.endswith("s"):
        _add(w + "s")
        if w.endswith("y") and len(w) > 2:
            _add(w[:-1] + "ies")

    return variants


def _split_words(text: str) -> list[str]:
    return [w for w in (p.strip().lower() for p in _WORD_SPLIT_RE.split(text)) if len(w) >= 2]


def _result(row: Any, *, created: bool) -> dict[str, Any]:
    return {"id": str(row["ingredient_id"]), "name": row["name"], "created": created}


def resolve_category(store: CatalogStore, category_name: str | None = None) -> str:
    """Return a category id, falling back to (and creating) "Uncategorized"."""
    if category_name and category_name.strip():
        found = store.find_ingredient_category(category_name)
        if found is not None:
            return str(found["category_id"])

    default = store.get_ingredient_category_by_name(DEFAULT_CATEGORY_NAME)
    if default is not None:
        return str(default["category_id"])
    return store.create_ingredient_category(name=DEFAULT_CATEGORY_NAME).category_id


def _score_candidate(name: str, *, query: str, words: list[str]) -> float:
    name_lower = name.lower()
    score = 0.0

    for w in words:
        if any(v in name_lower for v in word_variants(w)):
            score += 3

    name_words = _split_words(name)
    query_lower = query.lower()
    for nw in name_words:
        if any(v in query_lower for v in word_variants(nw)):
            score += 2

    score -= abs(len(name_words) - len(words)) * 0.5
    score -= abs(len(name) - len(query)) * 0.1
    return score


def _find_existing(store: CatalogStore, name: str) -> dict[str, Any] | None:
    query_lower = name.lower()

    found = store.find_ingredient_exact(name)
    if found is not None:
        return _result(found, created=False)

    # Query inside an ingredient name; shortest name is the most specific.
    contains = store.search_ingredients_any([name], limit=_CONTAINS_CANDIDATES)
    if contains:
        best = sorted(contains, key=lambda r: len(r["name"]))[0]
        return _result(best, created=False)

    # Ingredient name inside the query; longest name is the most specific.
    reverse = [
        r
        for r in store.list_ingredient_names(limit=_REVERSE_CANDIDATES)
        if len(r["name"]) <= len(name) + 3 and r["name"].lower() in query_lower
    ]
    if reverse:
        best = sorted(reverse, key=lambda r: len(r["name"]), reverse=True)[0]
        return _result(best, created=False)

    aliases = INGREDIENT_ALIASES.get(query_lower, [])
    for alias in aliases:
        found = store.find_ingredient_exact(alias)
        if found is not None:
            return _result(found, created=False)
    for alias in aliases:
        partial = store.search_ingredients_any([alias], limit=1)
        if partial:
            return _result(partial[0], created=False)

    words = _split_words(name)
    if not words:
        return None
    patterns: list[str] = []
    for w in words:
        for v in word_variants(w):
            if v not in patterns:
                patterns.append(v)
    candidates = store.search_ingredients_any(patterns, limit=_WORD_CANDIDATES)
    if not candidates:
        return None

    scored = sorted(
        ((_score_candidate(r["name"], query=name, words=words), r) for r in candidates),
        key=lambda item: item[0],
        reverse=True,
    )
    best_score, best = scored[0]
    if best_score >= _MIN_WORD_SCORE:
        return _result(best, created=False)
    return None


def get_or_create_ingredient(
    store: CatalogStore, name: str | None, category_name: str | None = None
) -> dict[str, Any]:
    """Resolve an ingredient name to an id, creating the ingredient if needed.

    Strategies, in order: exact match, contains, reverse contains, alias
    table, word/plural scoring. Always returns an id unless the name is too
    short.
    """
    trimmed = (name or "").strip()
    if len(trimmed) < MIN_NAME_LENGTH:
        return {"id": None, "name": trimmed, "error": f"Name too short (min {MIN_NAME_LENGTH} chars)"}

    existing = _find_existing(store, trimmed)
    if existing is not None:
        return existing

    category_id = resolve_category(store, category_name)
    rec = store.create_ingredient(name=trimmed, category_id=category_id, average_weight=DEFAULT_AVERAGE_WEIGHT)
    logger.info("Created ingredient %r (%s) in category %s", rec.name, rec.ingredient_id, category_id)
    return {"id": rec.ingredient_id, "name": rec.name, "created": True}


def create_ingredient(store: CatalogStore, name: str, category_name: str | None = None) -> dict[str, Any]:
    """Create an ingredient unless one with the same name (case-insensitive) exists."""
    trimmed = (name or "").strip()
    existing = store.find_ingredient_exact(trimmed)
    if existing is not None:
        return _result(existing, created=False)

    category_id = resolve_category(store, category_name)
    rec = store.create_ingredient(name=trimmed, category_id=category_id, average_weight=DEFAULT_AVERAGE_WEIGHT)
    return {"id": rec.ingredient_id, "name": rec.name, "created": True}
