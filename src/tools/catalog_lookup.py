from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol


MIN_QUERY_LENGTH = 2
MAX_RESULTS = 10


class CatalogSearch(Protocol):
    """Entity search capability supplied by the data layer.

    Returns at most `limit` rows whose search field contains `pattern`
    (case-insensitive); each row carries `id` plus that field.
    """

    def search(self, collection: str, *, pattern: str, limit: int) -> list[Mapping[str, Any]]: ...


@dataclass(frozen=True)
class LookupSpec:
    collection: str
    source_field: str  # field returned by the store
    label_key: str  # field name in the lookup result


INGREDIENTS = LookupSpec(collection="ingredients", source_field="name", label_key="name")
HACKS_OR_TIPS = LookupSpec(collection="hacks_or_tips", source_field="title", label_key="text")
FRAMEWORK_CATEGORIES = LookupSpec(collection="framework_categories", source_field="name", label_key="name")
RECIPES = LookupSpec(collection="recipes", source_field="title", label_key="title")


def normalize_query(query: str | None) -> str:
    return (query or "").strip().lower()


def _lookup(catalog: CatalogSearch, spec: LookupSpec, query: str | None) -> list[dict[str, str]]:
    q = normalize_query(query)
    if len(q) < MIN_QUERY_LENGTH:
        return []

    rows = catalog.search(spec.collection, pattern=q, limit=MAX_RESULTS)
    return [{"id": str(row["id"]), spec.label_key: row[spec.source_field]} for row in rows[:MAX_RESULTS]]


def search_ingredients(catalog: CatalogSearch, query: str | None) -> list[dict[str, str]]:
    return _lookup(catalog, INGREDIENTS, query)


def search_hacks_or_tips(catalog: CatalogSearch, query: str | None) -> list[dict[str, str]]:
    return _lookup(catalog, HACKS_OR_TIPS, query)


def search_framework_categories(catalog: CatalogSearch, query: str | None) -> list[dict[str, str]]:
    return _lookup(catalog, FRAMEWORK_CATEGORIES, query)


def search_recipes(catalog: CatalogSearch, query: str | None) -> list[dict[str, str]]:
    return _lookup(catalog, RECIPES, query)
