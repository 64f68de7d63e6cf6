#!/usr/bin/env python3
"""Load catalog entities from a JSON file into the SQLite catalog.

Expected shape (every key optional):

    {
      "ingredients": [{"name": "Paneer", "category": "Dairy", "average_weight": 200}],
      "recipes": [{"title": "Paneer Tikka"}],
      "framework_categories": [{"name": "Dinner", "sort_order": 2}],
      "hacks_or_tips": [{"title": "Toast spices first", "type": "Pro Tip"}]
    }

Ingredients whose name already exists (case-insensitive) are skipped.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any


REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.storage.catalog_store import CatalogStore  # noqa: E402
from src.tools.ingredient_resolver import DEFAULT_AVERAGE_WEIGHT, resolve_category  # noqa: E402
from src.utils.logging_utils import setup_logging  # noqa: E402


logger = logging.getLogger("src.scripts.seed_catalog")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed the recipe catalog (SQLite-backed) from a JSON file.")
    p.add_argument("--file", required=True, help="Path to the seed JSON file.")
    p.add_argument("--db-path", default="", help="SQLite path (default: env RECIPE_AGENT_SQLITE_PATH or data/app.db).")
    p.add_argument("--log-level", default="INFO", help="Log level (default: INFO).")
    return p.parse_args(argv)


def _items(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    raw = data.get(key) or []
    if not isinstance(raw, list):
        raise ValueError(f"{key} must be a list")
    return [x for x in raw if isinstance(x, dict)]


def _category_id(store: CatalogStore, name: str) -> str:
    if not name.strip():
        return resolve_category(store)
    row = store.get_ingredient_category_by_name(name)
    if row is not None:
        return str(row["category_id"])
    return store.create_ingredient_category(name=name).category_id


def seed(store: CatalogStore, data: dict[str, Any]) -> dict[str, int]:
    counts = {"ingredients": 0, "recipes": 0, "framework_categories": 0, "hacks_or_tips": 0}
    for item in _items(data, "ingredients"):
        name = str(item.get("name") or "").strip()
        if not name or store.find_ingredient_exact(name) is not None:
            continue
        category_id = _category_id(store, str(item.get("category") or ""))
        store.create_ingredient(
            name=name,
            category_id=category_id,
            average_weight=float(item.get("average_weight") or DEFAULT_AVERAGE_WEIGHT),
        )
        counts["ingredients"] += 1
    for item in _items(data, "recipes"):
        store.create_recipe(title=str(item.get("title") or ""))
        counts["recipes"] += 1
    for item in _items(data, "framework_categories"):
        store.create_framework_category(
            name=str(item.get("name") or ""),
            description=str(item.get("description") or ""),
            sort_order=int(item.get("sort_order") or 0),
        )
        counts["framework_categories"] += 1
    for item in _items(data, "hacks_or_tips"):
        store.create_hack_or_tip(
            title=str(item.get("title") or ""),
            type=str(item.get("type") or "Pro Tip"),
            short_description=str(item.get("short_description") or ""),
        )
        counts["hacks_or_tips"] += 1
    return counts


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv or sys.argv[1:])
    setup_logging(args.log_level)

    data = json.loads(Path(args.file).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        print("Seed file must contain a JSON object.", file=sys.stderr)
        return 2

    store = CatalogStore(args.db_path or None)
    try:
        counts = seed(store, data)
    finally:
        store.close()
    logger.info("Seeded catalog: %s", counts)
    print(json.dumps(counts))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
