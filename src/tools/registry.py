from __future__ import annotations

import json
from typing import Any, Callable

from src.storage.catalog_store import CatalogStore

from .catalog_lookup import (
    search_framework_categories,
    search_hacks_or_tips,
    search_ingredients,
    search_recipes,
)
from .ingredient_resolver import get_or_create_ingredient


class UnknownToolError(ValueError):
    pass


def _query_tool(name: str, description: str, query_hint: str) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {"query": {"type": "string", "description": query_hint}},
                "required": ["query"],
            },
        },
    }


# Chat-completions `tools` payload.
TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": "get_or_create_ingredient",
            "description": (
                "Find an ingredient by name. If it does not exist, it is created. "
                "ALWAYS returns {id, name}. Call ONCE per unique ingredient."
            ),
            "parameters": {
                "type": "object",
                "properties": {
                    "name": {
                        "type": "string",
                        "description": "Exact ingredient name, e.g. 'Paneer', 'Tomato', 'Olive Oil'",
                    },
                    "category_name": {
                        "type": "string",
                        "description": (
                            "Ingredient category: 'Dairy', 'Vegetables', 'Spices', 'Meat', 'Grains', "
                            "'Oils & Fats', 'Herbs', 'Condiments', 'Fruits', 'Nuts & Seeds', 'Seafood', etc."
                        ),
                    },
                },
                "required": ["name"],
            },
        },
    },
    _query_tool(
        "search_ingredients",
        "Browse existing ingredients by name. Returns up to 10 [{id, name}].",
        "Ingredient search term (min 2 chars)",
    ),
    _query_tool(
        "search_hacks_or_tips",
        "Lookup hacks and tips by title. Returns up to 10 [{id, text}].",
        "Search term for hacks or tips",
    ),
    _query_tool(
        "search_framework_categories",
        "Lookup recipe framework categories (e.g. Lunch, Dinner, Breakfast). Returns up to 10 [{id, name}].",
        "Category search term like 'lunch', 'dinner', 'breakfast'",
    ),
    _query_tool(
        "search_recipes",
        "Lookup existing recipes for the useLeftoversIn field. Returns up to 10 [{id, title}].",
        "Recipe search term",
    ),
]


def _run_get_or_create_ingredient(store: CatalogStore, args: dict[str, Any]) -> Any:
    category = args.get("category_name", args.get("categoryName"))
    return get_or_create_ingredient(store, args.get("name"), category)


_HANDLERS: dict[str, Callable[[CatalogStore, dict[str, Any]], Any]] = {
    "get_or_create_ingredient": _run_get_or_create_ingredient,
    "search_ingredients": lambda store, args: search_ingredients(store, args.get("query")),
    "search_hacks_or_tips": lambda store, args: search_hacks_or_tips(store, args.get("query")),
    "search_framework_categories": lambda store, args: search_framework_categories(store, args.get("query")),
    "search_recipes": lambda store, args: search_recipes(store, args.get("query")),
}


def tool_names() -> list[str]:
    return [t["function"]["name"] for t in TOOL_DEFINITIONS]


def parse_tool_arguments(arguments: Any) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    if not isinstance(arguments, str) or not arguments.strip():
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def execute_tool(store: CatalogStore, name: str, arguments: Any) -> Any:
    """Run one model tool call against the catalog; operation errors propagate."""
    handler = _HANDLERS.get((name or "").strip())
    if handler is None:
        raise UnknownToolError(f"Unknown function: {name}")
    return handler(store, parse_tool_arguments(arguments))
