from __future__ import annotations

import json
import os
import tempfile

import pytest

from src.storage.catalog_store import CatalogStore
from src.tools.registry import (
    TOOL_DEFINITIONS,
    UnknownToolError,
    execute_tool,
    parse_tool_arguments,
    tool_names,
)


def test_tool_definitions_are_chat_completions_functions() -> None:
    assert tool_names() == [
        "get_or_create_ingredient",
        "search_ingredients",
        "search_hacks_or_tips",
        "search_framework_categories",
        "search_recipes",
    ]
    for t in TOOL_DEFINITIONS:
        assert t["type"] == "function"
        params = t["function"]["parameters"]
        assert params["type"] == "object"
        assert set(params["required"]) <= set(params["properties"])
    # Must survive a JSON round trip to be sent upstream.
    json.dumps(TOOL_DEFINITIONS)


@pytest.mark.parametrize(
    ("arguments", "expected"),
    [
        ('{"query": "rice"}', {"query": "rice"}),
        ({"query": "rice"}, {"query": "rice"}),
        ("", {}),
        ("{not json", {}),
        ('["rice"]', {}),
        (None, {}),
    ],
)
def test_parse_tool_arguments(arguments: object, expected: dict) -> None:
    assert parse_tool_arguments(arguments) == expected


def test_execute_tool_dispatches_to_catalog() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = CatalogStore(os.path.join(td, "app.db"))
        try:
            recipe = store.create_recipe(title="Vegetable Fried Rice")
            store.create_framework_category(name="Lunch")

            assert execute_tool(store, "search_recipes", '{"query": "Rice"}') == [
                {"id": recipe.recipe_id, "title": "Vegetable Fried Rice"}
            ]
            assert execute_tool(store, "search_framework_categories", {"query": "l"}) == []

            created = execute_tool(store, "get_or_create_ingredient", {"name": "Paneer", "categoryName": "Dairy"})
            assert created["created"] is True
            found = execute_tool(store, "get_or_create_ingredient", '{"name": "paneer"}')
            assert found == {"id": created["id"], "name": "Paneer", "created": False}
        finally:
            store.close()


def test_execute_unknown_tool() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = CatalogStore(os.path.join(td, "app.db"))
        try:
            with pytest.raises(UnknownToolError, match="Unknown function: delete_everything"):
                execute_tool(store, "delete_everything", "{}")
        finally:
            store.close()
