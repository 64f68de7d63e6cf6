from __future__ import annotations

import os
import tempfile

import pytest

from src.storage.catalog_store import SCHEMA_VERSION, CatalogStore
from src.tools.catalog_lookup import search_hacks_or_tips, search_ingredients


def _store(td: str) -> CatalogStore:
    return CatalogStore(os.path.join(td, "app.db"))


def test_schema_is_created_and_versioned() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            assert store._get_schema_version() == SCHEMA_VERSION
            assert store.count_by_collection() == {
                "ingredients": 0,
                "recipes": 0,
                "framework_categories": 0,
                "hacks_or_tips": 0,
            }
        finally:
            store.close()

        # Re-opening an existing database is a no-op.
        store2 = _store(td)
        try:
            assert store2._get_schema_version() == SCHEMA_VERSION
        finally:
            store2.close()


def test_search_is_case_insensitive_substring() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            cat = store.create_ingredient_category(name="Vegetables")
            store.create_ingredient(name="Cherry Tomato", category_id=cat.category_id)
            store.create_ingredient(name="Tomato Paste", category_id=cat.category_id)
            store.create_ingredient(name="Onion", category_id=cat.category_id)

            rows = store.search("ingredients", pattern="tomato", limit=10)
            assert [r["name"] for r in rows] == ["Cherry Tomato", "Tomato Paste"]
            assert set(rows[0].keys()) == {"id", "name"}
        finally:
            store.close()


def test_search_folds_non_ascii_case() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            store.create_recipe(title="CRÈME BRÛLÉE")
            rows = store.search("recipes", pattern="crème", limit=10)
            assert [r["title"] for r in rows] == ["CRÈME BRÛLÉE"]
        finally:
            store.close()


def test_search_treats_wildcards_literally() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            store.create_recipe(title="100% Whole Wheat Roti")
            store.create_recipe(title="Plain Rice")
            store.create_recipe(title="snake_case soup")

            assert [r["title"] for r in store.search("recipes", pattern="0%", limit=10)] == ["100% Whole Wheat Roti"]
            assert [r["title"] for r in store.search("recipes", pattern="e_c", limit=10)] == ["snake_case soup"]
            assert [r["title"] for r in store.search("recipes", pattern="%", limit=10)] == ["100% Whole Wheat Roti"]
        finally:
            store.close()


def test_search_respects_limit() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            for i in range(15):
                store.create_framework_category(name=f"Dinner {i}", sort_order=i)
            assert len(store.search("framework_categories", pattern="dinner", limit=10)) == 10
        finally:
            store.close()


def test_unknown_collection_is_rejected() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            with pytest.raises(ValueError):
                store.search("users", pattern="admin", limit=10)
        finally:
            store.close()


def test_lookup_layer_over_real_store() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            cat = store.create_ingredient_category(name="Dairy")
            paneer = store.create_ingredient(name="Paneer", category_id=cat.category_id, average_weight=200)
            hack = store.create_hack_or_tip(title="Soak paneer in hot water", type="Mini Hack")

            assert search_ingredients(store, " PANEER ") == [{"id": paneer.ingredient_id, "name": "Paneer"}]
            assert search_hacks_or_tips(store, "paneer") == [{"id": hack.hack_id, "text": "Soak paneer in hot water"}]
        finally:
            store.close()


def test_create_validation() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            with pytest.raises(ValueError):
                store.create_recipe(title="   ")
            with pytest.raises(ValueError):
                store.create_hack_or_tip(title="Tip", type="Life Hack")
        finally:
            store.close()


def test_transaction_rolls_back_on_error() -> None:
    with tempfile.TemporaryDirectory() as td:
        store = _store(td)
        try:
            with pytest.raises(RuntimeError):
                with store.transaction():
                    store.create_recipe(title="Pending", commit=False)
                    raise RuntimeError("boom")
            assert store.count_by_collection()["recipes"] == 0
        finally:
            store.close()
