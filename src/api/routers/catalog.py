from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from src.storage.catalog_store import CatalogStore
from src.tools.catalog_lookup import (
    search_framework_categories,
    search_hacks_or_tips,
    search_ingredients,
    search_recipes,
)
from src.tools.ingredient_resolver import get_or_create_ingredient


router = APIRouter()


class ResolveIngredientRequest(BaseModel):
    name: str = Field(min_length=1)
    category_name: str | None = Field(default=None)


@router.get("/catalog/ingredients")
def list_ingredients(q: str = Query(default="")) -> dict[str, Any]:
    store = CatalogStore()
    try:
        return {"items": search_ingredients(store, q)}
    finally:
        store.close()


@router.get("/catalog/hacks_or_tips")
def list_hacks_or_tips(q: str = Query(default="")) -> dict[str, Any]:
    store = CatalogStore()
    try:
        return {"items": search_hacks_or_tips(store, q)}
    finally:
        store.close()


@router.get("/catalog/framework_categories")
def list_framework_categories(q: str = Query(default="")) -> dict[str, Any]:
    store = CatalogStore()
    try:
        return {"items": search_framework_categories(store, q)}
    finally:
        store.close()


@router.get("/catalog/recipes")
def list_recipes(q: str = Query(default="")) -> dict[str, Any]:
    store = CatalogStore()
    try:
        return {"items": search_recipes(store, q)}
    finally:
        store.close()


@router.post("/catalog/ingredients/resolve")
def resolve_ingredient(body: ResolveIngredientRequest) -> dict[str, Any]:
    store = CatalogStore()
    try:
        return {"ingredient": get_or_create_ingredient(store, body.name, body.category_name)}
    finally:
        store.close()
