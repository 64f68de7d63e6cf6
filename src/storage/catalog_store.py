from __future__ import annotations

import os
import sqlite3
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable


SCHEMA_VERSION = 1


def _utc_ts() -> float:
    return time.time()


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _py_lower(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).lower()


def default_db_path() -> str:
    return os.getenv("RECIPE_AGENT_SQLITE_PATH", "data/app.db")


@dataclass(frozen=True)
class CollectionSpec:
    table: str
    id_column: str
    search_column: str


# Search field per collection; lookups project `id` + this field.
COLLECTIONS: dict[str, CollectionSpec] = {
    "ingredients": CollectionSpec(table="ingredients", id_column="ingredient_id", search_column="name"),
    "recipes": CollectionSpec(table="recipes", id_column="recipe_id", search_column="title"),
    "framework_categories": CollectionSpec(
        table="framework_categories", id_column="category_id", search_column="name"
    ),
    "hacks_or_tips": CollectionSpec(table="hacks_or_tips", id_column="hack_id", search_column="title"),
}

HACK_OR_TIP_TYPES = {"Pro Tip", "Mini Hack", "Serving Suggestion"}


@dataclass(frozen=True)
class IngredientCategoryRecord:
    category_id: str
    created_at: float
    name: str


@dataclass(frozen=True)
class IngredientRecord:
    ingredient_id: str
    created_at: float
    name: str
    category_id: str
    average_weight: float


@dataclass(frozen=True)
class RecipeRecord:
    recipe_id: str
    created_at: float
    title: str


@dataclass(frozen=True)
class FrameworkCategoryRecord:
    category_id: str
    created_at: float
    name: str


@dataclass(frozen=True)
class HackOrTipRecord:
    hack_id: str
    created_at: float
    title: str
    type: str


def _require_text(value: str | None, *, what: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValueError(f"{what} cannot be empty.")
    return cleaned


class CatalogStore:
    """SQLite-backed entity catalog used by the AI lookup tools.

    Only the columns the lookup/resolver tools need are modeled; everything
    else about these entities belongs to the admin backend.
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = Path(db_path or default_db_path()).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        # SQLite's lower() only folds ASCII.
        self._conn.create_function("py_lower", 1, _py_lower, deterministic=True)
        self._conn.execute("PRAGMA foreign_keys = ON;")
        self._conn.execute("PRAGMA journal_mode = WAL;")
        self._conn.execute("PRAGMA synchronous = NORMAL;")

        self._init_schema()

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self, *, mode: str = "IMMEDIATE") -> Iterable[None]:
        """Explicit SQLite transaction; create_* calls inside should pass commit=False."""
        self._conn.execute(f"BEGIN {mode};")
        try:
            yield
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _init_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
              key TEXT PRIMARY KEY,
              value TEXT NOT NULL
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS ingredient_categories (
              category_id TEXT PRIMARY KEY,
              created_at REAL NOT NULL,
              name TEXT NOT NULL UNIQUE
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS ingredients (
              ingredient_id TEXT PRIMARY KEY,
              created_at REAL NOT NULL,
              name TEXT NOT NULL,
              category_id TEXT NOT NULL,
              average_weight REAL NOT NULL,
              FOREIGN KEY(category_id) REFERENCES ingredient_categories(category_id)
            );
            """
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_ingredients_name ON ingredients(name);")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_ingredients_category ON ingredients(category_id);")
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS recipes (
              recipe_id TEXT PRIMARY KEY,
              created_at REAL NOT NULL,
              title TEXT NOT NULL
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS framework_categories (
              category_id TEXT PRIMARY KEY,
              created_at REAL NOT NULL,
              name TEXT NOT NULL UNIQUE,
              description TEXT NOT NULL DEFAULT '',
              sort_order INTEGER NOT NULL DEFAULT 0,
              is_active INTEGER NOT NULL DEFAULT 1
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS hacks_or_tips (
              hack_id TEXT PRIMARY KEY,
              created_at REAL NOT NULL,
              title TEXT NOT NULL,
              type TEXT NOT NULL,
              short_description TEXT NOT NULL DEFAULT '',
              is_active INTEGER NOT NULL DEFAULT 1
            );
            """
        )
        self._conn.commit()

        if self._get_schema_version() == 0:
            self._set_schema_version(SCHEMA_VERSION)

    def _get_schema_version(self) -> int:
        row = self._conn.execute("SELECT value FROM meta WHERE key = 'schema_version';").fetchone()
        if row is None:
            return 0
        try:
            return int(row["value"])
        except Exception:
            return 0

    def _set_schema_version(self, version: int) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO meta(key, value) VALUES('schema_version', ?);",
            (str(int(version)),),
        )
        self._conn.commit()

    # --- Search capability (consumed by src.tools.catalog_lookup)
    def search(self, collection: str, *, pattern: str, limit: int) -> list[dict[str, Any]]:
        spec = COLLECTIONS.get(collection)
        if spec is None:
            raise ValueError(f"Unknown catalog collection: {collection!r}")
        rows = self._conn.execute(
            f"""
            SELECT {spec.id_column} AS id, {spec.search_column} AS label
            FROM {spec.table}
            WHERE instr(py_lower({spec.search_column}), ?) > 0
            ORDER BY rowid
            LIMIT ?;
            """,
            ((pattern or "").lower(), int(limit)),
        ).fetchall()
        return [{"id": r["id"], spec.search_column: r["label"]} for r in rows]

    def count_by_collection(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for name, spec in COLLECTIONS.items():
            row = self._conn.execute(f"SELECT COUNT(*) AS n FROM {spec.table};").fetchone()
            out[name] = int(row["n"]) if row is not None else 0
        return out

    # --- Ingredient resolver helpers
    def find_ingredient_exact(self, name: str) -> sqlite3.Row | None:
        cleaned = (name or "").strip()
        if not cleaned:
            return None
        return self._conn.execute(
            """
            SELECT ingredient_id, name
            FROM ingredients
            WHERE py_lower(name) = py_lower(?)
            ORDER BY rowid
            LIMIT 1;
            """,
            (cleaned,),
        ).fetchone()

    def search_ingredients_any(self, patterns: list[str], *, limit: int) -> list[sqlite3.Row]:
        """Ingredients whose name contains any of `patterns` (case-insensitive)."""
        cleaned = [p.lower() for p in patterns if p]
        if not cleaned:
            return []
        where = " OR ".join(["instr(py_lower(name), ?) > 0"] * len(cleaned))
        return self._conn.execute(
            f"""
            SELECT ingredient_id, name
            FROM ingredients
            WHERE {where}
            ORDER BY rowid
            LIMIT ?;
            """,
            (*cleaned, int(limit)),
        ).fetchall()

    def list_ingredient_names(self, *, limit: int) -> list[sqlite3.Row]:
        return self._conn.execute(
            "SELECT ingredient_id, name FROM ingredients ORDER BY rowid LIMIT ?;",
            (int(limit),),
        ).fetchall()

    def get_ingredient(self, *, ingredient_id: str) -> sqlite3.Row | None:
        return self._conn.execute(
            """
            SELECT ingredient_id, created_at, name, category_id, average_weight
            FROM ingredients
            WHERE ingredient_id = ?
            LIMIT 1;
            """,
            ((ingredient_id or "").strip(),),
        ).fetchone()

    def find_ingredient_category(self, pattern: str) -> sqlite3.Row | None:
        cleaned = (pattern or "").strip().lower()
        if not cleaned:
            return None
        return self._conn.execute(
            """
            SELECT category_id, name
            FROM ingredient_categories
            WHERE instr(py_lower(name), ?) > 0
            ORDER BY rowid
            LIMIT 1;
            """,
            (cleaned,),
        ).fetchone()

    def get_ingredient_category_by_name(self, name: str) -> sqlite3.Row | None:
        return self._conn.execute(
            "SELECT category_id, name FROM ingredient_categories WHERE name = ? LIMIT 1;",
            ((name or "").strip(),),
        ).fetchone()

    # --- Create operations
    def create_ingredient_category(self, *, name: str, commit: bool = True) -> IngredientCategoryRecord:
        cleaned = _require_text(name, what="Ingredient category name")
        category_id = _new_uuid()
        ts = _utc_ts()
        self._conn.execute(
            "INSERT INTO ingredient_categories(category_id, created_at, name) VALUES(?, ?, ?);",
            (category_id, ts, cleaned),
        )
        if commit:
            self._conn.commit()
        return IngredientCategoryRecord(category_id=category_id, created_at=ts, name=cleaned)

    def create_ingredient(
        self,
        *,
        name: str,
        category_id: str,
        average_weight: float = 100.0,
        commit: bool = True,
    ) -> IngredientRecord:
        cleaned = _require_text(name, what="Ingredient name")
        cid = _require_text(category_id, what="category_id")
        ingredient_id = _new_uuid()
        ts = _utc_ts()
        self._conn.execute(
            """
            INSERT INTO ingredients(ingredient_id, created_at, name, category_id, average_weight)
            VALUES(?, ?, ?, ?, ?);
            """,
            (ingredient_id, ts, cleaned, cid, float(average_weight)),
        )
        if commit:
            self._conn.commit()
        return IngredientRecord(
            ingredient_id=ingredient_id,
            created_at=ts,
            name=cleaned,
            category_id=cid,
            average_weight=float(average_weight),
        )

    def create_recipe(self, *, title: str, commit: bool = True) -> RecipeRecord:
        cleaned = _require_text(title, what="Recipe title")
        recipe_id = _new_uuid()
        ts = _utc_ts()
        self._conn.execute(
            "INSERT INTO recipes(recipe_id, created_at, title) VALUES(?, ?, ?);",
            (recipe_id, ts, cleaned),
        )
        if commit:
            self._conn.commit()
        return RecipeRecord(recipe_id=recipe_id, created_at=ts, title=cleaned)

    def create_framework_category(
        self,
        *,
        name: str,
        description: str = "",
        sort_order: int = 0,
        is_active: bool = True,
        commit: bool = True,
    ) -> FrameworkCategoryRecord:
        cleaned = _require_text(name, what="Framework category name")
        category_id = _new_uuid()
        ts = _utc_ts()
        self._conn.execute(
            """
            INSERT INTO framework_categories(category_id, created_at, name, description, sort_order, is_active)
            VALUES(?, ?, ?, ?, ?, ?);
            """,
            (category_id, ts, cleaned, description or "", int(sort_order), 1 if is_active else 0),
        )
        if commit:
            self._conn.commit()
        return FrameworkCategoryRecord(category_id=category_id, created_at=ts, name=cleaned)

    def create_hack_or_tip(
        self,
        *,
        title: str,
        type: str = "Pro Tip",
        short_description: str = "",
        is_active: bool = True,
        commit: bool = True,
    ) -> HackOrTipRecord:
        cleaned = _require_text(title, what="Hack or tip title")
        if type not in HACK_OR_TIP_TYPES:
            raise ValueError(f"Invalid hack or tip type: {type!r}")
        hack_id = _new_uuid()
        ts = _utc_ts()
        self._conn.execute(
            """
            INSERT INTO hacks_or_tips(hack_id, created_at, title, type, short_description, is_active)
            VALUES(?, ?, ?, ?, ?, ?);
            """,
            (hack_id, ts, cleaned, type, short_description or "", 1 if is_active else 0),
        )
        if commit:
            self._conn.commit()
        return HackOrTipRecord(hack_id=hack_id, created_at=ts, title=cleaned, type=type)
