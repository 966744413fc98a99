from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Protocol

import structlog

from .errors import RecipeNotFoundError
from .models import Recipe

logger = structlog.get_logger(__name__)


class RecipeRepository(Protocol):
    """Protocol describing the behaviour required by the web layer."""

    def list_recipes(self) -> Iterable[Recipe]:
        """Return every stored recipe in the backend's natural order."""

    def get_recipe(self, recipe_id: str) -> Recipe:
        """Return a single recipe or raise :class:`RecipeNotFoundError`."""

    def add_recipe(
        self,
        *,
        name: str,
        tags: List[str],
        ingredients: List[str],
        instructions: List[str],
    ) -> Recipe:
        """Persist a new recipe, assigning its id and publish time."""

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        tags: List[str],
        ingredients: List[str],
        instructions: List[str],
    ) -> Recipe:
        """Replace the fields of an existing recipe and refresh its publish time."""

    def delete_recipe(self, recipe_id: str) -> None:
        """Remove a recipe or raise :class:`RecipeNotFoundError`."""

    def find_by_tag(self, tag: str) -> List[Recipe]:
        """Return recipes carrying ``tag``, compared case-insensitively."""

    def seed(self, recipes: Iterable[Recipe]) -> int:
        """Load startup records and return how many were inserted."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRecipeStorage(RecipeRepository):
    """Process-local storage backed by a list kept in insertion order.

    Stored records are replaced rather than mutated and callers only ever
    receive copies, so every read sees a record as it was under the lock.
    """

    def __init__(self) -> None:
        self._recipes: list[Recipe] = []
        self._lock = threading.Lock()

    def list_recipes(self) -> Iterable[Recipe]:
        with self._lock:
            return [recipe.copy() for recipe in self._recipes]

    def get_recipe(self, recipe_id: str) -> Recipe:
        with self._lock:
            return self._recipes[self._index_of(recipe_id)].copy()

    def add_recipe(
        self,
        *,
        name: str,
        tags: List[str],
        ingredients: List[str],
        instructions: List[str],
    ) -> Recipe:
        recipe = Recipe(
            id=uuid.uuid4().hex,
            name=name,
            tags=list(tags),
            ingredients=list(ingredients),
            instructions=list(instructions),
            published_at=utcnow(),
        )
        with self._lock:
            self._recipes.append(recipe)
        logger.info("recipe_created", recipe_id=recipe.id, backend="memory")
        return recipe.copy()

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        tags: List[str],
        ingredients: List[str],
        instructions: List[str],
    ) -> Recipe:
        recipe = Recipe(
            id=recipe_id,
            name=name,
            tags=list(tags),
            ingredients=list(ingredients),
            instructions=list(instructions),
        )
        with self._lock:
            index = self._index_of(recipe_id)
            recipe.published_at = utcnow()
            self._recipes[index] = recipe
        logger.info("recipe_updated", recipe_id=recipe_id, backend="memory")
        return recipe.copy()

    def delete_recipe(self, recipe_id: str) -> None:
        with self._lock:
            self._recipes.pop(self._index_of(recipe_id))
        logger.info("recipe_deleted", recipe_id=recipe_id, backend="memory")

    def find_by_tag(self, tag: str) -> List[Recipe]:
        with self._lock:
            return [recipe.copy() for recipe in self._recipes if recipe.has_tag(tag)]

    def seed(self, recipes: Iterable[Recipe]) -> int:
        inserted = 0
        with self._lock:
            known = {recipe.id for recipe in self._recipes}
            for recipe in recipes:
                if recipe.id in known:
                    continue
                self._recipes.append(recipe.copy())
                known.add(recipe.id)
                inserted += 1
        return inserted

    def _index_of(self, recipe_id: str) -> int:
        # Caller must hold the lock.
        for index, recipe in enumerate(self._recipes):
            if recipe.id == recipe_id:
                return index
        raise RecipeNotFoundError(recipe_id)


__all__ = ["InMemoryRecipeStorage", "RecipeRepository", "utcnow"]
