from __future__ import annotations

import contextlib
import os
import uuid
from typing import Any, Dict, Iterable, Iterator, List, Optional

import structlog
from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .errors import RecipeNotFoundError, StorageBackendError
from .models import Recipe
from .storage import RecipeRepository, utcnow

logger = structlog.get_logger(__name__)


@contextlib.contextmanager
def _backend_errors() -> Iterator[None]:
    try:
        yield
    except (gcloud_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
        logger.error("firestore_error", error=str(exc))
        raise StorageBackendError(str(exc)) from exc


class FirestoreRecipeStorage(RecipeRepository):
    """Recipe storage backed by a Firestore collection.

    Records are looked up by their ``id`` field rather than by document key so
    that documents written by other tools resolve the same way as ours.
    """

    def __init__(
        self,
        *,
        client: Optional[firestore.Client] = None,
        project: Optional[str] = None,
        collection_name: str = "recipes",
    ) -> None:
        self._collection_name = collection_name
        if client is None:
            # Missing credentials surface here, before any request is made.
            with _backend_errors():
                client = firestore.Client(project=project)
        self._firestore_client = client
        self._collection = self._firestore_client.collection(collection_name)

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        return cls(project=project, collection_name=collection_name)

    def list_recipes(self) -> Iterable[Recipe]:
        with _backend_errors():
            return [self._doc_to_recipe(doc.to_dict() or {}) for doc in self._collection.stream()]

    def get_recipe(self, recipe_id: str) -> Recipe:
        with _backend_errors():
            snapshot = self._find_snapshot(recipe_id)
        return self._doc_to_recipe(snapshot.to_dict() or {})

    def add_recipe(
        self,
        *,
        name: str,
        tags: List[str],
        ingredients: List[str],
        instructions: List[str],
    ) -> Recipe:
        with _backend_errors():
            doc_ref = self._collection.document()
            doc_ref.set(
                {
                    "id": doc_ref.id,
                    "name": name,
                    "tags": list(tags),
                    "ingredients": list(ingredients),
                    "instructions": list(instructions),
                    "publishedAt": utcnow(),
                }
            )
            snapshot = doc_ref.get()

        logger.info("recipe_created", recipe_id=doc_ref.id, backend="firestore")
        return self._doc_to_recipe(snapshot.to_dict() or {})

    def update_recipe(
        self,
        recipe_id: str,
        *,
        name: str,
        tags: List[str],
        ingredients: List[str],
        instructions: List[str],
    ) -> Recipe:
        with _backend_errors():
            doc_ref = self._find_snapshot(recipe_id).reference
            try:
                # update() fails on a missing document, so a concurrent delete
                # cannot be undone by this write.
                doc_ref.update(
                    {
                        "id": recipe_id,
                        "name": name,
                        "tags": list(tags),
                        "ingredients": list(ingredients),
                        "instructions": list(instructions),
                        "publishedAt": utcnow(),
                    }
                )
            except gcloud_exceptions.NotFound as exc:
                raise RecipeNotFoundError(recipe_id) from exc
            snapshot = doc_ref.get()

        logger.info("recipe_updated", recipe_id=recipe_id, backend="firestore")
        return self._doc_to_recipe(snapshot.to_dict() or {})

    def delete_recipe(self, recipe_id: str) -> None:
        with _backend_errors():
            self._find_snapshot(recipe_id).reference.delete()
        logger.info("recipe_deleted", recipe_id=recipe_id, backend="firestore")

    def find_by_tag(self, tag: str) -> List[Recipe]:
        # array_contains is case-sensitive, so the match happens here.
        return [recipe for recipe in self.list_recipes() if recipe.has_tag(tag)]

    def seed(self, recipes: Iterable[Recipe]) -> int:
        with _backend_errors():
            if list(self._collection.limit(1).stream()):
                logger.info("seed_skipped", reason="collection not empty")
                return 0

            batch = self._firestore_client.batch()
            written = set()
            for recipe in recipes:
                recipe_id = recipe.id or uuid.uuid4().hex
                if recipe_id in written:
                    continue
                written.add(recipe_id)
                batch.set(self._collection.document(recipe_id), self._recipe_to_doc(recipe, recipe_id))
            if written:
                batch.commit()
        return len(written)

    def _find_snapshot(self, recipe_id: str):
        query = self._collection.where(filter=FieldFilter("id", "==", recipe_id)).limit(1)
        for snapshot in query.stream():
            return snapshot
        raise RecipeNotFoundError(recipe_id)

    def _recipe_to_doc(self, recipe: Recipe, recipe_id: str) -> Dict[str, Any]:
        return {
            "id": recipe_id,
            "name": recipe.name,
            "tags": list(recipe.tags),
            "ingredients": list(recipe.ingredients),
            "instructions": list(recipe.instructions),
            "publishedAt": recipe.published_at,
        }

    def _doc_to_recipe(self, data: Dict[str, Any]) -> Recipe:
        return Recipe.from_dict(data)


__all__ = ["FirestoreRecipeStorage"]
