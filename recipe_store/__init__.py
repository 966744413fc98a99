from __future__ import annotations

from typing import Optional, Tuple

import structlog
from flask import Flask, Response, jsonify, request
from pydantic import ValidationError

from .config import Settings
from .errors import PayloadValidationError, RecipeNotFoundError, StorageBackendError
from .models import Recipe, RecipePayload
from .storage import InMemoryRecipeStorage, RecipeRepository

try:
    from .firestore_storage import FirestoreRecipeStorage
except ImportError:  # pragma: no cover - allows running tests without optional deps
    FirestoreRecipeStorage = None  # type: ignore[assignment,misc]

logger = structlog.get_logger(__name__)


def build_storage(settings: Settings) -> RecipeRepository:
    """Instantiate the storage backend named by ``settings``."""

    logger.info("storage_selected", backend=settings.storage_backend)
    if settings.storage_backend == "memory":
        return InMemoryRecipeStorage()

    if FirestoreRecipeStorage is None:
        raise RuntimeError(
            "google-cloud-firestore is not installed. Install it or select the "
            "memory storage backend with RECIPE_STORAGE=memory."
        )
    return FirestoreRecipeStorage(
        project=settings.gcp_project,
        collection_name=settings.collection_name,
    )


def create_app(
    storage: Optional[RecipeRepository] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository. When ``None`` the backend is chosen from
        ``settings`` (or the environment when no settings are given).
    settings:
        Optional runtime configuration, see :class:`Settings`.
    """

    app = Flask(__name__)

    if storage is None:
        storage = build_storage(settings or Settings.from_env())
    app.config["RECIPE_STORAGE"] = storage

    def _storage() -> RecipeRepository:
        return app.config["RECIPE_STORAGE"]

    @app.post("/recipes")
    def create_recipe() -> Response:
        payload = _bind_payload()
        recipe = _storage().add_recipe(
            name=payload.name,
            tags=payload.tags,
            ingredients=payload.ingredients,
            instructions=payload.instructions,
        )
        return jsonify(recipe.to_dict())

    @app.get("/recipes")
    def list_recipes() -> Response:
        return jsonify([recipe.to_dict() for recipe in _storage().list_recipes()])

    @app.put("/recipes/<recipe_id>")
    def update_recipe(recipe_id: str) -> Response:
        payload = _bind_payload()
        recipe = _storage().update_recipe(
            recipe_id,
            name=payload.name,
            tags=payload.tags,
            ingredients=payload.ingredients,
            instructions=payload.instructions,
        )
        return jsonify(recipe.to_dict())

    @app.delete("/recipes/<recipe_id>")
    def delete_recipe(recipe_id: str) -> Response:
        _storage().delete_recipe(recipe_id)
        return jsonify({"message": "Recipe deleted successfully"})

    @app.get("/recipes/search")
    def search_recipes() -> Response:
        tag = request.args.get("tag", "")
        if not tag:
            return jsonify([])
        return jsonify([recipe.to_dict() for recipe in _storage().find_by_tag(tag)])

    app.register_error_handler(PayloadValidationError, _bad_request)
    # Missing ids answer 400 rather than 404 to match the published API.
    app.register_error_handler(RecipeNotFoundError, _bad_request)
    app.register_error_handler(StorageBackendError, _backend_failure)

    return app


def _bind_payload() -> RecipePayload:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise PayloadValidationError("Request body must be a JSON object.")

    try:
        return RecipePayload.model_validate(data)
    except ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise PayloadValidationError(messages) from exc


def _bad_request(exc: Exception) -> Tuple[Response, int]:
    return jsonify({"error": str(exc)}), 400


def _backend_failure(exc: Exception) -> Tuple[Response, int]:
    logger.error("request_failed", path=request.path, error=str(exc))
    return jsonify({"error": str(exc)}), 500


__all__ = ["build_storage", "create_app", "Recipe", "Settings"]
