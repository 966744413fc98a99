from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import List

import structlog

from .models import Recipe
from .storage import utcnow

logger = structlog.get_logger(__name__)


def load_seed_file(path: Path) -> List[Recipe]:
    """Read the startup records from a JSON array.

    A missing file yields no records. Records without an id or publish time
    get fresh ones. A file that is not a JSON array of recipe objects raises
    ``ValueError``.
    """

    if not path.exists():
        logger.warning("seed_file_missing", path=str(path))
        return []

    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"Seed file {path} must contain a JSON array of recipe objects.")

    recipes = []
    for item in data:
        recipe = Recipe.from_dict(item)
        if not recipe.id:
            recipe.id = uuid.uuid4().hex
        if recipe.published_at is None:
            recipe.published_at = utcnow()
        recipes.append(recipe)

    logger.info("seed_file_loaded", path=str(path), count=len(recipes))
    return recipes


__all__ = ["load_seed_file"]
