from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import structlog

STORAGE_BACKENDS = ("memory", "firestore")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    """Runtime configuration read from the environment."""

    storage_backend: str = "firestore"
    gcp_project: Optional[str] = None
    collection_name: str = "recipes"
    seed_file: Path = Path("recipes.json")
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.environ.get("RECIPE_STORAGE", "firestore").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unknown RECIPE_STORAGE '{backend}'. Expected one of: {', '.join(STORAGE_BACKENDS)}."
            )

        log_level = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"Unknown LOG_LEVEL '{log_level}'. Expected one of: {', '.join(LOG_LEVELS)}."
            )

        return cls(
            storage_backend=backend,
            gcp_project=os.environ.get("GCP_PROJECT"),
            collection_name=os.environ.get("RECIPES_COLLECTION", "recipes"),
            seed_file=Path(os.environ.get("RECIPES_SEED_FILE", "recipes.json")),
            port=int(os.environ.get("PORT", "3000")),
            log_level=log_level,
        )


def configure_logging(level: str = "INFO") -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        logger_factory=structlog.WriteLoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = ["LOG_LEVELS", "STORAGE_BACKENDS", "Settings", "configure_logging"]
