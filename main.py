"""WSGI entrypoint for the recipe store service.

Containerized deployments serve the ``app`` object below through Gunicorn
(``gunicorn main:app``). Running this module directly starts the Flask
development server on the configured port.
"""

import structlog

from recipe_store import build_storage, create_app
from recipe_store.config import Settings, configure_logging
from recipe_store.errors import StorageBackendError
from recipe_store.seed import load_seed_file

settings = Settings.from_env()
configure_logging(settings.log_level)
logger = structlog.get_logger("main")

try:
    storage = build_storage(settings)
    inserted = storage.seed(load_seed_file(settings.seed_file))
except StorageBackendError as exc:
    logger.critical("storage_unavailable", backend=settings.storage_backend, error=str(exc))
    raise SystemExit(1) from exc
logger.info("recipes_seeded", count=inserted, backend=settings.storage_backend)

app = create_app(storage=storage)


if __name__ == "__main__":
    app.run(port=settings.port)


__all__ = ["app"]
