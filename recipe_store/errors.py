class RecipeStoreError(Exception):
    """Base class for errors raised by the recipe store."""


class PayloadValidationError(RecipeStoreError):
    """The request body could not be bound to a recipe."""


class RecipeNotFoundError(RecipeStoreError, KeyError):
    """No recipe carries the requested identifier."""

    def __init__(self, recipe_id: str) -> None:
        super().__init__(f"Recipe '{recipe_id}' does not exist.")
        self.recipe_id = recipe_id

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return self.args[0]


class StorageBackendError(RecipeStoreError):
    """The storage backend failed to complete an operation."""


__all__ = [
    "PayloadValidationError",
    "RecipeNotFoundError",
    "RecipeStoreError",
    "StorageBackendError",
]
