from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    name: str
    tags: List[str] = field(default_factory=list)
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    published_at: Optional[datetime] = None

    def has_tag(self, tag: str) -> bool:
        wanted = tag.casefold()
        return any(value.casefold() == wanted for value in self.tags)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tags": list(self.tags),
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
        }

    def copy(self) -> "Recipe":
        return replace(
            self,
            tags=list(self.tags),
            ingredients=list(self.ingredients),
            instructions=list(self.instructions),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Recipe":
        """Build a recipe from its wire/document shape.

        ``publishedAt`` may be an ISO-8601 string (seed file) or a
        ``datetime`` (Firestore documents).
        """

        published_at = data.get("publishedAt")
        if isinstance(published_at, str):
            published_at = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
        elif not isinstance(published_at, datetime):
            published_at = None

        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            tags=_string_list(data, "tags"),
            ingredients=_string_list(data, "ingredients"),
            instructions=_string_list(data, "instructions"),
            published_at=published_at,
        )


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"Recipe field '{key}' must be a list of strings.")
    return list(value)


class RecipePayload(BaseModel):
    """Client supplied recipe fields.

    ``id`` and ``publishedAt`` are owned by the server and dropped along with
    any other unknown key.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    tags: List[str] = []
    ingredients: List[str] = []
    instructions: List[str] = []

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide a recipe name.")
        return value


__all__ = ["Recipe", "RecipePayload"]
