"""
Schema definition for the search index.

Declares which document fields are tokenized into the inverted index and how
strongly a match in each field counts. Field weights are explicit values
rather than constants buried in the scorer, so they can be tuned through
``SearchSettings`` and asserted on in tests. The schema is stored in the
index artifact; the query engine scores with the weights the index was built
with.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any


TITLE_FIELD = "title"
DESCRIPTION_FIELD = "description"
BODY_FIELD = "body"

DEFAULT_TITLE_WEIGHT = 10.0
DEFAULT_DESCRIPTION_WEIGHT = 2.0
DEFAULT_BODY_WEIGHT = 1.0


@dataclass(frozen=True)
class TextField:
    """
    Analyzed text field for full-text search.

    Args:
        name: Document attribute the field reads (e.g., "body", "title")
        boost: Multiplier applied to every match in this field
    """

    name: str
    boost: float = 1.0

    def __post_init__(self) -> None:
        if self.boost < 0:
            raise ValueError(f"Field '{self.name}' boost must be >= 0, got {self.boost}")

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "boost": self.boost}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextField:
        return cls(name=str(data["name"]), boost=float(data.get("boost", 1.0)))


@dataclass(frozen=True)
class Schema:
    """
    Ordered set of indexed text fields.

    Example:
        schema = Schema(
            fields=(
                TextField("title", boost=10.0),
                TextField("body"),
            )
        )
    """

    fields: tuple[TextField, ...]

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in schema: {names}")
        if not names:
            raise ValueError("Schema needs at least one field")

    def __iter__(self) -> Iterator[TextField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_boost(self, field_name: str) -> float:
        """Get boost factor for a field (0.0 for unknown fields)."""
        for schema_field in self.fields:
            if schema_field.name == field_name:
                return schema_field.boost
        return 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"fields": [f.to_dict() for f in self.fields]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Schema:
        return cls(fields=tuple(TextField.from_dict(f) for f in data["fields"]))


def create_default_schema(
    *,
    title_weight: float = DEFAULT_TITLE_WEIGHT,
    description_weight: float = DEFAULT_DESCRIPTION_WEIGHT,
    body_weight: float = DEFAULT_BODY_WEIGHT,
) -> Schema:
    """
    Create the schema used for documentation pages.

    Fields:
    - title: Page title (boost=10.0 by default)
    - description: Front matter description (boost=2.0)
    - body: Page text (boost=1.0)
    """
    return Schema(
        fields=(
            TextField(TITLE_FIELD, boost=title_weight),
            TextField(DESCRIPTION_FIELD, boost=description_weight),
            TextField(BODY_FIELD, boost=body_weight),
        )
    )
