"""Core entity and delta models.

This module defines the schema-level objects tracked across two schema
versions (namespaces, tables, columns, enums, sequences) and the classified
delta produced by resolving them. The models are immutable and hashable so
they can key the resolver's candidate pool, and they are intentionally free
of prompt, filesystem or SQL concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

DEFAULT_SCHEMA = "public"


class EntityKind(str, Enum):
    """
    Category of a schema entity.

    Values:
        SCHEMA: A database-wide namespace.
        ENUM: An enumerated type living in a namespace.
        SEQUENCE: A sequence living in a namespace.
        TABLE: A table living in a namespace.
        COLUMN: A column of a table.
    """

    SCHEMA = "schema"
    ENUM = "enum"
    SEQUENCE = "sequence"
    TABLE = "table"
    COLUMN = "column"


def normalize_schema(schema: str | None) -> str:
    """Return the namespace name, falling back to the default namespace."""
    return schema or DEFAULT_SCHEMA


@dataclass(frozen=True)
class NamedEntity:
    """
    Entity identified by name only.

    Attributes:
        name: Entity name.
        kind: Entity category, used for display and bookkeeping.
    """

    name: str
    kind: EntityKind = field(default=EntityKind.SCHEMA, kw_only=True)

    @property
    def key(self) -> str:
        """Stable lookup key of the entity."""
        return self.name


@dataclass(frozen=True)
class NamespacedEntity(NamedEntity):
    """
    Entity identified by name plus owning namespace.

    An absent or empty namespace is normalized to the default namespace, so two
    entities are namespace-equal only when their normalized names match.
    """

    schema: str = DEFAULT_SCHEMA
    kind: EntityKind = field(default=EntityKind.TABLE, kw_only=True)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schema", normalize_schema(self.schema))

    @property
    def key(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True)
class ColumnEntity(NamedEntity):
    """
    Column of a table.

    Columns are resolved by name only; `table` and `schema` identify the owning
    table and are carried along so prompts can name it.
    """

    table: str = ""
    schema: str = DEFAULT_SCHEMA
    kind: EntityKind = field(default=EntityKind.COLUMN, kw_only=True)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schema", normalize_schema(self.schema))

    @property
    def key(self) -> str:
        return f"{self.schema}.{self.table}.{self.name}"

    @property
    def table_key(self) -> str:
        return f"{self.schema}.{self.table}"


T = TypeVar("T", bound=NamedEntity)


@dataclass(frozen=True)
class RenameCandidate(Generic[T]):
    """Proposed identity mapping from a missing (old) entity to a new one."""

    source: T
    target: T


@dataclass(frozen=True)
class MovedEntity:
    """Entity that kept its name but changed namespace."""

    name: str
    schema_from: str
    schema_to: str


@dataclass
class Delta(Generic[T]):
    """
    Classified difference between two entity sets of one category.

    Attributes:
        created: Entities that only exist in the new version.
        deleted: Entities that only exist in the old version.
        renamed: Old/new pairs whose names differ.
        moved: Entities whose namespace changed (namespaced categories only).
    """

    created: list[T] = field(default_factory=list)
    deleted: list[T] = field(default_factory=list)
    renamed: list[RenameCandidate[T]] = field(default_factory=list)
    moved: list[MovedEntity] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.deleted or self.renamed or self.moved)
