"""Serialized schema snapshots.

A snapshot is the JSON form of one schema version, as produced by an external
schema loader and as stored inside every migration unit. This module
validates snapshots with pydantic, converts them into resolver entities and
prepares the snapshot that gets stored alongside a new unit.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemashift.core.entities import (
    ColumnEntity,
    EntityKind,
    NamedEntity,
    NamespacedEntity,
    normalize_schema,
)
from schemashift.core.errors import IOFailure, ValidationError

SNAPSHOT_VERSION = "1"
DEFAULT_DIALECT = "postgresql"
ROOT_SNAPSHOT_ID = "00000000-0000-0000-0000-000000000000"


class _Spec(BaseModel):
    """Base for snapshot parts; unknown attributes are kept for generators."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ColumnSpec(_Spec):
    name: str = Field(min_length=1)
    type: str = ""


class _NamespacedSpec(_Spec):
    name: str = Field(min_length=1)
    schema_: str = Field(default="", alias="schema")

    @property
    def key(self) -> str:
        return f"{normalize_schema(self.schema_)}.{self.name}"


class TableSpec(_NamespacedSpec):
    columns: dict[str, ColumnSpec] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _column_keys_match(self) -> TableSpec:
        for key, column in self.columns.items():
            if key != column.name:
                raise ValueError(
                    f"column key '{key}' does not match column name '{column.name}'"
                )
        return self


class EnumSpec(_NamespacedSpec):
    values: list[str] = Field(default_factory=list)


class SequenceSpec(_NamespacedSpec):
    pass


class SnapshotMeta(BaseModel):
    """
    Delta classification stored with a snapshot for future diffs.

    Keys and values are quoted identifiers: `"old"` for schemas,
    `"schema"."table"` for tables and `"schema"."table"."column"` for columns.
    """

    schemas: dict[str, str] = Field(default_factory=dict)
    tables: dict[str, str] = Field(default_factory=dict)
    columns: dict[str, str] = Field(default_factory=dict)


class SchemaSnapshot(BaseModel):
    """One validated schema version."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: str = SNAPSHOT_VERSION
    dialect: str = DEFAULT_DIALECT
    id: str = ROOT_SNAPSHOT_ID
    prev_id: str = Field(default=ROOT_SNAPSHOT_ID, alias="prevId")
    schemas: list[str] = Field(default_factory=list)
    enums: dict[str, EnumSpec] = Field(default_factory=dict)
    sequences: dict[str, SequenceSpec] = Field(default_factory=dict)
    tables: dict[str, TableSpec] = Field(default_factory=dict)
    meta: SnapshotMeta = Field(default_factory=SnapshotMeta, alias="_meta")

    @model_validator(mode="after")
    def _keys_match(self) -> SchemaSnapshot:
        if len(set(self.schemas)) != len(self.schemas):
            raise ValueError("duplicate entries in 'schemas'")
        for section in ("enums", "sequences", "tables"):
            for key, spec in getattr(self, section).items():
                if key != spec.key:
                    raise ValueError(
                        f"{section} key '{key}' does not match '{spec.key}'"
                    )
        return self


def parse_snapshot(data: Any, source: str = "<snapshot>") -> SchemaSnapshot:
    """
    Validate raw snapshot data.

    Raises:
        ValidationError: If the data does not describe a valid snapshot.
    """
    try:
        return SchemaSnapshot.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid snapshot {source}:\n{exc}") from exc


def load_snapshot(path: Path) -> SchemaSnapshot:
    """Read and validate a snapshot JSON file."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IOFailure(f"Cannot read snapshot {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Snapshot {path} is not valid JSON: {exc}") from exc
    return parse_snapshot(data, source=str(path))


def empty_snapshot(dialect: str = DEFAULT_DIALECT) -> SchemaSnapshot:
    """Return the snapshot of an empty database."""
    return SchemaSnapshot(dialect=dialect)


def chain_snapshot(cur: SchemaSnapshot, prev: SchemaSnapshot) -> SchemaSnapshot:
    """Return a copy of `cur` with a fresh id pointing back at `prev`."""
    return cur.model_copy(update={"id": str(uuid.uuid4()), "prev_id": prev.id})


def dump_snapshot(
    snapshot: SchemaSnapshot, meta: SnapshotMeta | None = None
) -> dict[str, Any]:
    """Return the JSON-ready form of a snapshot with `_meta` attached."""
    data = snapshot.model_dump(mode="json", by_alias=True)
    data["_meta"] = (meta or SnapshotMeta()).model_dump(mode="json")
    return data


def schema_entities(snapshot: SchemaSnapshot) -> list[NamedEntity]:
    return [NamedEntity(name, kind=EntityKind.SCHEMA) for name in snapshot.schemas]


def namespaced_entities(
    specs: Mapping[str, _NamespacedSpec], kind: EntityKind
) -> list[NamespacedEntity]:
    return [NamespacedEntity(s.name, s.schema_, kind=kind) for s in specs.values()]


def column_entities(
    table: TableSpec, *, name: str | None = None, schema: str | None = None
) -> list[ColumnEntity]:
    """
    Return the columns of a table as resolver entities.

    `name` and `schema` override the owning table identity, so columns of a
    renamed or moved table can be compared under the table's new identity.
    """
    table_name = name or table.name
    table_schema = schema or table.schema_
    return [
        ColumnEntity(c.name, table_name, table_schema) for c in table.columns.values()
    ]
