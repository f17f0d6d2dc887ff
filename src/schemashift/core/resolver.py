"""Delta resolution between two schema versions.

Entities that exist only in the new version ("new") and entities that exist
only in the old version ("missing") are ambiguous: a new table may really be
an old table under a different name or namespace. The functions here walk
the new entities in order and let a ResolutionOracle classify each one as a
creation or as a rename/move of a still-unconsumed missing entity.

Resolution is pure apart from the oracle calls: no state survives a call and
an abort from the oracle discards everything resolved so far.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

from schemashift.core.entities import (
    ColumnEntity,
    Delta,
    EntityKind,
    MovedEntity,
    NamedEntity,
    NamespacedEntity,
    RenameCandidate,
    T,
)
from schemashift.core.errors import ResolutionAborted, ValidationError
from schemashift.core.oracle import Abort, Create, Rename, ResolutionOracle
from schemashift.core.snapshot import (
    SchemaSnapshot,
    SnapshotMeta,
    column_entities,
    namespaced_entities,
    schema_entities,
)

logger = logging.getLogger(__name__)


def _pool(entities: Iterable[T], label: str) -> dict[T, None]:
    """Return an insertion-ordered set of entities, rejecting duplicates."""
    pool: dict[T, None] = {}
    for entity in entities:
        if entity in pool:
            raise ValidationError(f"Duplicate {label} entity: {entity.key}")
        pool[entity] = None
    return pool


def _resolve(
    new: Sequence[T],
    missing: Sequence[T],
    oracle: ResolutionOracle,
    *,
    track_moves: bool,
) -> Delta[T]:
    candidates = list(_pool(new, "new"))
    left = _pool(missing, "missing")

    if not candidates or not left:
        return Delta(created=list(new), deleted=list(missing))

    delta: Delta[T] = Delta()

    for candidate in candidates:
        decision = oracle.choose(candidate, list(left))

        if isinstance(decision, Abort):
            raise ResolutionAborted(
                f"Resolution aborted while resolving {candidate.kind.value} "
                f"'{candidate.key}'."
            )

        if isinstance(decision, Create):
            logger.debug("%s %s will be created", candidate.kind.value, candidate.key)
            delta.created.append(candidate)
            continue

        if not isinstance(decision, Rename):
            raise ValidationError(f"Unsupported oracle decision: {decision!r}")

        source = decision.source
        if source not in left:
            raise ValidationError(
                f"Oracle picked '{source.key}' for '{candidate.key}', "
                "but it is not an unconsumed candidate."
            )
        del left[source]

        logger.debug(
            "%s %s will be renamed/moved to %s",
            candidate.kind.value,
            source.key,
            candidate.key,
        )
        if source.name != candidate.name:
            delta.renamed.append(RenameCandidate(source=source, target=candidate))
        if track_moves and source.schema != candidate.schema:
            delta.moved.append(
                MovedEntity(
                    name=source.name,
                    schema_from=source.schema,
                    schema_to=candidate.schema,
                )
            )

    delta.deleted.extend(left)
    return delta


def resolve_named(
    new: Sequence[NamedEntity],
    missing: Sequence[NamedEntity],
    oracle: ResolutionOracle,
) -> Delta[NamedEntity]:
    """
    Resolve a namespace-free category (database schemas).

    Args:
        new: Entities only present in the new version, in prompt order.
        missing: Entities only present in the old version, in offer order.
        oracle: Decides creation vs rename for every new entity.

    Returns:
        The classified delta; `moved` is always empty.

    Raises:
        ResolutionAborted: If the oracle aborts.
        ValidationError: On duplicate input or an invalid oracle answer.
    """
    return _resolve(new, missing, oracle, track_moves=False)


def resolve_namespaced(
    new: Sequence[NamespacedEntity],
    missing: Sequence[NamespacedEntity],
    oracle: ResolutionOracle,
) -> Delta[NamespacedEntity]:
    """
    Resolve a namespaced category (tables, enums, sequences).

    A rename decision whose names differ lands in `renamed`; one whose
    namespaces differ lands in `moved`; a decision can produce both.
    """
    return _resolve(new, missing, oracle, track_moves=True)


def resolve_columns(
    new: Sequence[ColumnEntity],
    missing: Sequence[ColumnEntity],
    oracle: ResolutionOracle,
) -> Delta[ColumnEntity]:
    """Resolve the columns of one table, whose identity must already be settled."""
    return _resolve(new, missing, oracle, track_moves=False)


def _quote(*parts: str) -> str:
    return ".".join(f'"{p}"' for p in parts)


@dataclass
class SnapshotDiff:
    """
    Classified deltas of every category between two snapshots.

    Attributes:
        schemas: Namespace delta.
        enums: Enum delta.
        sequences: Sequence delta.
        tables: Table delta.
        columns: Column deltas keyed by the current `schema.table` key.
            Only tables present in both versions with column changes appear.
    """

    schemas: Delta[NamedEntity] = field(default_factory=Delta)
    enums: Delta[NamespacedEntity] = field(default_factory=Delta)
    sequences: Delta[NamespacedEntity] = field(default_factory=Delta)
    tables: Delta[NamespacedEntity] = field(default_factory=Delta)
    columns: dict[str, Delta[ColumnEntity]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return (
            self.schemas.is_empty
            and self.enums.is_empty
            and self.sequences.is_empty
            and self.tables.is_empty
            and all(d.is_empty for d in self.columns.values())
        )

    def table_mapping(self) -> dict[str, str]:
        """Return old `schema.table` keys mapped to their new keys."""
        mapping = {r.source.key: r.target.key for r in self.tables.renamed}
        for moved in self.tables.moved:
            mapping.setdefault(
                f"{moved.schema_from}.{moved.name}", f"{moved.schema_to}.{moved.name}"
            )
        return mapping

    def meta(self) -> SnapshotMeta:
        """Return the rename bookkeeping stored in the next snapshot."""
        schemas = {
            _quote(r.source.name): _quote(r.target.name) for r in self.schemas.renamed
        }
        tables = {
            _quote(*old.split(".", 1)): _quote(*new.split(".", 1))
            for old, new in self.table_mapping().items()
        }
        columns = {
            _quote(r.source.schema, r.source.table, r.source.name): _quote(
                r.target.schema, r.target.table, r.target.name
            )
            for delta in self.columns.values()
            for r in delta.renamed
        }
        return SnapshotMeta(schemas=schemas, tables=tables, columns=columns)


def _split(
    prev: Iterable[T], cur: Iterable[T]
) -> tuple[list[T], list[T], dict[str, T], dict[str, T]]:
    """Return (new, missing) plus keyed views of both sides."""
    prev_by_key = {e.key: e for e in prev}
    cur_by_key = {e.key: e for e in cur}
    new = [e for k, e in cur_by_key.items() if k not in prev_by_key]
    missing = [e for k, e in prev_by_key.items() if k not in cur_by_key]
    return new, missing, prev_by_key, cur_by_key


def _rename_namespaces(
    entities: Iterable[NamespacedEntity], renames: dict[str, str]
) -> list[NamespacedEntity]:
    return [replace(e, schema=renames.get(e.schema, e.schema)) for e in entities]


def diff_snapshots(
    prev: SchemaSnapshot,
    cur: SchemaSnapshot,
    oracle: ResolutionOracle,
) -> SnapshotDiff:
    """
    Resolve every category between two snapshots.

    Namespaces are resolved first and their renames applied to the previous
    version, so later categories compare entities under their post-rename
    namespace. Enums, sequences and tables follow; columns are resolved per
    table once the table's identity is known.

    Raises:
        ResolutionAborted: If the oracle aborts at any point.
        ValidationError: On malformed input or oracle answers.
    """
    diff = SnapshotDiff()

    new, missing, _, _ = _split(schema_entities(prev), schema_entities(cur))
    diff.schemas = resolve_named(new, missing, oracle)
    schema_renames = {r.source.name: r.target.name for r in diff.schemas.renamed}
    if schema_renames:
        logger.debug("Applying namespace renames %s", schema_renames)

    for section, kind in (
        ("enums", EntityKind.ENUM),
        ("sequences", EntityKind.SEQUENCE),
    ):
        old_entities = _rename_namespaces(
            namespaced_entities(getattr(prev, section), kind), schema_renames
        )
        new_entities = namespaced_entities(getattr(cur, section), kind)
        new, missing, _, _ = _split(old_entities, new_entities)
        setattr(diff, section, resolve_namespaced(new, missing, oracle))

    old_tables = _rename_namespaces(
        namespaced_entities(prev.tables, EntityKind.TABLE), schema_renames
    )
    new, missing, prev_tables, cur_tables = _split(
        old_tables, namespaced_entities(cur.tables, EntityKind.TABLE)
    )
    diff.tables = resolve_namespaced(new, missing, oracle)

    # old key (post namespace rename) -> original snapshot key
    origin = dict(zip((e.key for e in old_tables), prev.tables))
    mapping = diff.table_mapping()
    settled = {mapping.get(k, k): origin[k] for k in prev_tables}
    created = {e.key for e in diff.tables.created}

    for key, table in cur_tables.items():
        if key in created or key not in settled:
            continue
        old_columns = column_entities(
            prev.tables[settled[key]], name=table.name, schema=table.schema
        )
        new_columns = column_entities(cur.tables[key])
        new, missing, _, _ = _split(old_columns, new_columns)
        delta = resolve_columns(new, missing, oracle)
        if not delta.is_empty:
            diff.columns[key] = delta

    return diff
