"""Migration unit writing.

A migration unit is a directory named by a sortable tag that holds the
post-change schema snapshot (with the delta classification in `_meta`) and
the statement file. Units are immutable once written; the writer only ever
creates new directories.

Both files are first written into a hidden staging directory which is then
renamed into place, so a unit directory appears complete or not at all. An
interrupted write leaves the staging directory behind, and the next run
refuses to continue until an operator has looked at it.
"""

from __future__ import annotations

import json
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

from schemashift.core.errors import IOFailure, TagCollision
from schemashift.core.journal import write_manifest
from schemashift.core.snapshot import SchemaSnapshot, SnapshotMeta, dump_snapshot
from schemashift.core.store import (
    SNAPSHOT_FILE,
    STAGING_PREFIX,
    STATEMENTS_FILE,
    SUFFIX_RE,
    UnitDir,
    format_prefix,
    scan_units,
)
from schemashift.core.words import generate_suffix

logger = logging.getLogger(__name__)

BREAKPOINT = "--> statement-breakpoint\n"
CUSTOM_PLACEHOLDER = "-- Custom SQL migration file, put your code below! --"
INTROSPECTED_HEADER = (
    "-- Current sql file was generated after introspecting the database\n"
    "-- If you want to run this migration please uncomment this code before "
    "executing migrations\n"
)


class UnitKind(str, Enum):
    """
    Kind of migration unit.

    Values:
        NORMAL: Generated statements for an accepted delta.
        INTROSPECTED: Baseline of an existing database, commented out.
        CUSTOM_EMPTY: Placeholder for hand-written statements.
    """

    NORMAL = "normal"
    INTROSPECTED = "introspected"
    CUSTOM_EMPTY = "custom-empty"


class WriteStatus(str, Enum):
    WRITTEN = "written"
    NO_CHANGES = "no-changes"


@dataclass(frozen=True)
class WriteOptions:
    """
    Options for writing one unit.

    Attributes:
        name: Explicit tag suffix; a random `adjective_noun` pair otherwise.
        breakpoints: Join statements with breakpoint markers instead of
            plain newlines.
        bundle: Regenerate the manifest after writing.
        kind: Kind of unit to produce.
        manifest_format: Manifest flavour used when bundling (`js` or `json`).
    """

    name: str | None = None
    breakpoints: bool = True
    bundle: bool = False
    kind: UnitKind = UnitKind.NORMAL
    manifest_format: str = "js"


@dataclass(frozen=True)
class MigrationUnit:
    """A written, immutable migration unit."""

    tag: str
    sequence_timestamp: str
    snapshot: dict
    statements: tuple[str, ...]
    kind: UnitKind
    sql: str
    path: Path

    @property
    def statements_path(self) -> Path:
        return self.path / STATEMENTS_FILE


@dataclass(frozen=True)
class WriteOutcome:
    """Result of a write: the unit, or a no-op when nothing changed."""

    status: WriteStatus
    unit: MigrationUnit | None = None
    manifest_path: Path | None = None

    @property
    def written(self) -> bool:
        return self.status == WriteStatus.WRITTEN


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def join_statements(statements: Sequence[str], breakpoints: bool) -> str:
    """Join statements with a newline or with the breakpoint marker."""
    return (BREAKPOINT if breakpoints else "\n").join(statements)


def render_sql(statements: Sequence[str], kind: UnitKind, breakpoints: bool) -> str:
    """Return the statement file content for a unit of the given kind."""
    if kind == UnitKind.CUSTOM_EMPTY:
        return CUSTOM_PLACEHOLDER
    sql = join_statements(statements, breakpoints)
    if kind == UnitKind.INTROSPECTED:
        return f"{INTROSPECTED_HEADER}/*\n{sql}\n*/"
    return sql


def next_prefix(units: Sequence[UnitDir], now: datetime) -> str:
    """
    Return the timestamp prefix for a new unit.

    The prefix is strictly greater than every existing one, so tag order
    stays equal to creation order even when two units are created within the
    same second or the clock went backwards.
    """
    moment = now.astimezone(timezone.utc).replace(microsecond=0)
    if units:
        last = max(u.tag.timestamp for u in units)
        if moment <= last:
            bumped = last + timedelta(seconds=1)
            logger.warning(
                "Timestamp %s is not after the latest unit %s, using %s",
                format_prefix(moment),
                format_prefix(last),
                format_prefix(bumped),
            )
            moment = bumped
    return format_prefix(moment)


def make_tag(prefix: str, name: str | None, rng: random.Random | None = None) -> str:
    """
    Build a tag from a prefix and an explicit or generated suffix.

    Raises:
        ValueError: If the explicit name is not a valid tag suffix.
    """
    suffix = name if name is not None else generate_suffix(rng)
    if not SUFFIX_RE.match(suffix):
        raise ValueError(
            f"Invalid migration name '{suffix}' "
            "(use letters, digits, '_' and '-', starting with a letter or digit)."
        )
    return f"{prefix}_{suffix}"


def write_unit(
    out_dir: Path,
    snapshot: SchemaSnapshot,
    statements: Sequence[str],
    options: WriteOptions = WriteOptions(),
    meta: SnapshotMeta | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
    rng: random.Random | None = None,
) -> WriteOutcome:
    """
    Persist one resolved delta as a migration unit.

    Args:
        out_dir: Unit store directory (created when missing).
        snapshot: Post-change schema snapshot to store.
        statements: Generated statements, in execution order.
        options: Naming, joining, bundling and kind options.
        meta: Delta classification stored as the snapshot's `_meta`.
        clock: Returns the current time; UTC now by default.
        rng: Random source for generated suffixes.

    Returns:
        A WRITTEN outcome with the unit, or NO_CHANGES when a normal unit
        would have no statements.

    Raises:
        PartialWriteInconsistency: If the store holds half-written units.
        UnparseableUnitTag: If the store holds a badly named directory.
        TagCollision: If the target directory already exists.
        IOFailure: If creating or writing files fails.
        ValueError: If the explicit name is invalid.
    """
    out_dir = Path(out_dir)
    units = scan_units(out_dir)

    if options.kind == UnitKind.NORMAL and not statements:
        manifest_path = None
        if options.bundle:
            # keep the manifest in sync when units were removed by hand
            manifest_path = write_manifest(out_dir, options.manifest_format)
        logger.info("No schema changes, nothing to migrate")
        return WriteOutcome(status=WriteStatus.NO_CHANGES, manifest_path=manifest_path)

    if options.kind == UnitKind.CUSTOM_EMPTY:
        statements = []

    prefix = next_prefix(units, (clock or _utcnow)())
    tag = make_tag(prefix, options.name, rng)
    target = out_dir / tag
    if target.exists():
        raise TagCollision(tag)

    sql = render_sql(statements, options.kind, options.breakpoints)
    payload = dump_snapshot(snapshot, meta)
    staging = out_dir / f"{STAGING_PREFIX}{tag}"

    try:
        staging.mkdir(parents=True)
        (staging / SNAPSHOT_FILE).write_text(
            json.dumps(payload, indent=2), encoding="utf-8"
        )
        (staging / STATEMENTS_FILE).write_text(sql, encoding="utf-8")
        staging.rename(target)
    except OSError as exc:
        raise IOFailure(f"Cannot write migration unit {tag}: {exc}") from exc

    logger.info("Migration unit %s written to %s", tag, target)
    unit = MigrationUnit(
        tag=tag,
        sequence_timestamp=prefix,
        snapshot=payload,
        statements=tuple(statements),
        kind=options.kind,
        sql=sql,
        path=target,
    )

    manifest_path = None
    if options.bundle:
        manifest_path = write_manifest(out_dir, options.manifest_format)
    return WriteOutcome(status=WriteStatus.WRITTEN, unit=unit, manifest_path=manifest_path)
