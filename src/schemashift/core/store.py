"""Migration unit store.

The output directory holds one sub-directory per migration unit, named by the
unit's tag (`YYYYMMDDHHMMSS_suffix`). This module parses tags, lists units in
order, detects half-written units and loads the latest stored snapshot.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from schemashift.core.errors import (
    IOFailure,
    PartialWriteInconsistency,
    SchemaShiftError,
    UnparseableUnitTag,
    ValidationError,
)
from schemashift.core.snapshot import (
    DEFAULT_DIALECT,
    SchemaSnapshot,
    empty_snapshot,
    load_snapshot,
)

logger = logging.getLogger(__name__)

SNAPSHOT_FILE = "snapshot.json"
STATEMENTS_FILE = "migration.sql"
STAGING_PREFIX = ".staging-"
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

TAG_RE = re.compile(r"^(?P<prefix>\d{14})_(?P<suffix>[A-Za-z0-9][A-Za-z0-9_-]*)$")
SUFFIX_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class ParsedTag:
    """A tag split into its timestamp prefix and human-readable suffix."""

    prefix: str
    suffix: str
    timestamp: datetime

    @property
    def when_millis(self) -> int:
        return int(self.timestamp.timestamp()) * 1000


def format_prefix(moment: datetime) -> str:
    """Return the 14-digit UTC prefix for a moment in time."""
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_prefix(prefix: str) -> datetime:
    """Parse a 14-digit prefix into an aware UTC datetime."""
    if len(prefix) != 14 or not prefix.isdigit():
        raise ValueError(f"'{prefix}' is not a 14-digit timestamp")
    return datetime.strptime(prefix, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def parse_tag(tag: str) -> ParsedTag:
    """
    Split and validate a migration tag.

    Raises:
        UnparseableUnitTag: If the tag does not match `YYYYMMDDHHMMSS_suffix`
            or its prefix is not a real date-time.
    """
    match = TAG_RE.match(tag)
    if not match:
        raise UnparseableUnitTag(tag, "expected YYYYMMDDHHMMSS_suffix")
    try:
        timestamp = parse_prefix(match.group("prefix"))
    except ValueError as exc:
        raise UnparseableUnitTag(tag, str(exc)) from exc
    return ParsedTag(match.group("prefix"), match.group("suffix"), timestamp)


def tag_to_millis(tag: str) -> int:
    """Return the epoch milliseconds encoded in a tag's prefix."""
    return parse_tag(tag).when_millis


@dataclass(frozen=True)
class UnitDir:
    """A complete unit directory in the store."""

    tag: ParsedTag
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def snapshot_path(self) -> Path:
        return self.path / SNAPSHOT_FILE

    @property
    def statements_path(self) -> Path:
        return self.path / STATEMENTS_FILE


def _list_dirs(out_dir: Path) -> list[Path]:
    if not out_dir.exists():
        return []
    try:
        return sorted((p for p in out_dir.iterdir() if p.is_dir()), key=lambda p: p.name)
    except OSError as exc:
        raise IOFailure(f"Cannot list migration folder {out_dir}: {exc}") from exc


def _is_incomplete(path: Path) -> bool:
    return not (path / SNAPSHOT_FILE).is_file() or not (path / STATEMENTS_FILE).is_file()


def scan_units(out_dir: Path) -> list[UnitDir]:
    """
    List unit directories in tag order.

    Regular files (such as a generated manifest) and hidden directories are
    ignored. Staging leftovers and unit directories missing one of their two
    files are reported together.

    Raises:
        UnparseableUnitTag: On a directory whose name is not a valid tag.
        PartialWriteInconsistency: On staging leftovers or incomplete units.
        IOFailure: If the directory cannot be listed.
    """
    out_dir = Path(out_dir)
    units: list[UnitDir] = []
    broken: list[Path] = []

    for path in _list_dirs(out_dir):
        if path.name.startswith(STAGING_PREFIX):
            broken.append(path)
            continue
        if path.name.startswith("."):
            continue
        tag = parse_tag(path.name)
        if _is_incomplete(path):
            broken.append(path)
            continue
        units.append(UnitDir(tag=tag, path=path))

    if broken:
        raise PartialWriteInconsistency(broken)
    return units


def latest_snapshot(out_dir: Path, dialect: str | None = None) -> SchemaSnapshot:
    """
    Return the snapshot of the most recent unit, or an empty snapshot.

    With `dialect` set, the stored snapshot must belong to it; without it the
    store's own dialect is accepted and an empty store starts as
    `DEFAULT_DIALECT`.

    Raises:
        ValidationError: If the stored snapshot is invalid or belongs to
            another dialect.
    """
    units = scan_units(out_dir)
    if not units:
        logger.debug("No migration units in %s, starting from an empty schema", out_dir)
        return empty_snapshot(dialect or DEFAULT_DIALECT)

    last = units[-1]
    snapshot = load_snapshot(last.snapshot_path)
    if dialect is not None and snapshot.dialect != dialect:
        raise ValidationError(
            f"Unit {last.name} was generated for '{snapshot.dialect}', not '{dialect}'."
        )
    logger.debug("Previous snapshot loaded from %s", last.snapshot_path)
    return snapshot


@dataclass
class StoreReport:
    """Result of a full store integrity check."""

    units: list[str] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def check_store(out_dir: Path) -> StoreReport:
    """
    Check every entry of the store without stopping at the first problem.

    Reports invalid tags, staging leftovers, incomplete units, invalid
    snapshots, units sharing a timestamp prefix and units claiming the same
    parent snapshot (two branches generated from one state).
    """
    report = StoreReport()
    prefixes: Counter[str] = Counter()
    parents: dict[str, list[str]] = {}

    for path in _list_dirs(Path(out_dir)):
        name = path.name
        if name.startswith(STAGING_PREFIX):
            report.problems.append(f"{name}: interrupted write (staging directory)")
            continue
        if name.startswith("."):
            continue
        try:
            tag = parse_tag(name)
        except UnparseableUnitTag as exc:
            report.problems.append(str(exc))
            continue
        if _is_incomplete(path):
            report.problems.append(
                f"{name}: missing {SNAPSHOT_FILE} or {STATEMENTS_FILE}"
            )
            continue

        report.units.append(name)
        prefixes[tag.prefix] += 1
        try:
            snapshot = load_snapshot(path / SNAPSHOT_FILE)
        except SchemaShiftError as exc:
            report.problems.append(f"{name}: {exc}")
            continue
        parents.setdefault(snapshot.prev_id, []).append(name)

    for prefix, count in prefixes.items():
        if count > 1:
            report.problems.append(f"{count} units share the timestamp {prefix}")
    for parent, children in parents.items():
        if len(children) > 1:
            report.problems.append(
                f"units {', '.join(children)} all point to parent snapshot {parent}"
            )
    return report
