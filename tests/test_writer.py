import json
import random
from datetime import datetime, timezone
from pathlib import Path

import pytest

from schemashift.core.errors import IOFailure, PartialWriteInconsistency, TagCollision
from schemashift.core.snapshot import SnapshotMeta, empty_snapshot, parse_snapshot
from schemashift.core.writer import (
    BREAKPOINT,
    CUSTOM_PLACEHOLDER,
    INTROSPECTED_HEADER,
    UnitKind,
    WriteOptions,
    WriteStatus,
    render_sql,
    write_unit,
)

NOON = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _clock(moment=NOON):
    return lambda: moment


def _snapshot():
    return parse_snapshot(
        {"tables": {"public.users": {"name": "users", "columns": {"id": {"name": "id"}}}}}
    )


def test_no_statements_is_a_noop(tmp_path):
    out = tmp_path / "migrations"

    outcome = write_unit(out, _snapshot(), [], clock=_clock())

    assert outcome.status == WriteStatus.NO_CHANGES
    assert outcome.unit is None
    assert not out.exists()


def test_writes_snapshot_and_statements(tmp_path):
    meta = SnapshotMeta(tables={'"public"."people"': '"public"."users"'})

    outcome = write_unit(
        tmp_path,
        _snapshot(),
        ["CREATE TABLE a;", "CREATE TABLE b;"],
        WriteOptions(name="init"),
        meta,
        clock=_clock(),
    )

    unit = outcome.unit
    assert outcome.written
    assert unit.tag == "20240101120000_init"
    assert unit.sequence_timestamp == "20240101120000"
    assert unit.statements_path.read_text() == (
        "CREATE TABLE a;--> statement-breakpoint\nCREATE TABLE b;"
    )
    stored = json.loads((unit.path / "snapshot.json").read_text())
    assert stored["_meta"]["tables"] == {'"public"."people"': '"public"."users"'}
    assert stored["tables"]["public.users"]["columns"]["id"]["name"] == "id"
    assert [p.name for p in tmp_path.iterdir()] == ["20240101120000_init"]


@pytest.mark.parametrize(
    "kind, breakpoints, expected",
    [
        (UnitKind.NORMAL, True, f"A;{BREAKPOINT}B;"),
        (UnitKind.NORMAL, False, "A;\nB;"),
        (UnitKind.CUSTOM_EMPTY, True, CUSTOM_PLACEHOLDER),
        (UnitKind.INTROSPECTED, False, f"{INTROSPECTED_HEADER}/*\nA;\nB;\n*/"),
    ],
)
def test_render_sql(kind, breakpoints, expected):
    assert render_sql(["A;", "B;"], kind, breakpoints) == expected


def test_custom_empty_unit_is_written_without_statements(tmp_path):
    outcome = write_unit(
        tmp_path,
        _snapshot(),
        ["CREATE TABLE ignored;"],
        WriteOptions(name="manual", kind=UnitKind.CUSTOM_EMPTY),
        clock=_clock(),
    )

    assert outcome.unit.statements == ()
    assert outcome.unit.statements_path.read_text() == CUSTOM_PLACEHOLDER


def test_generated_name_is_adjective_noun(tmp_path):
    outcome = write_unit(
        tmp_path, _snapshot(), ["A;"], clock=_clock(), rng=random.Random(7)
    )

    prefix, adjective, noun = outcome.unit.tag.split("_")
    assert prefix == "20240101120000"
    assert adjective.isalpha() and noun.isalpha()


def test_same_second_units_keep_strict_order(tmp_path):
    first = write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="a"), clock=_clock())
    second = write_unit(tmp_path, _snapshot(), ["B;"], WriteOptions(name="b"), clock=_clock())

    assert first.unit.tag == "20240101120000_a"
    assert second.unit.tag == "20240101120001_b"


def test_clock_going_backwards_still_orders_after_latest(tmp_path):
    later = datetime(2024, 1, 1, 12, 0, 5, tzinfo=timezone.utc)
    write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="a"), clock=_clock(later))

    outcome = write_unit(tmp_path, _snapshot(), ["B;"], WriteOptions(name="b"), clock=_clock())

    assert outcome.unit.tag == "20240101120006_b"


def test_invalid_name_is_rejected(tmp_path):
    with pytest.raises(ValueError, match="Invalid migration name"):
        write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="bad name"), clock=_clock())


def test_staging_leftover_blocks_writes_and_is_kept(tmp_path):
    leftover = tmp_path / ".staging-20231231000000_half"
    leftover.mkdir()

    with pytest.raises(PartialWriteInconsistency, match="Inconsistent migration units"):
        write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="a"), clock=_clock())

    assert leftover.exists()
    assert not (tmp_path / "20240101120000_a").exists()


def test_existing_target_is_a_tag_collision(tmp_path):
    (tmp_path / "20240101120000_init").write_text("not a unit")

    with pytest.raises(TagCollision, match="20240101120000_init"):
        write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="init"), clock=_clock())


def test_bundle_writes_the_manifest(tmp_path):
    outcome = write_unit(
        tmp_path,
        _snapshot(),
        ["A;"],
        WriteOptions(name="init", bundle=True),
        clock=_clock(),
    )

    assert outcome.manifest_path == tmp_path / "migrations.js"
    assert "./20240101120000_init/migration.sql" in outcome.manifest_path.read_text()


def test_bundle_on_noop_regenerates_the_manifest(tmp_path):
    write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="init"), clock=_clock())

    outcome = write_unit(
        tmp_path,
        empty_snapshot(),
        [],
        WriteOptions(bundle=True, manifest_format="json"),
        clock=_clock(),
    )

    assert outcome.status == WriteStatus.NO_CHANGES
    journal = json.loads((tmp_path / "journal.json").read_text())
    assert journal["entries"] == [
        {"idx": 0, "when": 1704110400000, "tag": "20240101120000_init"}
    ]


def test_out_dir_that_is_a_file_is_an_io_failure(tmp_path):
    out = tmp_path / "migrations"
    out.write_text("not a folder")

    with pytest.raises(IOFailure):
        write_unit(out, _snapshot(), ["A;"], WriteOptions(name="a"), clock=_clock())

    assert out.is_file()


def test_failed_rename_is_an_io_failure_and_writes_no_unit(tmp_path, monkeypatch):
    def _fail(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "rename", _fail)

    with pytest.raises(IOFailure, match="disk full"):
        write_unit(tmp_path, _snapshot(), ["A;"], WriteOptions(name="a"), clock=_clock())

    assert not (tmp_path / "20240101120000_a").exists()
    assert (tmp_path / ".staging-20240101120000_a").is_dir()
