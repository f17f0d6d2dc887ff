import json

import pytest

from schemashift.core.entities import ColumnEntity, EntityKind, NamespacedEntity
from schemashift.core.errors import ValidationError
from schemashift.core.snapshot import (
    ROOT_SNAPSHOT_ID,
    SnapshotMeta,
    chain_snapshot,
    column_entities,
    dump_snapshot,
    empty_snapshot,
    load_snapshot,
    namespaced_entities,
    parse_snapshot,
)

VALID = {
    "dialect": "postgresql",
    "schemas": ["auth"],
    "enums": {"public.mood": {"name": "mood", "schema": "public", "values": ["ok"]}},
    "tables": {
        "auth.users": {
            "name": "users",
            "schema": "auth",
            "columns": {
                "id": {"name": "id", "type": "serial", "primaryKey": True},
            },
        }
    },
}


def test_parse_snapshot_accepts_valid_input():
    snapshot = parse_snapshot(VALID)

    assert snapshot.tables["auth.users"].columns["id"].type == "serial"
    assert snapshot.prev_id == ROOT_SNAPSHOT_ID


def test_parse_snapshot_normalizes_missing_schema_in_keys():
    snapshot = parse_snapshot({"tables": {"public.t": {"name": "t", "columns": {}}}})

    assert namespaced_entities(snapshot.tables, EntityKind.TABLE) == [
        NamespacedEntity("t")
    ]


@pytest.mark.parametrize(
    "data, message",
    [
        ({"tables": {"public.x": {"name": "users", "schema": "public"}}}, "public.users"),
        (
            {
                "tables": {
                    "public.t": {
                        "name": "t",
                        "columns": {"a": {"name": "b"}},
                    }
                }
            },
            "column key",
        ),
        ({"schemas": ["auth", "auth"]}, "duplicate"),
        ({"tables": {"public.t": {"schema": "public"}}}, "name"),
    ],
)
def test_parse_snapshot_rejects_invalid_input(data, message):
    with pytest.raises(ValidationError, match=message):
        parse_snapshot(data)


def test_load_snapshot_rejects_invalid_json(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text("{")

    with pytest.raises(ValidationError, match="not valid JSON"):
        load_snapshot(path)


def test_dump_snapshot_uses_aliases_and_keeps_extras():
    data = dict(VALID)
    data["tables"] = {
        "auth.users": {
            "name": "users",
            "schema": "auth",
            "columns": {"id": {"name": "id", "type": "serial", "primaryKey": True}},
        }
    }
    meta = SnapshotMeta(tables={'"auth"."people"': '"auth"."users"'})

    dumped = dump_snapshot(parse_snapshot(data), meta)

    assert dumped["prevId"] == ROOT_SNAPSHOT_ID
    assert dumped["tables"]["auth.users"]["schema"] == "auth"
    assert dumped["tables"]["auth.users"]["columns"]["id"]["primaryKey"] is True
    assert dumped["_meta"]["tables"] == {'"auth"."people"': '"auth"."users"'}
    assert json.loads(json.dumps(dumped)) == dumped


def test_dumped_snapshot_parses_back():
    dumped = dump_snapshot(parse_snapshot(VALID))

    again = parse_snapshot(dumped)

    assert again.tables.keys() == {"auth.users"}
    assert again.meta == SnapshotMeta()


def test_chain_snapshot_links_to_previous():
    prev = chain_snapshot(empty_snapshot(), empty_snapshot())
    cur = chain_snapshot(parse_snapshot(VALID), prev)

    assert cur.prev_id == prev.id
    assert cur.id not in (prev.id, ROOT_SNAPSHOT_ID)


def test_column_entities_can_take_the_new_table_identity():
    table = parse_snapshot(VALID).tables["auth.users"]

    assert column_entities(table) == [ColumnEntity("id", "users", "auth")]
    assert column_entities(table, name="members", schema="identity") == [
        ColumnEntity("id", "members", "identity")
    ]
