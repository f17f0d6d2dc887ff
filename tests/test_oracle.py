import json

import pytest

from schemashift.core.entities import ColumnEntity, EntityKind, NamedEntity, NamespacedEntity
from schemashift.core.errors import ValidationError
from schemashift.core.oracle import Abort, Create, MappingOracle, Rename


def test_mapping_oracle_answers_rename_by_key():
    oracle = MappingOracle({"tables": {"auth.users": "public.people"}})
    options = [NamespacedEntity("orders"), NamespacedEntity("people")]

    decision = oracle.choose(NamespacedEntity("users", "auth"), options)

    assert decision == Rename(NamespacedEntity("people"))


def test_mapping_oracle_null_means_create():
    oracle = MappingOracle({"columns": {"public.users.email": None}})

    decision = oracle.choose(
        ColumnEntity("email", "users"), [ColumnEntity("mail", "users")]
    )

    assert decision == Create()


@pytest.mark.parametrize("source", ["mail", "public.users.mail"])
def test_mapping_oracle_column_source_by_name_or_key(source):
    oracle = MappingOracle({"columns": {"public.users.email": source}})
    options = [ColumnEntity("id", "users"), ColumnEntity("mail", "users")]

    decision = oracle.choose(ColumnEntity("email", "users"), options)

    assert decision == Rename(ColumnEntity("mail", "users"))


def test_mapping_oracle_bare_names_only_for_columns():
    oracle = MappingOracle({"tables": {"public.users": "people"}})

    with pytest.raises(ValidationError, match="people"):
        oracle.choose(NamespacedEntity("users"), [NamespacedEntity("people")])


def test_mapping_oracle_aborts_without_answer_or_fallback():
    oracle = MappingOracle({})

    assert oracle.choose(NamedEntity("auth"), [NamedEntity("old")]) == Abort()


def test_mapping_oracle_delegates_to_fallback():
    class _Fallback:
        def __init__(self):
            self.asked = []

        def choose(self, candidate, options):
            self.asked.append(candidate.key)
            return Create()

    fallback = _Fallback()
    oracle = MappingOracle({"schemas": {"other": None}}, fallback=fallback)

    assert oracle.choose(NamedEntity("auth"), [NamedEntity("old")]) == Create()
    assert fallback.asked == ["auth"]


def test_mapping_oracle_keeps_sections_apart():
    oracle = MappingOracle({"tables": {"public.mood": "public.feeling"}})
    enum = NamespacedEntity("mood", kind=EntityKind.ENUM)

    assert oracle.choose(enum, [NamespacedEntity("feeling", kind=EntityKind.ENUM)]) == Abort()


def test_mapping_oracle_rejects_unavailable_source():
    oracle = MappingOracle({"tables": {"public.users": "public.gone"}})

    with pytest.raises(ValidationError, match="public.gone"):
        oracle.choose(NamespacedEntity("users"), [NamespacedEntity("people")])


def test_mapping_oracle_rejects_unknown_sections():
    with pytest.raises(ValidationError, match="views"):
        MappingOracle({"views": {}})


def test_mapping_oracle_from_file(tmp_path):
    path = tmp_path / "renames.json"
    path.write_text(json.dumps({"schemas": {"identity": "auth"}}))

    oracle = MappingOracle.from_file(path)

    assert oracle.choose(NamedEntity("identity"), [NamedEntity("auth")]) == Rename(
        NamedEntity("auth")
    )


@pytest.mark.parametrize(
    "content",
    ["not json", json.dumps(["tables"]), json.dumps({"tables": {"a": 1}})],
)
def test_mapping_oracle_from_file_rejects_bad_content(tmp_path, content):
    path = tmp_path / "renames.json"
    path.write_text(content)

    with pytest.raises(ValidationError):
        MappingOracle.from_file(path)
