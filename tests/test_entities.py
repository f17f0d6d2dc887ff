import pytest

from schemashift.core.entities import (
    DEFAULT_SCHEMA,
    ColumnEntity,
    Delta,
    EntityKind,
    NamedEntity,
    NamespacedEntity,
)


@pytest.mark.parametrize("schema", ["", None])
def test_namespaced_entity_defaults_empty_schema(schema):
    entity = NamespacedEntity("users", schema)

    assert entity.schema == DEFAULT_SCHEMA
    assert entity == NamespacedEntity("users")


def test_namespaced_entity_key_and_kind():
    entity = NamespacedEntity("mood", "auth", kind=EntityKind.ENUM)

    assert entity.key == "auth.mood"
    assert entity.kind is EntityKind.ENUM
    assert NamespacedEntity("users").kind is EntityKind.TABLE


def test_namespace_equality_is_exact_after_normalization():
    assert NamespacedEntity("users", "Auth") != NamespacedEntity("users", "auth")


def test_column_entity_key_includes_table():
    column = ColumnEntity("email", "users", "")

    assert column.key == "public.users.email"
    assert column.table_key == "public.users"
    assert column.kind is EntityKind.COLUMN


def test_named_entity_is_hashable():
    pool = {NamedEntity("auth"): None, NamedEntity("billing"): None}

    assert NamedEntity("auth") in pool


def test_delta_is_empty():
    assert Delta().is_empty is True
    assert Delta(created=[NamedEntity("auth")]).is_empty is False
