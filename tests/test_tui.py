from schemashift.cli.tui import (
    _MAX_NAME_WIDTH,
    InteractiveOracle,
    _choices,
    _entity_label,
    _question,
    _truncate,
)
from schemashift.core.entities import ColumnEntity, NamedEntity, NamespacedEntity
from schemashift.core.oracle import Abort, Create, Rename


def test_choices_put_create_first_then_options_in_order():
    candidate = NamespacedEntity("users", "auth")
    options = [NamespacedEntity("people"), NamespacedEntity("members", "auth")]

    choices = _choices(candidate, options)

    assert [c.value for c in choices] == [
        Create(),
        Rename(NamespacedEntity("people")),
        Rename(NamespacedEntity("members", "auth")),
    ]
    assert choices[0].title.startswith("+ auth.users")
    assert "people › auth.users" in choices[1].title
    assert choices[1].title.endswith("rename/move table")


def test_choices_for_columns_never_offer_moves():
    choices = _choices(ColumnEntity("email", "users"), [ColumnEntity("mail", "users")])

    assert choices[1].title.endswith("rename column")


def test_question_names_kind_and_table():
    assert _question(NamedEntity("auth")) == (
        "Is auth schema created or renamed from another schema?"
    )
    assert "in users table" in _question(ColumnEntity("email", "users"))


def test_entity_label_hides_default_schema_and_truncates():
    long_name = "x" * (_MAX_NAME_WIDTH + 10)

    assert _entity_label(NamespacedEntity("users")) == "users"
    assert _entity_label(NamespacedEntity("users", "auth")) == "auth.users"
    assert _entity_label(NamedEntity(long_name)).endswith("...")
    assert len(_truncate(long_name, _MAX_NAME_WIDTH)) == _MAX_NAME_WIDTH


def test_interactive_oracle_returns_picked_decision():
    asked = []

    def select(message, choices):
        asked.append(message)
        return choices[1].value

    oracle = InteractiveOracle(select=select)

    decision = oracle.choose(NamespacedEntity("users"), [NamespacedEntity("people")])

    assert decision == Rename(NamespacedEntity("people"))
    assert asked == ["Is users table created or renamed/moved from another table?"]


def test_interactive_oracle_create():
    oracle = InteractiveOracle(select=lambda message, choices: choices[0].value)

    assert oracle.choose(NamedEntity("auth"), [NamedEntity("old")]) == Create()


def test_interactive_oracle_cancel_is_abort():
    oracle = InteractiveOracle(select=lambda message, choices: None)

    assert oracle.choose(NamedEntity("auth"), [NamedEntity("old")]) == Abort()
