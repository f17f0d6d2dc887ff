"""Resolution oracle abstractions.

The resolver never decides on its own whether a new entity is a creation or
a rename of a missing one. It asks an oracle: an object with a single
`choose` method that returns one decision per candidate. The CLI supplies an
interactive oracle, automation can supply pre-answered decisions through
MappingOracle, and tests supply scripted doubles.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, Mapping, Protocol, Sequence, Union

from schemashift.core.entities import EntityKind, NamedEntity, T
from schemashift.core.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Create:
    """Decision: the candidate is a brand new entity."""


@dataclass(frozen=True)
class Rename(Generic[T]):
    """Decision: the candidate is `source` renamed and/or moved."""

    source: T


@dataclass(frozen=True)
class Abort:
    """Decision: stop the whole resolution."""


Decision = Union[Create, Rename, Abort]


class ResolutionOracle(Protocol):
    """Interface for disambiguating create-vs-rename decisions."""

    def choose(self, candidate: T, options: Sequence[T]) -> Decision:
        """
        Decide what the candidate entity is.

        Args:
            candidate: Entity present only in the new schema version.
            options: Still-unconsumed missing entities, in pool order.

        Returns:
            Create(), Rename(source) with `source` taken from `options`,
            or Abort().
        """
        ...


SECTIONS: Mapping[EntityKind, str] = {
    EntityKind.SCHEMA: "schemas",
    EntityKind.ENUM: "enums",
    EntityKind.SEQUENCE: "sequences",
    EntityKind.TABLE: "tables",
    EntityKind.COLUMN: "columns",
}


class MappingOracle:
    """
    Oracle answering from a pre-recorded mapping of decisions.

    The mapping is grouped per category section (`schemas`, `enums`,
    `sequences`, `tables`, `columns`) and maps the key of a new entity to the
    key of the missing entity it was renamed from, or to None for a
    creation. Candidates without an answer go to `fallback`; without a
    fallback the resolution is aborted.
    """

    def __init__(
        self,
        answers: Mapping[str, Mapping[str, str | None]],
        fallback: ResolutionOracle | None = None,
    ):
        unknown = sorted(set(answers) - set(SECTIONS.values()))
        if unknown:
            raise ValidationError(
                f"Unknown rename sections: {', '.join(unknown)} "
                f"(expected {', '.join(SECTIONS.values())})"
            )
        self.answers = {section: dict(items) for section, items in answers.items()}
        self.fallback = fallback

    @classmethod
    def from_file(
        cls, path: Path, fallback: ResolutionOracle | None = None
    ) -> MappingOracle:
        """
        Load answers from a JSON file of `{section: {new_key: old_key|null}}`.

        In the `columns` section the old column may be given by bare name.
        """
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ValidationError(f"Cannot read renames file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Renames file {path} is not valid JSON: {exc}") from exc

        if not isinstance(payload, dict) or not all(
            isinstance(items, dict)
            and all(v is None or isinstance(v, str) for v in items.values())
            for items in payload.values()
        ):
            raise ValidationError(
                f"Renames file {path} must map sections to {{new: old|null}} objects."
            )
        return cls(payload, fallback=fallback)

    def choose(self, candidate: NamedEntity, options: Sequence[NamedEntity]) -> Decision:
        section = self.answers.get(SECTIONS[candidate.kind], {})
        if candidate.key not in section:
            if self.fallback is None:
                logger.debug("No recorded decision for %s, aborting", candidate.key)
                return Abort()
            return self.fallback.choose(candidate, options)

        source_key = section[candidate.key]
        if source_key is None:
            return Create()

        for option in options:
            # columns may name their source by bare name, the table is implied
            if option.key == source_key or (
                candidate.kind == EntityKind.COLUMN and option.name == source_key
            ):
                return Rename(option)

        raise ValidationError(
            f"Recorded rename {source_key} -> {candidate.key} does not match "
            f"any missing {candidate.kind.value}."
        )
