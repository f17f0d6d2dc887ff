"""Migration generation pipeline.

Wires the pieces together: load the current snapshot and the latest stored
one, resolve the delta through an oracle, let the statement generator turn it
into statements and hand everything to the writer. Kept free of prompts and
console output so it can run from the CLI, from automation or from tests.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from schemashift.core.config import GenerateConfig
from schemashift.core.errors import ValidationError
from schemashift.core.oracle import MappingOracle, ResolutionOracle
from schemashift.core.resolver import SnapshotDiff, diff_snapshots
from schemashift.core.snapshot import (
    SchemaSnapshot,
    chain_snapshot,
    empty_snapshot,
    load_snapshot,
)
from schemashift.core.statements import StatementGenerator
from schemashift.core.store import latest_snapshot, scan_units
from schemashift.core.writer import UnitKind, WriteOutcome, write_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Resolved diff (None for custom units) and the write outcome."""

    diff: SnapshotDiff | None
    outcome: WriteOutcome


def _load_current(config: GenerateConfig) -> SchemaSnapshot:
    if config.schema is None:
        raise ValidationError("No schema snapshot given (use --schema).")
    return load_snapshot(config.schema)


def generate_migration(
    config: GenerateConfig,
    oracle: ResolutionOracle,
    generator: StatementGenerator | None,
    *,
    clock: Callable[[], datetime] | None = None,
    rng: random.Random | None = None,
) -> GenerationResult:
    """
    Generate the next migration unit of a store.

    With `config.custom` an empty, hand-editable unit is written that carries
    the previous snapshot forward, and neither the oracle nor the generator
    is consulted.

    Raises:
        ResolutionAborted: If the oracle aborts; nothing is written.
        ValidationError: On invalid snapshots or a missing generator.
        PartialWriteInconsistency: If the store holds half-written units.
    """
    if config.custom:
        prev = latest_snapshot(config.out, config.dialect)
        outcome = write_unit(
            config.out,
            chain_snapshot(prev, prev),
            [],
            config.write_options(),
            clock=clock,
            rng=rng,
        )
        return GenerationResult(diff=None, outcome=outcome)

    if generator is None:
        raise ValidationError("No statement generator configured.")

    cur = _load_current(config)
    if config.dialect is not None and cur.dialect != config.dialect:
        raise ValidationError(
            f"Schema snapshot is for '{cur.dialect}', not '{config.dialect}'."
        )
    prev = latest_snapshot(config.out, cur.dialect)

    diff = diff_snapshots(prev, cur, oracle)
    statements = list(generator(diff, prev, cur))
    logger.debug("Generator produced %d statement(s)", len(statements))

    outcome = write_unit(
        config.out,
        chain_snapshot(cur, prev),
        statements,
        config.write_options(),
        diff.meta(),
        clock=clock,
        rng=rng,
    )
    return GenerationResult(diff=diff, outcome=outcome)


def introspect_migration(
    config: GenerateConfig,
    generator: StatementGenerator,
    *,
    clock: Callable[[], datetime] | None = None,
    rng: random.Random | None = None,
) -> GenerationResult:
    """
    Write the baseline unit of an existing database.

    The snapshot is diffed against an empty schema, so every entity is a
    creation and no decisions are needed. The statements are stored
    commented out because the database already contains them.

    Raises:
        ValidationError: If the store already holds units.
    """
    if scan_units(config.out):
        raise ValidationError(
            f"{config.out} already contains migrations; introspect needs an empty folder."
        )

    cur = _load_current(config)
    prev = empty_snapshot(cur.dialect)
    # nothing is missing from an empty schema, so the oracle is never asked
    diff = diff_snapshots(prev, cur, MappingOracle({}))
    statements = list(generator(diff, prev, cur))

    outcome = write_unit(
        config.out,
        chain_snapshot(cur, prev),
        statements,
        config.write_options(UnitKind.INTROSPECTED),
        diff.meta(),
        clock=clock,
        rng=rng,
    )
    return GenerationResult(diff=diff, outcome=outcome)
