"""Core race execution logic shared by the CLI commands."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from kartsim.core.errors import ConfigError
from kartsim.engine.race_engine import RaceEngine

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from kartsim.core.types import ErrorCode
    from kartsim.engine.turn_log import RaceReport
    from kartsim.scripting.host import ScriptHost
    from kartsim.simulation.config import RaceConfig, RacerEntry


class Competitor(NamedTuple):
    name: str
    source: str


@dataclass(slots=True)
class RaceResult:
    """Result of a single race."""

    seed: int
    report: RaceReport
    turn_count: int
    execution_time_ms: float
    error_code: ErrorCode | None

    @property
    def winner_name(self) -> str | None:
        return self.report.winner.name


@dataclass(slots=True)
class BatchSummary:
    races: int = 0
    abandoned: int = 0
    wins: Counter[str] = field(default_factory=Counter)

    def add(self, result: RaceResult) -> None:
        self.races += 1
        if result.winner_name is None:
            self.abandoned += 1
        else:
            self.wins[result.winner_name] += 1


def load_roster(
    entries: Iterable[RacerEntry],
    base_dir: Path | None = None,
) -> list[Competitor]:
    """Read every competitor's script; relative paths resolve against `base_dir`."""
    roster: list[Competitor] = []
    for entry in entries:
        path = Path(entry.script)
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            msg = f"Cannot read script for {entry.name!r} at {path}: {e}"
            raise ConfigError(msg) from e
        roster.append(Competitor(entry.name, source))
    return roster


def build_engine(
    config: RaceConfig,
    roster: Sequence[Competitor],
    host: ScriptHost,
    seed: int | None = None,
    *,
    verbose: bool = True,
) -> RaceEngine:
    if len(roster) != config.players_required:
        msg = f"Race needs {config.players_required} competitors, got {len(roster)}"
        raise ConfigError(msg)

    rules = config.to_rules()
    engine = RaceEngine(
        host=host,
        rules=rules,
        seed=seed if seed is not None else config.seed,
        verbose=verbose,
    )
    for competitor in roster:
        engine.register(
            rules.new_car(competitor.name, competitor.source),
        )
    return engine


def run_race(
    config: RaceConfig,
    roster: Sequence[Competitor],
    host: ScriptHost,
    seed: int | None = None,
    *,
    verbose: bool = True,
) -> RaceResult:
    """Run one race to completion."""
    start_time = time.perf_counter()

    engine = build_engine(config, roster, host, seed, verbose=verbose)
    report = engine.race()

    execution_time_ms = (time.perf_counter() - start_time) * 1000
    return RaceResult(
        seed=engine.state.seed,
        report=report,
        turn_count=engine.state.turn - 1,
        execution_time_ms=execution_time_ms,
        error_code=engine.state.error_code,
    )
