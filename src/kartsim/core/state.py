from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kartsim.core.types import ACTION_KINDS, RaceStatus
from kartsim.engine.pricing import Market

if TYPE_CHECKING:
    from kartsim.core.types import ActionKindName, ErrorCode
    from kartsim.engine.turn_log import TurnLogEntry

STARTING_BALANCE = 17500
PLAYERS_REQUIRED = 3
FINISH_DISTANCE = 1000
MAX_TURNS = 10_000


@dataclass(slots=True)
class RaceRules:
    players_required: int = PLAYERS_REQUIRED
    finish_distance: int = FINISH_DISTANCE
    starting_balance: int = STARTING_BALANCE
    # None disables the safety limit.
    max_turns: int | None = MAX_TURNS
    market: Market = field(default_factory=Market)

    def new_car(self, name: str, script: str = "") -> Car:
        """A car at the start line with this race's starting balance."""
        return Car(name=name, script=script, balance=self.starting_balance)


@dataclass(slots=True)
class Car:
    name: str
    # Opaque to the engine; handed to the script host as-is.
    script: str = field(default="", repr=False)
    balance: int = STARTING_BALANCE
    speed: int = 0
    position: int = 0


@dataclass(slots=True)
class SalesCounters:
    acceleration: int = 0
    banana: int = 0
    shell: int = 0

    @classmethod
    def from_list(cls, values: tuple[int, ...] | list[int]) -> SalesCounters:
        return cls(*values)

    def get(self, kind: ActionKindName) -> int:
        return getattr(self, kind)

    def record(self, kind: ActionKindName, units: int) -> None:
        setattr(self, kind, self.get(kind) + units)

    def as_list(self) -> tuple[int, ...]:
        return tuple(self.get(kind) for kind in ACTION_KINDS)


@dataclass(slots=True)
class RaceState:
    cars: list[Car] = field(default_factory=list)
    # Sorted ascending, no duplicates.
    bananas: list[int] = field(default_factory=list)
    sold: SalesCounters = field(default_factory=SalesCounters)
    logs: list[TurnLogEntry] = field(default_factory=list)
    turn: int = 1
    status: RaceStatus = RaceStatus.WAITING
    winner: int | None = None
    seed: int = 0
    error_code: ErrorCode | None = None

    @property
    def active_index(self) -> int:
        return self.turn % len(self.cars)


@dataclass(slots=True)
class LogContext:
    """Per-race logging state."""

    turn: int = 0
    turn_log_count: int = 0
    current_car_repr: str = "_"
    engine_id: int = 0

    def start_turn_log(self, turn: int, car_repr: str):
        self.turn = turn
        self.turn_log_count = 0
        self.current_car_repr = car_repr

    def inc_log_count(self):
        self.turn_log_count += 1
