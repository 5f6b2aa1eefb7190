"""Per-turn snapshots and the final race report."""

from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec

from kartsim.core.actions import Action  # noqa: TC001 # msgspec needs this at runtime

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kartsim.core.state import Car, RaceState
    from kartsim.engine.pricing import Market


class CarSnapshot(msgspec.Struct, frozen=True):
    name: str
    balance: int
    speed: int
    position: int


class TurnLogEntry(msgspec.Struct, frozen=True):
    """
    State of the race right after a turn was resolved.

    `costs` and `actions_sold` follow the acceleration, banana, shell order.
    Turn 0 is the snapshot taken when the race starts.
    """

    turn: int
    current_car: int
    actions: tuple[Action, ...]
    bananas: tuple[int, ...]
    costs: tuple[int, ...]
    cars: tuple[CarSnapshot, ...]
    actions_sold: tuple[int, ...]
    script_error: str | None = None


class WinnerInfo(msgspec.Struct, frozen=True):
    id: int | None
    name: str | None


class RaceReport(msgspec.Struct, frozen=True):
    logs: tuple[TurnLogEntry, ...]
    winner: WinnerInfo


def snapshot_car(car: Car) -> CarSnapshot:
    return CarSnapshot(
        name=car.name,
        balance=car.balance,
        speed=car.speed,
        position=car.position,
    )


def snapshot_turn(
    state: RaceState,
    market: Market,
    *,
    turn: int,
    current_car: int,
    actions: Sequence[Action] = (),
    script_error: str | None = None,
) -> TurnLogEntry:
    return TurnLogEntry(
        turn=turn,
        current_car=current_car,
        actions=tuple(actions),
        bananas=tuple(state.bananas),
        costs=market.prices(state.turn, state.sold),
        cars=tuple(snapshot_car(car) for car in state.cars),
        actions_sold=state.sold.as_list(),
        script_error=script_error,
    )
