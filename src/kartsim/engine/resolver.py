"""
Purchase resolution and movement against bananas.

Everything here works on a bare `RaceState` so the same rules run on the live
race and on the working copy a script sees through its bridge.
"""

from __future__ import annotations

import bisect
from typing import TYPE_CHECKING, Literal, NamedTuple

from kartsim.core.actions import Acceleration, Action, Banana, Shell

if TYPE_CHECKING:
    from kartsim.core.state import Car, RaceState
    from kartsim.engine.pricing import Market

ShellEffect = Literal["intercepted", "hit", "miss"]


class ShellOutcome(NamedTuple):
    effect: ShellEffect
    # Banana position for "intercepted", car index for "hit".
    target: int | None = None


class Purchase(NamedTuple):
    action: Action
    cost: int
    shell_outcomes: tuple[ShellOutcome, ...] = ()


class Collision(NamedTuple):
    car_idx: int
    start: int
    banana: int


def valid_units(units: object) -> bool:
    """Whether `units` is a positive whole number of units (bools excluded)."""
    return isinstance(units, int) and not isinstance(units, bool) and units > 0


def _charge(car: Car, cost: int) -> bool:
    if car.balance < cost:
        return False
    car.balance -= cost
    return True


def buy_acceleration(
    state: RaceState,
    market: Market,
    car_idx: int,
    amount: int,
) -> Purchase | None:
    if not valid_units(amount):
        return None
    car = state.cars[car_idx]
    cost = market.quote(
        "acceleration",
        state.turn,
        state.sold.acceleration,
        amount,
        budget=car.balance,
    )
    if not _charge(car, cost):
        return None
    state.sold.record("acceleration", amount)
    car.speed += amount
    return Purchase(Acceleration(amount), cost)


def buy_banana(state: RaceState, market: Market, car_idx: int) -> Purchase | None:
    car = state.cars[car_idx]
    if has_banana_at(state, car.position):
        return None
    cost = market.unit_price("banana", state.turn, state.sold.banana)
    if not _charge(car, cost):
        return None
    state.sold.record("banana", 1)
    bisect.insort(state.bananas, car.position)
    return Purchase(Banana(car_idx), cost)


def buy_shell(
    state: RaceState,
    market: Market,
    car_idx: int,
    count: int,
) -> Purchase | None:
    if not valid_units(count):
        return None
    car = state.cars[car_idx]
    cost = market.quote(
        "shell",
        state.turn,
        state.sold.shell,
        count,
        budget=car.balance,
    )
    if not _charge(car, cost):
        return None
    state.sold.record("shell", count)
    outcomes = tuple(fire_shell(state, car_idx) for _ in range(count))
    return Purchase(Shell(count), cost, outcomes)


def purchase(
    state: RaceState,
    market: Market,
    car_idx: int,
    action: Action,
) -> Purchase | None:
    """Apply one purchase for `car_idx`. Returns None when it is rejected."""
    match action:
        case Acceleration(amount=amount):
            return buy_acceleration(state, market, car_idx, amount)
        case Banana():
            return buy_banana(state, market, car_idx)
        case Shell(count=count):
            return buy_shell(state, market, car_idx, count)


def has_banana_at(state: RaceState, position: int) -> bool:
    i = bisect.bisect_left(state.bananas, position)
    return i < len(state.bananas) and state.bananas[i] == position


def cars_in_front(state: RaceState, car_idx: int) -> list[int]:
    """Indices of the other cars at or ahead of `car_idx`, nearest first."""
    origin = state.cars[car_idx].position
    ahead = [
        idx
        for idx, other in enumerate(state.cars)
        if idx != car_idx and other.position >= origin
    ]
    # sort is stable, so ties keep registration order
    return sorted(ahead, key=lambda idx: state.cars[idx].position)


def fire_shell(state: RaceState, car_idx: int) -> ShellOutcome:
    """Resolve a single shell fired by `car_idx`."""
    front = cars_in_front(state, car_idx)
    if not front:
        return ShellOutcome("miss")

    target_idx = front[0]
    origin = state.cars[car_idx].position
    target_pos = state.cars[target_idx].position

    i = bisect.bisect_right(state.bananas, origin)
    if i < len(state.bananas) and state.bananas[i] <= target_pos:
        return ShellOutcome("intercepted", state.bananas.pop(i))

    state.cars[target_idx].speed = 0
    return ShellOutcome("hit", target_idx)


def move_car(state: RaceState, car_idx: int) -> Collision | None:
    """
    Advance one car by its speed.

    The first banana in `(start, start + speed]` stops the car on its tile,
    zeroes its speed and is consumed.
    """
    car = state.cars[car_idx]
    start = car.position
    end = start + car.speed

    i = bisect.bisect_right(state.bananas, start)
    if i < len(state.bananas) and state.bananas[i] <= end:
        banana = state.bananas.pop(i)
        car.position = banana
        car.speed = 0
        return Collision(car_idx, start, banana)

    car.position = end
    return None
