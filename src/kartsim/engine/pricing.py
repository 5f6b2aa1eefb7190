"""
Bonding-curve pricing for power-ups.

Every action kind follows its own curve: the price of the next unit decays
geometrically with the turn number and grows geometrically with the number of
units already sold. A curve is calibrated by the price it should have when the
market sells exactly `sell_rate_per_turn` units per turn.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import msgspec

from kartsim.core.errors import ConfigError
from kartsim.core.types import ACTION_KINDS

if TYPE_CHECKING:
    from kartsim.core.state import SalesCounters
    from kartsim.core.types import ActionKindName

# Prices are integer currency; anything beyond this saturates.
MAX_PRICE = 2**128 - 1


def compute_action_price(
    target_price: float,
    decay_rate: float,
    turn_number: int,
    units_already_sold: int,
    sell_rate_per_turn: float,
) -> float:
    """
    Price of the next unit before truncation.

    Returns `math.inf` when the curve overflows a float, so callers never see
    an OverflowError for heavily oversold kinds.
    """
    intermediate = (turn_number - 1) - (units_already_sold + 1) / sell_rate_per_turn
    try:
        multiplier = math.exp(math.log(1 - decay_rate) * intermediate)
    except OverflowError:
        return math.inf
    return target_price * multiplier


def to_currency(price: float) -> int:
    if math.isnan(price) or price >= MAX_PRICE:
        return MAX_PRICE
    return int(price)


class PriceCurve(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    target_price: float
    decay_rate: float
    sell_rate_per_turn: float

    def __post_init__(self) -> None:
        if self.target_price < 0:
            msg = f"target_price must be non-negative, got {self.target_price}"
            raise ConfigError(msg)
        if not 0 <= self.decay_rate < 1:
            msg = f"decay_rate must be in [0, 1), got {self.decay_rate}"
            raise ConfigError(msg)
        if self.sell_rate_per_turn <= 0:
            msg = f"sell_rate_per_turn must be positive, got {self.sell_rate_per_turn}"
            raise ConfigError(msg)

    def unit_price(self, turn_number: int, units_already_sold: int) -> int:
        return to_currency(
            compute_action_price(
                self.target_price,
                self.decay_rate,
                turn_number,
                units_already_sold,
                self.sell_rate_per_turn,
            ),
        )

    def quote(
        self,
        turn_number: int,
        units_already_sold: int,
        units: int,
        budget: int | None = None,
    ) -> int:
        """
        Total cost of buying `units` more units in one purchase.

        Each unit is priced against the running sold count, so later units in
        the same purchase cost at least as much as earlier ones. With a
        `budget`, summing stops as soon as the total exceeds it.
        """
        total = 0
        for i in range(units):
            total += self.unit_price(turn_number, units_already_sold + i)
            if budget is not None and total > budget:
                break
        return total


DEFAULT_ACCELERATION_CURVE = PriceCurve(
    target_price=10,
    decay_rate=0.33,
    sell_rate_per_turn=2,
)
DEFAULT_BANANA_CURVE = PriceCurve(
    target_price=200,
    decay_rate=0.33,
    sell_rate_per_turn=0.2,
)
DEFAULT_SHELL_CURVE = PriceCurve(
    target_price=200,
    decay_rate=0.33,
    sell_rate_per_turn=0.2,
)


class Market(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """The three price curves of a race."""

    acceleration: PriceCurve = DEFAULT_ACCELERATION_CURVE
    banana: PriceCurve = DEFAULT_BANANA_CURVE
    shell: PriceCurve = DEFAULT_SHELL_CURVE

    def curve(self, kind: ActionKindName) -> PriceCurve:
        match kind:
            case "acceleration":
                return self.acceleration
            case "banana":
                return self.banana
            case "shell":
                return self.shell

    def unit_price(self, kind: ActionKindName, turn_number: int, sold: int) -> int:
        return self.curve(kind).unit_price(turn_number, sold)

    def quote(
        self,
        kind: ActionKindName,
        turn_number: int,
        sold: int,
        units: int,
        budget: int | None = None,
    ) -> int:
        return self.curve(kind).quote(turn_number, sold, units, budget=budget)

    def prices(self, turn_number: int, sold: SalesCounters) -> tuple[int, ...]:
        """One-unit prices of every kind, in `ACTION_KINDS` order."""
        return tuple(
            self.unit_price(kind, turn_number, sold.get(kind)) for kind in ACTION_KINDS
        )
