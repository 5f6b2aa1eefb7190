"""
The object a control script talks to during its turn.

The bridge never touches the live race. It rebuilds a private working copy
from the `TurnRequest`, applies every purchase to that copy right away (so a
script sees its own effects) and records the accepted purchases for the
engine to replay.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from kartsim.core.actions import Acceleration, Banana, Shell
from kartsim.core.state import Car, RaceState, SalesCounters
from kartsim.core.types import RaceStatus
from kartsim.engine.pricing import MAX_PRICE
from kartsim.engine.resolver import purchase, valid_units
from kartsim.engine.turn_log import snapshot_car
from kartsim.scripting.messages import TurnResponse

if TYPE_CHECKING:
    from kartsim.core.actions import Action
    from kartsim.engine.turn_log import CarSnapshot, TurnLogEntry
    from kartsim.scripting.messages import TurnRequest


class ScriptBridge:
    def __init__(self, request: TurnRequest) -> None:
        self._request = request
        self._market = request.market
        self._state = RaceState(
            cars=[
                Car(
                    name=c.name,
                    balance=c.balance,
                    speed=c.speed,
                    position=c.position,
                )
                for c in request.cars
            ],
            bananas=list(request.bananas),
            sold=SalesCounters.from_list(request.actions_sold),
            turn=request.turn,
            status=RaceStatus.ACTIVE,
            seed=request.seed,
        )
        self._lock = threading.Lock()
        self._purchases: list[Action] = []
        self._closed = False

    # --- Read-only view ---
    @property
    def turns(self) -> int:
        return self._request.turn

    @property
    def index(self) -> int:
        """1-based index of the car whose turn it is."""
        return self._request.active_index + 1

    @property
    def seed(self) -> int:
        return self._request.seed

    @property
    def cars(self) -> list[CarSnapshot]:
        with self._lock:
            return [snapshot_car(car) for car in self._state.cars]

    @property
    def me(self) -> CarSnapshot:
        with self._lock:
            return snapshot_car(self._state.cars[self._request.active_index])

    @property
    def bananas(self) -> list[int]:
        with self._lock:
            return list(self._state.bananas)

    @property
    def logs(self) -> list[TurnLogEntry]:
        return list(self._request.logs)

    # --- Quotes ---
    def get_accelerate_cost(self, amount: int = 1) -> int:
        """Total price of `amount` units; `MAX_PRICE` for an amount that cannot be bought."""
        if not valid_units(amount):
            return MAX_PRICE
        with self._lock:
            return self._market.quote(
                "acceleration",
                self._state.turn,
                self._state.sold.acceleration,
                amount,
            )

    def get_banana_cost(self) -> int:
        with self._lock:
            return self._market.unit_price(
                "banana",
                self._state.turn,
                self._state.sold.banana,
            )

    def get_shell_cost(self, amount: int = 1) -> int:
        if not valid_units(amount):
            return MAX_PRICE
        with self._lock:
            return self._market.quote(
                "shell",
                self._state.turn,
                self._state.sold.shell,
                amount,
            )

    # --- Purchases (active car only) ---
    def buy_acceleration(self, amount: int = 1) -> bool:
        return self._buy(Acceleration(amount))

    def buy_banana(self) -> bool:
        return self._buy(Banana(self._request.active_index))

    def buy_shell(self, amount: int = 1) -> bool:
        return self._buy(Shell(amount))

    def _buy(self, action: Action) -> bool:
        with self._lock:
            if self._closed:
                return False
            result = purchase(
                self._state,
                self._market,
                self._request.active_index,
                action,
            )
            if result is None:
                return False
            self._purchases.append(result.action)
            return True

    # --- Host side ---
    @property
    def purchases(self) -> tuple[Action, ...]:
        with self._lock:
            return tuple(self._purchases)

    def close(self) -> None:
        """Reject any purchase attempted after the invocation ended."""
        with self._lock:
            self._closed = True

    def to_response(self, error: str | None = None) -> TurnResponse:
        if error is not None:
            return TurnResponse(error=error)
        return TurnResponse(purchases=self.purchases)
