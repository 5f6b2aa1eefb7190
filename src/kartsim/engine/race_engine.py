from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kartsim.core.actions import describe
from kartsim.core.errors import NotReady, RegistrationClosed
from kartsim.core.state import LogContext, RaceRules, RaceState
from kartsim.core.types import RaceStatus
from kartsim.engine.logging import LOGGER_NAME, ContextFilter
from kartsim.engine.resolver import move_car, purchase
from kartsim.engine.turn_log import (
    RaceReport,
    WinnerInfo,
    snapshot_car,
    snapshot_turn,
)
from kartsim.scripting.messages import TurnRequest

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kartsim.core.actions import Action
    from kartsim.core.state import Car
    from kartsim.engine.resolver import Purchase
    from kartsim.scripting.host import ScriptHost
    from kartsim.scripting.messages import TurnResponse


@dataclass
class RaceEngine:
    host: ScriptHost
    rules: RaceRules = field(default_factory=RaceRules)
    seed: int | None = None
    verbose: bool = True
    state: RaceState = field(init=False)
    log_context: LogContext = field(init=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.seed is None:
            self.seed = random.getrandbits(63)
        self.state = RaceState(seed=self.seed)
        self.log_context = LogContext(engine_id=id(self) % 10_000)

        base = logging.getLogger(LOGGER_NAME)
        self._logger = base.getChild(f"engine.{id(self)}")
        if self.verbose:
            self._logger.addFilter(ContextFilter(self))

    # --- Setup ---
    def register(self, car: Car) -> int:
        """
        Add a car to the race. Returns its index.

        The car is taken as given; use `RaceRules.new_car` for one that starts
        with the configured `starting_balance`.
        """
        if self.state.status is not RaceStatus.WAITING:
            raise RegistrationClosed(car.name)

        self.state.cars.append(car)
        idx = len(self.state.cars) - 1
        self.log_info(f"Registered {self.car_repr(idx)}")

        if len(self.state.cars) == self.rules.players_required:
            self.state.status = RaceStatus.ACTIVE
            self._log_turn(turn=0, current_car=self.active_index)
            self.log_info(f"Race is ready with {len(self.state.cars)} cars")
        return idx

    # --- Main Loop ---
    def race(self) -> RaceReport:
        if self.state.status is not RaceStatus.ACTIVE:
            msg = f"Race cannot start while {self.state.status}"
            raise NotReady(msg)

        while self.state.status is RaceStatus.ACTIVE:
            self.run_turn()

        self._log_final_standings()
        return self.export_report()

    def run_turn(self) -> None:
        if self.state.status is not RaceStatus.ACTIVE:
            msg = f"Cannot play a turn while {self.state.status}"
            raise NotReady(msg)

        idx = self.active_index
        self.log_context.start_turn_log(self.state.turn, self.car_repr(idx))
        self.log_debug(f"=== START TURN {self.state.turn}: {self.car_repr(idx)} ===")

        # 1. Decision point
        response = self.host.invoke(self.state.cars[idx].script, self._build_request(idx))
        if response.failed:
            self.log_warning(f"!!! Script of {self.car_repr(idx)} failed: {response.error}")
            actions: list[Action] = []
        else:
            actions = self._apply_purchases(idx, response)

        # 2. Movement
        self._move_cars()

        # 3. Audit log
        self._log_turn(
            turn=self.state.turn,
            current_car=idx,
            actions=actions,
            script_error=response.error,
        )

        self.state.turn += 1
        self._check_turn_limit()

    # --- Turn steps ---
    def _build_request(self, idx: int) -> TurnRequest:
        return TurnRequest(
            turn=self.state.turn,
            active_index=idx,
            cars=tuple(snapshot_car(car) for car in self.state.cars),
            bananas=tuple(self.state.bananas),
            actions_sold=self.state.sold.as_list(),
            market=self.rules.market,
            seed=self.state.seed,
            # Shallow copy of frozen entries: one reference per past turn, no
            # entry is duplicated.
            logs=tuple(self.state.logs),
        )

    def _apply_purchases(self, idx: int, response: TurnResponse) -> list[Action]:
        accepted: list[Action] = []
        for requested in response.purchases:
            result = purchase(self.state, self.rules.market, idx, requested)
            if result is None:
                self.log_warning(
                    f"!!! Replayed purchase {describe(requested)} rejected for {self.car_repr(idx)}",
                )
                continue
            self._log_purchase(idx, result)
            accepted.append(result.action)
        return accepted

    def _move_cars(self) -> None:
        for idx, car in enumerate(self.state.cars):
            start = car.position
            collision = move_car(self.state, idx)
            if collision is not None:
                self.log_info(
                    f"Collision: {self.car_repr(idx)} {start}->{collision.banana} hits Banana",
                )
            elif car.position != start:
                self.log_debug(f"Move: {self.car_repr(idx)} {start}->{car.position}")

            # Later cars still move this turn; the first finisher in order wins.
            if car.position >= self.rules.finish_distance and self.state.winner is None:
                self.state.winner = idx
                self.state.status = RaceStatus.DONE
                self.log_info(f"FINISH: {self.car_repr(idx)} crosses {self.rules.finish_distance}")

    def _check_turn_limit(self) -> None:
        max_turns = self.rules.max_turns
        if (
            self.state.status is RaceStatus.ACTIVE
            and max_turns is not None
            and self.state.turn > max_turns
        ):
            self.state.status = RaceStatus.DONE
            self.state.error_code = "MAX_TURNS_REACHED"
            self.log_warning(f"!!! Race abandoned: exceeded {max_turns} turns")

    def _log_turn(
        self,
        *,
        turn: int,
        current_car: int,
        actions: Sequence[Action] = (),
        script_error: str | None = None,
    ) -> None:
        self.state.logs.append(
            snapshot_turn(
                self.state,
                self.rules.market,
                turn=turn,
                current_car=current_car,
                actions=actions,
                script_error=script_error,
            ),
        )

    # --- Report ---
    def export_report(self) -> RaceReport:
        if self.state.status is not RaceStatus.DONE:
            msg = "Report is only available once the race is done"
            raise NotReady(msg)

        winner = self.state.winner
        return RaceReport(
            logs=tuple(self.state.logs),
            winner=WinnerInfo(
                id=winner,
                name=self.state.cars[winner].name if winner is not None else None,
            ),
        )

    def _log_final_standings(self) -> None:
        if not self.verbose:
            return
        self.log_info("=== FINAL STANDINGS ===")
        ranked = sorted(
            enumerate(self.state.cars),
            key=lambda item: item[1].position,
            reverse=True,
        )
        for idx, car in ranked:
            status = "Winner" if idx == self.state.winner else ""
            self.log_info(
                f"{self.car_repr(idx):<12} Pos: {car.position:<5} Speed: {car.speed:<4} Balance: {car.balance:<7} {status}",
            )

    # -- Getters for convenience --
    @property
    def active_index(self) -> int:
        return self.state.active_index

    @property
    def status(self) -> RaceStatus:
        return self.state.status

    @property
    def winner(self) -> int | None:
        return self.state.winner

    def get_car(self, idx: int) -> Car:
        return self.state.cars[idx]

    def car_repr(self, idx: int) -> str:
        return f"{idx}:{self.state.cars[idx].name}"

    # -- Logging --
    def _log_purchase(self, idx: int, result: Purchase) -> None:
        self.log_info(f"{self.car_repr(idx)} buys {describe(result.action)} for {result.cost}")
        for outcome in result.shell_outcomes:
            match outcome.effect:
                case "intercepted":
                    self.log_info(f"Shell stopped by Banana at {outcome.target}")
                case "hit":
                    if outcome.target is not None:
                        self.log_info(f"Shell hits {self.car_repr(outcome.target)}")
                case "miss":
                    self.log_info("Shell finds no car ahead")

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        if not self.verbose:
            return
        self._logger.log(level, msg, *args, **kwargs)

    def log_debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def log_info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def log_warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)
