"""Messages exchanged between the race engine and a script host."""

from __future__ import annotations

import msgspec

from kartsim.core.actions import Action  # noqa: TC001 # msgspec needs these at runtime
from kartsim.engine.pricing import Market  # noqa: TC001
from kartsim.engine.turn_log import CarSnapshot, TurnLogEntry  # noqa: TC001


class TurnRequest(msgspec.Struct, frozen=True):
    """Read-only view of the race handed to the active car's script."""

    turn: int
    # 0-based; scripts see it 1-based through the bridge.
    active_index: int
    cars: tuple[CarSnapshot, ...]
    bananas: tuple[int, ...]
    actions_sold: tuple[int, ...]
    market: Market
    seed: int
    logs: tuple[TurnLogEntry, ...] = ()


class TurnResponse(msgspec.Struct, frozen=True):
    """Purchases a script made, in order, or the reason it failed."""

    purchases: tuple[Action, ...] = ()
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None
