from __future__ import annotations

from enum import StrEnum
from typing import Literal

ActionKindName = Literal[
    "acceleration",
    "banana",
    "shell",
]

# Order of the per-kind arrays (`costs`, `actions_sold`) in log entries.
ACTION_KINDS: tuple[ActionKindName, ...] = ("acceleration", "banana", "shell")

ErrorCode = Literal["MAX_TURNS_REACHED"]


class RaceStatus(StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"
    DONE = "done"
