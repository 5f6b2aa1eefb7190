"""Race configuration loaded from TOML using msgspec."""

from __future__ import annotations

from pathlib import Path

import msgspec

from kartsim.core.errors import ConfigError
from kartsim.core.state import (
    FINISH_DISTANCE,
    MAX_TURNS,
    PLAYERS_REQUIRED,
    STARTING_BALANCE,
    RaceRules,
)
from kartsim.engine.pricing import (
    DEFAULT_ACCELERATION_CURVE,
    DEFAULT_BANANA_CURVE,
    DEFAULT_SHELL_CURVE,
    Market,
    PriceCurve,
)

CURVE_FIELDS = frozenset({"acceleration", "banana", "shell"})


class RacerEntry(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """One competitor: a display name and the path of its control script."""

    name: str
    script: str


class RaceConfig(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """
    TOML-backed configuration for a race.

    Curve tables (`[acceleration]`, `[banana]`, `[shell]`) override the
    default bonding curves; `[[racers]]` entries name the competitors.
    """

    players_required: int = PLAYERS_REQUIRED
    finish_distance: int = FINISH_DISTANCE
    starting_balance: int = STARTING_BALANCE
    max_turns: int | None = MAX_TURNS
    acceleration: PriceCurve = DEFAULT_ACCELERATION_CURVE
    banana: PriceCurve = DEFAULT_BANANA_CURVE
    shell: PriceCurve = DEFAULT_SHELL_CURVE
    racers: tuple[RacerEntry, ...] = ()
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.players_required < 1:
            msg = f"players_required must be at least 1, got {self.players_required}"
            raise ConfigError(msg)
        if self.finish_distance < 1:
            msg = f"finish_distance must be positive, got {self.finish_distance}"
            raise ConfigError(msg)
        if self.starting_balance < 0:
            msg = f"starting_balance must be non-negative, got {self.starting_balance}"
            raise ConfigError(msg)
        if self.max_turns is not None and self.max_turns < 1:
            msg = f"max_turns must be positive, got {self.max_turns}"
            raise ConfigError(msg)

    @classmethod
    def from_toml(cls, path: str | Path) -> RaceConfig:
        """Load configuration from a TOML file path."""
        try:
            with Path(path).open("rb") as f:
                return msgspec.toml.decode(f.read(), type=cls)
        except OSError as e:
            msg = f"Cannot read config {path}: {e}"
            raise ConfigError(msg) from e
        except msgspec.DecodeError as e:
            msg = f"Invalid TOML config {path}: {e}"
            raise ConfigError(msg) from e

    @property
    def market(self) -> Market:
        return Market(
            acceleration=self.acceleration,
            banana=self.banana,
            shell=self.shell,
        )

    def to_rules(self) -> RaceRules:
        return RaceRules(
            players_required=self.players_required,
            finish_distance=self.finish_distance,
            starting_balance=self.starting_balance,
            max_turns=self.max_turns,
            market=self.market,
        )

    def with_overrides(self, overrides: dict[str, str | int | float]) -> RaceConfig:
        """
        Apply `key=value` style overrides.

        Top-level fields use their own name; curve parameters use a dotted
        key such as `banana.target_price`.
        """
        if not overrides:
            return self

        data = msgspec.to_builtins(self)
        for key, value in overrides.items():
            head, _, tail = key.partition(".")
            if tail:
                if head not in CURVE_FIELDS or tail not in data[head]:
                    msg = f"Unknown config key '{key}'"
                    raise ConfigError(msg)
                data[head][tail] = value
            else:
                if head not in data or head in CURVE_FIELDS or head == "racers":
                    msg = f"Unknown config key '{key}'"
                    raise ConfigError(msg)
                data[head] = value

        try:
            return msgspec.convert(data, type=RaceConfig)
        except msgspec.ValidationError as e:
            msg = f"Invalid override: {e}"
            raise ConfigError(msg) from e
