from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import cappa

from kartsim.core.errors import ConfigError
from kartsim.simulation.config import RaceConfig, RacerEntry
from kartsim.simulation.runner import load_roster

if TYPE_CHECKING:
    from kartsim.simulation.runner import Competitor


def parse_rule_overrides(value: list[str]) -> dict[str, str | int | float]:
    """
    Parse a list of key=value strings into a dictionary.
    Supports basic type inference (int/float).
    """
    rules: dict[str, str | int | float] = {}
    for item in value:
        if "=" not in item:
            msg = f"Invalid rule format '{item}'. Expected 'key=value'."
            raise cappa.Exit(msg, code=1)

        k, v = item.split("=", 1)
        k = k.strip()
        v = v.strip()

        if v.lstrip("-").isdigit():
            rules[k] = int(v)
        else:
            try:
                rules[k] = float(v)
            except ValueError:
                rules[k] = v

    return rules


def resolve_race_setup(
    scripts: list[Path] | None,
    names: list[str] | None,
    config_file: Path | None,
    overrides: list[str] | None,
) -> tuple[RaceConfig, list[Competitor]]:
    """
    Merge the config file, rule overrides and script arguments.

    Scripts given on the command line replace the `[[racers]]` of the config
    file, and the race is sized to the resulting roster.
    """
    config = RaceConfig()
    base_dir: Path | None = None

    try:
        if config_file:
            if not config_file.exists():
                msg = f"Config file not found: {config_file}"
                raise cappa.Exit(msg, code=1)
            config = RaceConfig.from_toml(config_file)
            base_dir = config_file.parent

        if overrides:
            config = config.with_overrides(parse_rule_overrides(overrides))

        entries = list(config.racers)
        if scripts:
            if names and len(names) != len(scripts):
                msg = f"Got {len(names)} names for {len(scripts)} scripts."
                raise cappa.Exit(msg, code=1)
            entries = [
                RacerEntry(name=names[i] if names else path.stem, script=str(path))
                for i, path in enumerate(scripts)
            ]
            base_dir = None

        if not entries:
            msg = "No competitors: pass --scripts or a config with [[racers]]."
            raise cappa.Exit(msg, code=1)

        roster = load_roster(entries, base_dir)
        config = config.with_overrides({"players_required": len(roster)})
    except ConfigError as e:
        raise cappa.Exit(str(e), code=1) from e

    return config, roster
