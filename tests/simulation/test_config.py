from pathlib import Path

import pytest

from kartsim.core.errors import ConfigError
from kartsim.core.state import FINISH_DISTANCE, MAX_TURNS, STARTING_BALANCE
from kartsim.engine.pricing import DEFAULT_ACCELERATION_CURVE, DEFAULT_SHELL_CURVE, PriceCurve
from kartsim.simulation.config import RaceConfig, RacerEntry

EXAMPLE_TOML = """\
finish_distance = 500
max_turns = 2000

[shell]
target_price = 300
decay_rate = 0.25
sell_rate_per_turn = 0.5

[[racers]]
name = "one"
script = "one.py"

[[racers]]
name = "two"
script = "scripts/two.py"
"""


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "race.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    config = RaceConfig()
    assert config.players_required == 3
    assert config.finish_distance == FINISH_DISTANCE
    assert config.starting_balance == STARTING_BALANCE
    assert config.max_turns == MAX_TURNS
    assert config.racers == ()
    assert config.seed is None


def test_from_toml(tmp_path: Path):
    config = RaceConfig.from_toml(write(tmp_path, EXAMPLE_TOML))

    assert config.finish_distance == 500
    assert config.max_turns == 2000
    assert config.shell == PriceCurve(target_price=300, decay_rate=0.25, sell_rate_per_turn=0.5)
    assert config.acceleration == DEFAULT_ACCELERATION_CURVE
    assert config.racers == (
        RacerEntry(name="one", script="one.py"),
        RacerEntry(name="two", script="scripts/two.py"),
    )


def test_to_rules_carries_market(tmp_path: Path):
    rules = RaceConfig.from_toml(write(tmp_path, EXAMPLE_TOML)).to_rules()
    assert rules.finish_distance == 500
    assert rules.market.shell.target_price == 300
    assert rules.market.banana.target_price == 200


def test_missing_file_raises_config_error(tmp_path: Path):
    with pytest.raises(ConfigError, match="Cannot read config"):
        RaceConfig.from_toml(tmp_path / "nope.toml")


@pytest.mark.parametrize(
    "text",
    [
        "finish_distance = 'far'\n",
        "unknown_key = 1\n",
        "[banana]\ntarget_price = 1\ndecay_rate = 1.5\nsell_rate_per_turn = 1\n",
        "finish_distance = 0\n",
        "this is not toml",
    ],
)
def test_invalid_toml_raises_config_error(tmp_path: Path, text: str):
    with pytest.raises(ConfigError):
        RaceConfig.from_toml(write(tmp_path, text))


def test_invalid_values_rejected_on_construction():
    with pytest.raises(ConfigError):
        RaceConfig(players_required=0)
    with pytest.raises(ConfigError):
        RaceConfig(max_turns=0)


def test_max_turns_can_be_disabled():
    assert RaceConfig(max_turns=None).to_rules().max_turns is None


def test_overrides_top_level_and_curve_fields():
    config = RaceConfig().with_overrides(
        {"finish_distance": 250, "shell.target_price": 500, "shell.decay_rate": 0.1},
    )

    assert config.finish_distance == 250
    assert config.shell.target_price == 500
    assert config.shell.decay_rate == 0.1
    assert config.shell.sell_rate_per_turn == DEFAULT_SHELL_CURVE.sell_rate_per_turn
    assert config.acceleration == DEFAULT_ACCELERATION_CURVE


def test_empty_overrides_return_same_config():
    config = RaceConfig()
    assert config.with_overrides({}) is config


@pytest.mark.parametrize("key", ["nope", "banana.nope", "fuel.target_price", "shell", "racers"])
def test_unknown_override_keys(key: str):
    with pytest.raises(ConfigError, match="Unknown config key"):
        RaceConfig().with_overrides({key: 1})


def test_invalid_override_values():
    with pytest.raises(ConfigError, match="Invalid override"):
        RaceConfig().with_overrides({"finish_distance": "far"})
    with pytest.raises(ConfigError):
        RaceConfig().with_overrides({"acceleration.decay_rate": 2.0})
