from pathlib import Path

import cappa
import pytest

from kartsim.cli.converters import parse_rule_overrides, resolve_race_setup

SCRIPT = "def take_your_turn():\n    race.buy_acceleration(1)\n"


@pytest.fixture
def scripts(tmp_path: Path) -> list[Path]:
    paths = []
    for name in ("alpha", "beta"):
        path = tmp_path / f"{name}.py"
        path.write_text(SCRIPT, encoding="utf-8")
        paths.append(path)
    return paths


def test_parse_rule_overrides_infers_types():
    assert parse_rule_overrides(["a=1", "b = -2", "c=0.5", "d=word", "e=x=y"]) == {
        "a": 1,
        "b": -2,
        "c": 0.5,
        "d": "word",
        "e": "x=y",
    }


def test_parse_rule_overrides_rejects_missing_equals():
    with pytest.raises(cappa.Exit):
        parse_rule_overrides(["finish_distance"])


def test_scripts_define_roster_and_player_count(scripts: list[Path]):
    config, roster = resolve_race_setup(scripts, None, None, ["finish_distance=300"])

    assert [c.name for c in roster] == ["alpha", "beta"]
    assert roster[0].source == SCRIPT
    assert config.players_required == 2
    assert config.finish_distance == 300


def test_names_replace_file_stems(scripts: list[Path]):
    _, roster = resolve_race_setup(scripts, ["Ann", "Bo"], None, None)
    assert [c.name for c in roster] == ["Ann", "Bo"]


def test_name_count_must_match(scripts: list[Path]):
    with pytest.raises(cappa.Exit):
        resolve_race_setup(scripts, ["Ann"], None, None)


def test_config_racers_resolve_against_config_dir(tmp_path: Path, scripts: list[Path]):
    config_file = tmp_path / "race.toml"
    config_file.write_text(
        'players_required = 5\n[[racers]]\nname = "a"\nscript = "alpha.py"\n',
        encoding="utf-8",
    )

    config, roster = resolve_race_setup(None, None, config_file, None)

    assert [c.name for c in roster] == ["a"]
    assert config.players_required == 1


def test_missing_config_file_exits(tmp_path: Path):
    with pytest.raises(cappa.Exit):
        resolve_race_setup(None, None, tmp_path / "missing.toml", None)


def test_no_competitors_exits():
    with pytest.raises(cappa.Exit):
        resolve_race_setup(None, None, None, None)


def test_bad_override_exits(scripts: list[Path]):
    with pytest.raises(cappa.Exit):
        resolve_race_setup(scripts, None, None, ["fuel=3"])


def test_unreadable_script_exits(tmp_path: Path):
    with pytest.raises(cappa.Exit):
        resolve_race_setup([tmp_path / "ghost.py"], None, None, None)
