from pathlib import Path

import msgspec

from kartsim.engine.pricing import PriceCurve
from kartsim.scripting.host import CallableScriptHost, PythonScriptHost
from kartsim.simulation.config import RaceConfig, RacerEntry
from kartsim.simulation.report import decode_report, encode_report
from kartsim.simulation.runner import Competitor, load_roster, run_race

EXAMPLES = Path(__file__).resolve().parents[2] / "examples"

FLAT_ACCELERATION = PriceCurve(target_price=10, decay_rate=0.0, sell_rate_per_turn=2)


def buy_one(race):
    race.buy_acceleration(1)


def test_three_accelerators_on_flat_market():
    """
    Scenario: every car buys one acceleration per turn at a fixed price of 10.
    Verify:
    1. Car 1 moves first, so it is always one unit of speed ahead and wins on turn 76.
    2. The log holds the start snapshot plus one entry per turn.
    3. Balances and sales counters add up.
    """
    config = RaceConfig(acceleration=FLAT_ACCELERATION)
    roster = [Competitor(name, "buy_one") for name in ("x", "y", "z")]

    result = run_race(config, roster, CallableScriptHost({"buy_one": buy_one}), seed=1, verbose=False)
    report = result.report

    assert report.winner.id == 1
    assert report.winner.name == "y"
    assert result.turn_count == 76
    assert result.error_code is None
    assert len(report.logs) == 77

    last = report.logs[-1]
    assert last.turn == 76
    assert last.current_car == 1
    assert last.actions_sold == (76, 0, 0)
    assert [(c.position, c.speed, c.balance) for c in last.cars] == [
        (950, 25, 17250),
        (1001, 26, 17240),
        (975, 25, 17250),
    ]


def test_example_accelerator_scripts_race_to_the_end():
    config = RaceConfig()
    entries = [RacerEntry(name=name, script="accelerator.py") for name in ("x", "y", "z")]
    roster = load_roster(entries, EXAMPLES)

    with PythonScriptHost() as host:
        result = run_race(config, roster, host, seed=3, verbose=False)

    assert result.report.winner.id == 1
    assert len(result.report.logs) == 77
    assert result.seed == 3


def test_example_roster_from_toml_finishes():
    config = RaceConfig.from_toml(EXAMPLES / "race.toml")
    roster = load_roster(config.racers, EXAMPLES)

    with PythonScriptHost() as host:
        result = run_race(config, roster, host, seed=11, verbose=False)

    logs = result.report.logs
    assert logs[0].turn == 0
    assert [entry.turn for entry in logs] == list(range(len(logs)))
    assert all(entry.script_error is None for entry in logs)
    if result.error_code is None:
        assert result.winner_name in {"accelerator", "saboteur", "sprinter"}
        winner = logs[-1].cars[result.report.winner.id]
        assert winner.position >= config.finish_distance


def test_report_json_shape():
    config = RaceConfig(acceleration=FLAT_ACCELERATION, finish_distance=30)
    roster = [Competitor(name, "buy_one") for name in ("x", "y", "z")]
    result = run_race(config, roster, CallableScriptHost({"buy_one": buy_one}), seed=1, verbose=False)

    raw = msgspec.json.decode(encode_report(result.report))
    assert set(raw) == {"logs", "winner"}
    assert raw["winner"] == {"id": 1, "name": "y"}
    entry = raw["logs"][1]
    assert set(entry) == {
        "turn",
        "current_car",
        "actions",
        "bananas",
        "costs",
        "cars",
        "actions_sold",
        "script_error",
    }
    assert entry["actions"] == [{"type": "acceleration", "amount": 1}]
    assert entry["cars"][1] == {"name": "y", "balance": 17490, "speed": 1, "position": 1}
    assert decode_report(encode_report(result.report)) == result.report


def test_script_raising_base_exception_does_not_stop_race():
    quitter = 'def take_your_turn():\n    raise Exception.__base__("bye")\n'
    accelerator = (EXAMPLES / "accelerator.py").read_text(encoding="utf-8")
    roster = [
        Competitor("quitter", quitter),
        Competitor("x", accelerator),
        Competitor("y", accelerator),
    ]

    with PythonScriptHost() as host:
        result = run_race(RaceConfig(finish_distance=30), roster, host, seed=1, verbose=False)

    assert result.report.winner.name == "x"
    failed = [entry for entry in result.report.logs[1:] if entry.current_car == 0]
    assert failed
    assert all(entry.script_error == "BaseException: bye" for entry in failed)
