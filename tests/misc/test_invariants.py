import random

import pytest

from kartsim.core.types import RaceStatus
from tests.test_utils import CarConfig, RaceScenario


def chaotic(seed: int):
    rng = random.Random(seed)

    def strategy(race):
        for _ in range(rng.randint(0, 4)):
            match rng.choice(("acceleration", "banana", "shell")):
                case "acceleration":
                    race.buy_acceleration(rng.randint(1, 3))
                case "banana":
                    race.buy_banana()
                case "shell":
                    race.buy_shell(rng.randint(1, 2))

    return strategy


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_state_invariants_hold_every_turn(scenario: type[RaceScenario], seed: int):
    race = scenario(
        [CarConfig(name, strategy=chaotic(seed * 10 + i)) for i, name in enumerate("abcd")],
        finish_distance=400,
        max_turns=2000,
    )
    state = race.engine.state

    while race.engine.status is RaceStatus.ACTIVE:
        before = [(car.position, car.balance) for car in state.cars]
        bananas_before = list(state.bananas)
        sold_before = state.sold.as_list()
        race.run_turn()

        entry = state.logs[-1]
        assert state.bananas == sorted(set(state.bananas))
        assert all(car.balance >= 0 for car in state.cars)
        assert all(car.speed >= 0 for car in state.cars)
        assert all(a <= b for a, b in zip(sold_before, state.sold.as_list()))

        # Only the active car pays, and exactly what the log says it bought.
        for idx, car in enumerate(state.cars):
            if idx != entry.current_car:
                assert car.balance == before[idx][1]

        # No car passes a banana that was on the track before it moved.
        for idx, car in enumerate(state.cars):
            start = before[idx][0]
            assert car.position >= start
            skipped = [b for b in bananas_before if start < b < car.position]
            assert all(b not in state.bananas for b in skipped)

    assert len(state.logs) == state.turn
