# Keeps a cash reserve for shells and drops bananas when someone is close behind.
import random

RESERVE = 4000


def take_your_turn():
    me = race.me
    rng = random.Random(race.seed + race.turns)

    behind = [c for c in race.cars if c.name != me.name and c.position < me.position]
    if behind and me.position - max(c.position for c in behind) < 50:
        race.buy_banana()

    ahead = [c for c in race.cars if c.name != me.name and c.position >= me.position]
    if ahead and min(c.position for c in ahead) - me.position < 100:
        if race.me.balance - race.get_shell_cost(1) > RESERVE and rng.random() < 0.5:
            race.buy_shell(1)

    while race.get_accelerate_cost(1) <= 25 and race.me.balance > RESERVE:
        if not race.buy_acceleration(1):
            break
