# Buys one unit of acceleration every turn it can afford.


def take_your_turn():
    race.buy_acceleration(1)
