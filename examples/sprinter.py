# Waits for prices to fall, then buys acceleration in bulk.


def take_your_turn():
    if race.turns < 10:
        return
    amount = 1
    while race.get_accelerate_cost(amount + 1) <= race.me.balance // 4:
        amount += 1
    race.buy_acceleration(amount)
