from __future__ import annotations

import msgspec


class Acceleration(msgspec.Struct, frozen=True, tag="acceleration", tag_field="type"):
    amount: int


class Banana(msgspec.Struct, frozen=True, tag="banana", tag_field="type"):
    # Car that placed it; the banana sits at that car's position.
    index: int


class Shell(msgspec.Struct, frozen=True, tag="shell", tag_field="type"):
    count: int


Action = Acceleration | Banana | Shell


def describe(action: Action) -> str:
    match action:
        case Acceleration(amount=amount):
            return f"Acceleration x{amount}"
        case Banana(index=index):
            return f"Banana by car {index}"
        case Shell(count=count):
            return f"Shell x{count}"
