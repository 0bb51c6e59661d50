"""Snake & Ladder board: where a piece ends up after a die roll."""

FINISH = 100

# Snake head -> tail
SNAKES: dict[int, int] = {
    16: 6,
    49: 11,
    64: 60,
    69: 51,
    88: 67,
    95: 38,
    99: 62,
}

# Ladder foot -> top
LADDERS: dict[int, int] = {
    2: 36,
    4: 14,
    9: 31,
    33: 83,
    40: 42,
    71: 91,
}


def apply_snakes_and_ladders(square: int) -> int:
    """Follow a snake down or a ladder up from the square a piece landed on."""
    if square in SNAKES:
        return SNAKES[square]
    if square in LADDERS:
        return LADDERS[square]
    return square


def advance(position: int, dice: int) -> int:
    """
    Move a piece from `position` by `dice` squares.

    Overshooting the finish bounces back by the excess (98 + 5 -> 97),
    then the landing square is passed through the snake/ladder tables.
    """
    result = position + dice
    if result > FINISH:
        result = FINISH - (result - FINISH)
    return apply_snakes_and_ladders(result)


def board_layout() -> dict[str, dict[int, int]]:
    """Copy of both redirect tables, for clients drawing the board."""
    return {"snakes": dict(SNAKES), "ladders": dict(LADDERS)}
