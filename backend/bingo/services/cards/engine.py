import random
from typing import Iterable, List, Optional, Sequence, Tuple

GRID_SIZE = 5
CELL_COUNT = GRID_SIZE * GRID_SIZE
FREE_SPACE_INDEX = 12
FREE_SPACE = 'FREE SPACE'
# Options consumed by one card (every cell except the free space)
CARD_OPTIONS = CELL_COUNT - 1


class InsufficientOptions(ValueError):
    """Raised when an option pool is too small to fill a card."""

    def __init__(self, available: int, required: int = CARD_OPTIONS):
        super().__init__(f'Need at least {required} options to build a card, got {available}')
        self.available = available
        self.required = required


def _build_lines() -> Tuple[Tuple[int, ...], ...]:
    rows = [tuple(r * GRID_SIZE + c for c in range(GRID_SIZE)) for r in range(GRID_SIZE)]
    cols = [tuple(r * GRID_SIZE + c for r in range(GRID_SIZE)) for c in range(GRID_SIZE)]
    diagonals = [
        tuple(i * GRID_SIZE + i for i in range(GRID_SIZE)),
        tuple(i * GRID_SIZE + (GRID_SIZE - 1 - i) for i in range(GRID_SIZE)),
    ]
    return tuple(rows + cols + diagonals)


# 5 rows, 5 columns, 2 diagonals over flat index row*5+col
LINES = _build_lines()
LINE_MASKS = tuple(sum(1 << i for i in line) for line in LINES)


def to_mask(marked: Iterable[int]) -> int:
    """Pack marked cell indices into a 25 bit mask, dropping out-of-range ones."""
    mask = 0
    for idx in marked:
        if 0 <= idx < CELL_COUNT:
            mask |= 1 << idx
    return mask


def count_bingos(marked: Iterable[int]) -> int:
    """Return how many of the 12 lines are fully marked.

    Every line is checked on its own and completions are summed, so a cell
    shared by several lines (the free space sits on four) counts towards
    each of them.
    """
    mask = to_mask(marked)
    return sum(1 for line_mask in LINE_MASKS if mask & line_mask == line_mask)


def completed_lines(marked: Iterable[int]) -> List[Tuple[int, ...]]:
    mask = to_mask(marked)
    return [line for line, line_mask in zip(LINES, LINE_MASKS) if mask & line_mask == line_mask]


def generate_card(pool: Sequence[str], rng: Optional[random.Random] = None) -> List[str]:
    """Build a 25 cell card from an option pool.

    The pool is shuffled with Fisher-Yates, the first 24 options are kept
    and the free space is inserted at index 12, so 12 options land before
    it and 12 after.
    """
    if len(pool) < CARD_OPTIONS:
        raise InsufficientOptions(len(pool))
    rng = rng or random.Random()
    options = list(pool)
    for i in range(len(options) - 1, 0, -1):
        j = rng.randint(0, i)
        options[i], options[j] = options[j], options[i]
    chosen = options[:CARD_OPTIONS]
    return chosen[:FREE_SPACE_INDEX] + [FREE_SPACE] + chosen[FREE_SPACE_INDEX:]
