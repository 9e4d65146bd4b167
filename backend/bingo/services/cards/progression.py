"""Staged progression: first bingo, then three bingos, then a full card.

The state after each toggle is one of three variants. ``Playing`` carries
the threshold currently being chased, ``AwaitingContinueDecision`` carries
the target the player moves to if they choose to continue, and
``Completed`` is terminal.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Union

from .engine import CELL_COUNT


class ProgressTarget(enum.IntEnum):
    FIRST_BINGO = 1
    THREE_BINGOS = 3
    FULL_CARD = CELL_COUNT

    @property
    def milestone(self) -> str:
        return {
            ProgressTarget.FIRST_BINGO: 'first_bingo',
            ProgressTarget.THREE_BINGOS: 'three_bingos',
            ProgressTarget.FULL_CARD: 'full_card',
        }[self]


class Decision(str, enum.Enum):
    CONTINUE = 'continue'
    STOP = 'stop'


class InvalidDecision(ValueError):
    pass


@dataclass(frozen=True)
class Playing:
    target: ProgressTarget = ProgressTarget.FIRST_BINGO
    name = 'playing'


@dataclass(frozen=True)
class AwaitingContinueDecision:
    next_target: ProgressTarget
    name = 'awaiting_decision'


@dataclass(frozen=True)
class Completed:
    name = 'completed'


ProgressState = Union[Playing, AwaitingContinueDecision, Completed]


def evaluate_toggle(state: ProgressState, prior_bingo_count: int, new_bingo_count: int,
                    marked_count: int) -> ProgressState:
    """Return the state that follows a toggle.

    Only ``Playing`` can transition. The ``prior_bingo_count`` guards keep a
    milestone from firing again once it has been reached.
    """
    if not isinstance(state, Playing):
        return state
    target = state.target
    if target == ProgressTarget.FIRST_BINGO and new_bingo_count >= 1 and prior_bingo_count < 1:
        return AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)
    if target == ProgressTarget.THREE_BINGOS and new_bingo_count >= 3 and prior_bingo_count < 3:
        return AwaitingContinueDecision(ProgressTarget.FULL_CARD)
    if target == ProgressTarget.FULL_CARD and marked_count == CELL_COUNT and prior_bingo_count < CELL_COUNT:
        return Completed()
    return state


def apply_decision(state: ProgressState, choice) -> ProgressState:
    if not isinstance(state, AwaitingContinueDecision):
        raise InvalidDecision('No continue decision is pending')
    try:
        decision = Decision(choice)
    except ValueError:
        raise InvalidDecision(f'Unknown decision: {choice!r}')
    if decision == Decision.STOP:
        return Completed()
    return Playing(state.next_target)


def settle_target(state: ProgressState, bingo_count: int, marked_count: int) -> ProgressState:
    """Move past a target the card already meets when play resumes.

    A single toggle can close several lines, so continuing towards three
    bingos may start with three already on the card.
    """
    if not isinstance(state, Playing):
        return state
    if state.target == ProgressTarget.THREE_BINGOS and bingo_count >= 3:
        return AwaitingContinueDecision(ProgressTarget.FULL_CARD)
    if state.target == ProgressTarget.FULL_CARD and marked_count == CELL_COUNT:
        return Completed()
    return state


def reached_milestone(before: ProgressState, after: ProgressState) -> Optional[ProgressTarget]:
    """Target that was just reached by a toggle, if any."""
    if before == after or not isinstance(before, Playing):
        return None
    return before.target


def state_from_record(completed: bool, target_bingo_count: Optional[int],
                      pending_target: Optional[int]) -> ProgressState:
    if completed:
        return Completed()
    if pending_target:
        return AwaitingContinueDecision(ProgressTarget(pending_target))
    return Playing(ProgressTarget(target_bingo_count or ProgressTarget.FIRST_BINGO))


def target_of(state: ProgressState) -> Optional[ProgressTarget]:
    if isinstance(state, Playing):
        return state.target
    return None


def pending_of(state: ProgressState) -> Optional[ProgressTarget]:
    if isinstance(state, AwaitingContinueDecision):
        return state.next_target
    return None
