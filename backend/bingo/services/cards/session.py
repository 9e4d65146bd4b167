import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .engine import CELL_COUNT, FREE_SPACE_INDEX, count_bingos, generate_card
from .progression import (
    AwaitingContinueDecision,
    Completed,
    Playing,
    ProgressState,
    ProgressTarget,
    apply_decision,
    evaluate_toggle,
    pending_of,
    reached_milestone,
    settle_target,
    state_from_record,
)
from .store import StoreError


_log = logging.getLogger(__name__)

_MILESTONE_FIELDS = {
    ProgressTarget.FIRST_BINGO: 'first_bingo_time',
    ProgressTarget.THREE_BINGOS: 'three_bingos_time',
    ProgressTarget.FULL_CARD: 'full_card_time',
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _noop_notify(event: str, payload: Dict[str, Any]) -> None:
    return None


class GameSession:
    """One in-progress card: its marked cells, live bingo count and progression.

    Every mutation updates the in-memory state first and then writes through
    the store. Progress saves after a toggle tolerate store failures; the
    explicit stop, continue and regenerate actions let them propagate.
    """

    def __init__(self, game_id: str, items: Sequence[str], marked_cells: Iterable[int] = (),
                 bingo_count: Optional[int] = None, state: Optional[ProgressState] = None,
                 target: ProgressTarget = ProgressTarget.FIRST_BINGO,
                 started_at: Optional[datetime] = None,
                 milestone_times: Optional[Dict[str, Optional[int]]] = None,
                 store=None, notify: Callable[[str, Dict[str, Any]], None] = _noop_notify,
                 logger: Optional[logging.Logger] = None,
                 clock: Callable[[], datetime] = _utcnow):
        self.game_id = game_id
        self.items: List[str] = list(items)
        self.marked = {int(i) for i in marked_cells if 0 <= int(i) < CELL_COUNT}
        self.marked.add(FREE_SPACE_INDEX)
        self.bingo_count = count_bingos(self.marked) if bingo_count is None else int(bingo_count)
        self.state: ProgressState = state or Playing(target)
        self.target = state.target if isinstance(state, Playing) else target
        self.clock = clock
        self.started_at = started_at or clock()
        self.milestone_times = {field: None for field in _MILESTONE_FIELDS.values()}
        self.milestone_times.update(milestone_times or {})
        self.completed_at: Optional[datetime] = None
        self.duration: Optional[int] = None
        self.store = store
        self.notify = notify
        self.logger = logger or _log
        self.persisted = True

    @classmethod
    def from_record(cls, game, **kwargs) -> 'GameSession':
        """Resume a session from a stored game record."""
        state = state_from_record(game.completed, game.target_bingo_count, game.pending_target)
        session = cls(
            game.id,
            game.items,
            game.marked_cells,
            bingo_count=game.bingo_count,
            state=state,
            target=ProgressTarget(game.target_bingo_count or ProgressTarget.FIRST_BINGO),
            started_at=game.started_at,
            milestone_times={field: getattr(game, field) for field in _MILESTONE_FIELDS.values()},
            **kwargs,
        )
        session.completed_at = game.completed_at
        session.duration = game.duration
        return session

    @property
    def completed(self) -> bool:
        return isinstance(self.state, Completed)

    def toggle(self, index: int) -> bool:
        """Flip one cell. Returns False when the toggle was ignored."""
        if index == FREE_SPACE_INDEX or not 0 <= index < CELL_COUNT:
            self.logger.debug(f"[toggle-ignored] game={self.game_id} index={index}")
            return False
        if self.completed:
            self.logger.debug(f"[toggle-ignored] game={self.game_id} index={index} completed")
            return False

        if index in self.marked:
            self.marked.discard(index)
        else:
            self.marked.add(index)
        prior = self.bingo_count
        self.bingo_count = count_bingos(self.marked)
        before = self.state
        self.state = evaluate_toggle(before, prior, self.bingo_count, len(self.marked))
        self.logger.info(
            f"[toggle] game={self.game_id} index={index} marked={len(self.marked)} bingos={prior}->{self.bingo_count}"
        )

        reached = reached_milestone(before, self.state)
        if reached is not None:
            self._record_milestone(reached)

        self.persisted = self._save_progress()
        return True

    def decide(self, choice) -> ProgressState:
        """Apply the player's answer to a pending continue prompt."""
        self.state = apply_decision(self.state, choice)
        if isinstance(self.state, Playing):
            self.target = self.state.target
            self.logger.info(f"[continue] game={self.game_id} target={int(self.target)}")
            before = self.state
            self.state = settle_target(before, self.bingo_count, len(self.marked))
            reached = reached_milestone(before, self.state)
            if reached is not None:
                self._record_milestone(reached)
        else:
            self._mark_completed()
            self.logger.info(f"[stop] game={self.game_id} bingos={self.bingo_count}")
        self._save()
        return self.state

    def set_marked(self, cells: Iterable[int], complete: bool = False) -> ProgressState:
        """Replace the whole marked set, as the raw game update does.

        The change goes through the same progression step as a toggle, so
        the saved count never runs ahead of the state machine. Store
        failures propagate.
        """
        if self.completed:
            self.logger.debug(f"[update-ignored] game={self.game_id} completed")
            return self.state
        self.marked = {int(i) for i in cells if 0 <= int(i) < CELL_COUNT}
        self.marked.add(FREE_SPACE_INDEX)
        prior = self.bingo_count
        self.bingo_count = count_bingos(self.marked)
        before = self.state
        self.state = evaluate_toggle(before, prior, self.bingo_count, len(self.marked))
        reached = reached_milestone(before, self.state)
        if reached is not None:
            self._record_milestone(reached)
        if complete and not self.completed:
            self.state = Completed()
            self._mark_completed()
        self.logger.info(
            f"[update] game={self.game_id} marked={len(self.marked)} bingos={prior}->{self.bingo_count} "
            f"completed={self.completed}"
        )
        self._save()
        return self.state

    def regenerate(self, pool: Sequence[str], rng=None) -> List[str]:
        """Deal a fresh card and start over from the first target."""
        self.items = generate_card(pool, rng=rng)
        self.marked = {FREE_SPACE_INDEX}
        self.bingo_count = count_bingos(self.marked)
        self.target = ProgressTarget.FIRST_BINGO
        self.state = Playing(self.target)
        self.started_at = self.clock()
        self.milestone_times = {field: None for field in _MILESTONE_FIELDS.values()}
        self.completed_at = None
        self.duration = None
        self.logger.info(f"[regenerate] game={self.game_id}")
        self._save()
        return self.items

    def _elapsed(self) -> int:
        return max(0, int((self.clock() - self.started_at).total_seconds()))

    def _record_milestone(self, reached: ProgressTarget) -> None:
        field = _MILESTONE_FIELDS[reached]
        if self.milestone_times.get(field) is None:
            self.milestone_times[field] = self._elapsed()
        if self.completed:
            self._mark_completed()
        self.logger.info(f"[milestone] game={self.game_id} milestone={reached.milestone} bingos={self.bingo_count}")
        try:
            self.notify('milestone', {
                'game_id': self.game_id,
                'milestone': reached.milestone,
                'bingo_count': self.bingo_count,
                'next_target': int(pending_of(self.state)) if pending_of(self.state) else None,
            })
        except Exception as exc:
            self.logger.warning(f"[notify-failed] game={self.game_id} error={exc}")

    def _mark_completed(self) -> None:
        self.completed_at = self.clock()
        self.duration = self._elapsed()

    def _save_progress(self) -> bool:
        try:
            self._save()
        except StoreError as exc:
            self.logger.warning(f"[persist-failed] game={self.game_id} error={exc}")
            return False
        return True

    def _save(self) -> None:
        if self.store is None:
            return
        self.store.save(self.game_id, self.to_fields())

    def to_fields(self) -> Dict[str, Any]:
        fields = {
            'items': self.items,
            'marked_cells': sorted(self.marked),
            'bingo_count': self.bingo_count,
            'target_bingo_count': int(self.target),
            'pending_target': int(pending_of(self.state)) if pending_of(self.state) else None,
            'completed': self.completed,
            'completed_at': self.completed_at,
            'duration': self.duration,
            'started_at': self.started_at,
        }
        fields.update(self.milestone_times)
        return fields

    def to_dict(self) -> Dict[str, Any]:
        return {
            'game_id': self.game_id,
            'items': self.items,
            'marked_cells': sorted(self.marked),
            'bingo_count': self.bingo_count,
            'target_bingo_count': int(self.target),
            'pending_target': int(pending_of(self.state)) if pending_of(self.state) else None,
            'state': self.state.name,
            'completed': self.completed,
            'persisted': self.persisted,
        }
