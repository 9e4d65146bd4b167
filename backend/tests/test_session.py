import random
from datetime import datetime, timedelta

import pytest

from bingo.services.cards.progression import (
    AwaitingContinueDecision,
    Completed,
    InvalidDecision,
    Playing,
    ProgressTarget,
)
from bingo.services.cards.session import GameSession
from bingo.services.cards.store import StoreError


CARD = [f'Cell {i}' for i in range(12)] + ['FREE SPACE'] + [f'Cell {i}' for i in range(13, 25)]


class FakeStore:
    def __init__(self, fail=False):
        self.fail = fail
        self.saves = []

    def save(self, game_id, fields):
        if self.fail:
            raise StoreError('database unavailable')
        self.saves.append((game_id, dict(fields)))


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def store():
    return FakeStore()


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def session(store, events, clock):
    return GameSession('g1', CARD, store=store, notify=lambda e, p: events.append((e, p)), clock=clock)


def mark(session, cells):
    for i in cells:
        session.toggle(i)


def test_new_session_has_free_space_marked(session):
    assert session.marked == {12}
    assert session.bingo_count == 0
    assert session.state == Playing(ProgressTarget.FIRST_BINGO)


def test_toggle_marks_and_unmarks(session, store):
    assert session.toggle(3) is True
    assert 3 in session.marked
    assert session.toggle(3) is True
    assert 3 not in session.marked
    assert len(store.saves) == 2
    assert store.saves[-1][1]['marked_cells'] == [12]


@pytest.mark.parametrize('index', [12, -1, 25, 100])
def test_invalid_toggles_are_ignored(session, store, index):
    assert session.toggle(index) is False
    assert session.marked == {12}
    assert session.bingo_count == 0
    assert store.saves == []


def test_free_space_toggle_ignored_while_awaiting(session):
    mark(session, [0, 1, 2, 3, 4])
    before = (set(session.marked), session.bingo_count, session.state)
    assert session.toggle(12) is False
    assert (session.marked, session.bingo_count, session.state) == before


def test_first_row_prompts_for_three(session, events, clock):
    clock.advance(42)
    mark(session, [0, 1, 2, 3, 4])
    assert session.bingo_count == 1
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)
    assert session.milestone_times['first_bingo_time'] == 42
    assert events == [('milestone', {
        'game_id': 'g1',
        'milestone': 'first_bingo',
        'bingo_count': 1,
        'next_target': 3,
    })]
    assert session.to_dict()['pending_target'] == 3


def test_continue_then_three_bingos(session, store):
    mark(session, [0, 1, 2, 3, 4])
    assert session.decide('continue') == Playing(ProgressTarget.THREE_BINGOS)
    assert store.saves[-1][1]['target_bingo_count'] == 3
    assert store.saves[-1][1]['pending_target'] is None
    mark(session, [5, 6, 7, 8, 9])
    assert session.state == Playing(ProgressTarget.THREE_BINGOS)
    mark(session, [10, 11, 13, 14])
    assert session.bingo_count == 3
    assert session.state == AwaitingContinueDecision(ProgressTarget.FULL_CARD)


def test_stop_completes_and_persists(session, store, clock):
    mark(session, [0, 1, 2, 3, 4])
    clock.advance(90)
    assert session.decide('stop') == Completed()
    fields = store.saves[-1][1]
    assert fields['completed'] is True
    assert fields['marked_cells'] == [0, 1, 2, 3, 4, 12]
    assert fields['bingo_count'] == 1
    assert fields['duration'] == 90
    assert fields['completed_at'] == clock.now


def test_full_card_completes(session, store, events):
    mark(session, [0, 1, 2, 3, 4])
    session.decide('continue')
    mark(session, [5, 6, 7, 8, 9, 10, 11, 13, 14])
    session.decide('continue')
    mark(session, [i for i in range(15, 25)])
    assert session.bingo_count == 12
    assert session.completed
    assert store.saves[-1][1]['completed'] is True
    assert [p['milestone'] for _, p in events] == ['first_bingo', 'three_bingos', 'full_card']


def test_toggles_after_completion_are_ignored(session):
    mark(session, [0, 1, 2, 3, 4])
    session.decide('stop')
    assert session.toggle(5) is False
    assert 5 not in session.marked


def test_toggles_while_awaiting_update_count_without_transition(session):
    mark(session, [0, 1, 2, 3, 4])
    session.toggle(4)
    assert session.bingo_count == 0
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)


def test_decision_without_prompt_raises(session):
    with pytest.raises(InvalidDecision):
        session.decide('continue')


def test_progress_save_failure_is_tolerated(events, clock):
    store = FakeStore(fail=True)
    session = GameSession('g1', CARD, store=store, notify=lambda e, p: events.append((e, p)), clock=clock)
    mark(session, [0, 1, 2, 3, 4])
    assert session.marked == {0, 1, 2, 3, 4, 12}
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)
    assert session.persisted is False
    assert session.to_dict()['persisted'] is False


def test_stop_save_failure_is_raised(session, store):
    mark(session, [0, 1, 2, 3, 4])
    store.fail = True
    with pytest.raises(StoreError):
        session.decide('stop')


def test_notify_failure_does_not_break_toggle(store, clock):
    def broken(event, payload):
        raise RuntimeError('socket gone')

    session = GameSession('g1', CARD, store=store, notify=broken, clock=clock)
    mark(session, [0, 1, 2, 3, 4])
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)


def test_regenerate_resets_everything(session, store):
    mark(session, [0, 1, 2, 3, 4])
    session.decide('continue')
    pool = [f'New {i}' for i in range(30)]
    card = session.regenerate(pool, rng=random.Random(5))
    assert card[12] == 'FREE SPACE'
    assert session.items == card
    assert session.marked == {12}
    assert session.bingo_count == 0
    assert session.state == Playing(ProgressTarget.FIRST_BINGO)
    fields = store.saves[-1][1]
    assert fields['target_bingo_count'] == 1
    assert fields['pending_target'] is None
    assert fields['first_bingo_time'] is None


def test_regenerate_discards_pending_decision(session):
    mark(session, [0, 1, 2, 3, 4])
    session.regenerate([f'New {i}' for i in range(25)])
    assert session.state == Playing(ProgressTarget.FIRST_BINGO)


def test_resume_from_record_values(store, clock):
    session = GameSession(
        'g2', CARD, marked_cells=[0, 1, 2, 3, 4, 99],
        bingo_count=1, state=AwaitingContinueDecision(ProgressTarget.THREE_BINGOS),
        target=ProgressTarget.FIRST_BINGO, store=store, clock=clock,
    )
    assert session.marked == {0, 1, 2, 3, 4, 12}
    assert session.target == ProgressTarget.FIRST_BINGO
    session.decide('continue')
    assert session.target == ProgressTarget.THREE_BINGOS


def test_continue_with_three_bingos_already_made(session, store, events):
    mark(session, [1, 2, 3, 4, 5, 10, 15, 20, 6, 18, 24])
    assert session.bingo_count == 0
    session.toggle(0)
    assert session.bingo_count == 3
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)

    assert session.decide('continue') == AwaitingContinueDecision(ProgressTarget.FULL_CARD)
    assert session.target == ProgressTarget.THREE_BINGOS
    assert session.milestone_times['three_bingos_time'] is not None
    assert store.saves[-1][1]['pending_target'] == 25
    assert events[-1][1]['milestone'] == 'three_bingos'
    assert events[-1][1]['next_target'] == 25

    assert session.decide('continue') == Playing(ProgressTarget.FULL_CARD)


def test_continue_with_full_card_already_marked(session, store, events):
    mark(session, [0, 1, 2, 3, 4])
    mark(session, [i for i in range(5, 25) if i != 12])
    assert len(session.marked) == 25
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)

    assert session.decide('continue') == AwaitingContinueDecision(ProgressTarget.FULL_CARD)
    assert session.decide('continue') == Completed()
    assert session.completed
    assert store.saves[-1][1]['completed'] is True
    assert [p['milestone'] for _, p in events] == ['first_bingo', 'three_bingos', 'full_card']


def test_set_marked_runs_progression(session, store, events):
    session.set_marked([0, 1, 2, 3, 4, 40])
    assert session.marked == {0, 1, 2, 3, 4, 12}
    assert session.bingo_count == 1
    assert session.state == AwaitingContinueDecision(ProgressTarget.THREE_BINGOS)
    assert events[-1][1]['milestone'] == 'first_bingo'
    assert store.saves[-1][1]['pending_target'] == 3

    session.decide('continue')
    mark(session, [5, 6, 7, 8, 9, 10, 11, 13, 14])
    assert session.state == AwaitingContinueDecision(ProgressTarget.FULL_CARD)


def test_set_marked_with_complete_finishes_game(session, store, clock):
    clock.advance(30)
    assert session.set_marked([0, 6, 18, 24], complete=True) == Completed()
    fields = store.saves[-1][1]
    assert fields['completed'] is True
    assert fields['duration'] == 30
    assert fields['bingo_count'] == 1


def test_set_marked_after_completion_is_ignored(session, store):
    session.set_marked([], complete=True)
    saves = len(store.saves)
    session.set_marked([0, 1, 2, 3, 4])
    assert session.marked == {12}
    assert len(store.saves) == saves


def test_set_marked_save_failure_is_raised(session, store):
    store.fail = True
    with pytest.raises(StoreError):
        session.set_marked([0, 1, 2, 3, 4])
