from history import History
from klondike import GameState


def empty_state() -> GameState:
    return GameState(tableau=tuple(() for _ in range(7)))


def test_new_history_has_nothing_to_undo():
    history = History()
    assert not history.has_undo
    assert len(history) == 0
    assert history.undo() is None


def test_snapshot_is_restored_once():
    history = History()
    state = empty_state()

    history.save_snapshot(state)

    assert history.has_undo
    assert history.undo() is state
    assert not history.has_undo
    assert history.undo() is None


def test_second_snapshot_overwrites_first():
    history = History()
    first, second = empty_state(), empty_state()

    history.save_snapshot(first)
    history.save_snapshot(second)

    assert len(history) == 1
    assert history.undo() is second


def test_clear():
    history = History()
    history.save_snapshot(empty_state())
    history.clear()
    assert not history.has_undo
