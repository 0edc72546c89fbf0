# tests/test_progress_controller.py

from __future__ import annotations

import pytest

from tasklist.tasks.errors import PersistenceError
from tasklist.tasks.progress_controller import ProgressController, parse_leading_int
from tasklist.tasks.task_models import Task

from .fakes import fixed_track

# track spans x=100..300, so x = 100 + 2 * percent


def _controller(store, timers, task_id: int = 1) -> ProgressController:
    return ProgressController(store, task_id, timers=timers, track=fixed_track(100, 200), debounce_seconds=0.3)


def test_drag_updates_display_immediately_and_commits_once(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A"))
    ctl = _controller(store, timers)

    ctl.begin_drag(120)
    assert ctl.display_value == pytest.approx(10.0)
    ctl.continue_drag(150)
    ctl.continue_drag(190)
    assert ctl.display_value == pytest.approx(45.0)
    ctl.end_drag()

    timers.advance(0.2)
    assert storage.writes == []
    assert store.get(1).progress == 0

    timers.advance(0.2)
    assert len(storage.writes) == 1
    assert store.get(1).progress == 45


def test_each_input_restarts_the_window(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A"))
    ctl = _controller(store, timers)

    ctl.begin_drag(110)
    for x in (120, 130, 140, 150):
        timers.advance(0.2)
        ctl.continue_drag(x)
    assert storage.writes == []

    timers.advance(0.3)
    assert len(storage.writes) == 1
    assert store.get(1).progress == 25
    assert timers.pending == 0


@pytest.mark.parametrize("x", [-1000, 0, 99.9, 300.1, 5000])
def test_drag_values_are_clamped(make_store, timers, x) -> None:
    store = make_store(Task(id=1, title="A", progress=50))
    ctl = _controller(store, timers)

    ctl.begin_drag(x)
    ctl.end_drag()
    timers.advance(0.3)

    assert 0 <= ctl.display_value <= 100
    assert 0 <= store.get(1).progress <= 100


def test_drag_to_100_completes_task(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=80))
    ctl = _controller(store, timers)

    ctl.begin_drag(350)
    ctl.end_drag()
    timers.advance(0.3)

    assert store.get(1) == Task(id=1, title="A", progress=100, completed=True)


def test_drag_completed_task_below_100_uncompletes_it(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=100, completed=True))
    ctl = _controller(store, timers)

    ctl.begin_drag(298)
    ctl.end_drag()
    timers.advance(0.3)

    assert store.get(1).progress == 99
    assert store.get(1).completed is False


def test_drag_leaves_completed_false_unchanged_below_100(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = _controller(store, timers)

    ctl.begin_drag(200)
    ctl.end_drag()
    timers.advance(0.3)

    assert store.get(1).completed is False
    assert store.get(1).progress == 50


def test_continue_drag_without_begin_is_ignored(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = _controller(store, timers)

    ctl.continue_drag(250)

    assert ctl.display_value == 10
    assert not ctl.commit_pending


def test_drag_without_track_layout_changes_nothing(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = ProgressController(store, 1, timers=timers, track=lambda: None)

    ctl.begin_drag(250)

    assert ctl.dragging
    assert ctl.display_value == 10
    assert not ctl.commit_pending


def test_number_input_paths(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A", progress=30))
    ctl = _controller(store, timers)

    ctl.set_from_number_input("")
    assert ctl.display_value == 0
    timers.advance(1)
    assert storage.writes == []

    ctl.set_from_number_input("abc")
    timers.advance(1)
    assert storage.writes == []

    ctl.set_from_number_input("250")
    assert ctl.display_value == 100
    timers.advance(0.3)
    assert store.get(1).progress == 100
    assert store.get(1).completed is True

    ctl.set_from_number_input("-5")
    timers.advance(0.3)
    assert store.get(1).progress == 0
    assert store.get(1).completed is False


def test_number_input_and_drag_share_one_channel(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A"))
    ctl = _controller(store, timers)

    ctl.begin_drag(200)
    ctl.end_drag()
    timers.advance(0.1)
    ctl.set_from_number_input("70")
    timers.advance(0.3)

    assert len(storage.writes) == 1
    assert store.get(1).progress == 70


def test_done_commits_immediately(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A", progress=40))
    ctl = _controller(store, timers)

    ctl.set_complete_flag(True)

    assert ctl.display_value == 100
    assert store.get(1) == Task(id=1, title="A", progress=100, completed=True)
    assert len(storage.writes) == 1


def test_undo_shows_zero_but_stores_progress_100(make_store, timers) -> None:
    # Display and stored value diverge on Undo; the stored progress is not reset.
    store = make_store(Task(id=1, title="A", progress=100, completed=True))
    ctl = _controller(store, timers)

    ctl.set_complete_flag(False)

    assert ctl.display_value == 0
    assert store.get(1) == Task(id=1, title="A", progress=100, completed=False)


def test_direct_commit_supersedes_pending_drag(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A"))
    ctl = _controller(store, timers)

    ctl.begin_drag(160)
    ctl.end_drag()
    ctl.set_complete_flag(True)
    timers.advance(1)

    assert len(storage.writes) == 1
    assert store.get(1).completed is True
    assert store.get(1).progress == 100


def test_modal_save_never_completes(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A", progress=20, completed=True))
    ctl = _controller(store, timers)

    ctl.set_from_modal_save(100)
    assert store.get(1) == Task(id=1, title="A", progress=100, completed=False)

    ctl.set_from_modal_save(180)
    assert store.get(1).progress == 100
    ctl.set_from_modal_save(-3)
    assert store.get(1).progress == 0
    assert len(storage.writes) == 3


def test_external_change_resyncs_display_when_idle(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = _controller(store, timers)

    store.update(Task(id=1, title="A", progress=60))

    assert ctl.display_value == 60


def test_external_change_does_not_override_active_drag(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = _controller(store, timers)

    ctl.begin_drag(260)
    store.update(Task(id=1, title="A renamed", progress=60))
    assert ctl.display_value == pytest.approx(80.0)

    ctl.end_drag()
    timers.advance(0.3)
    assert store.get(1).progress == 80
    # commit is built on the latest record, so the rename survives
    assert store.get(1).title == "A renamed"
    assert ctl.display_value == 80


def test_pending_commit_dropped_when_task_deleted(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A"), Task(id=2, title="B"))
    ctl = _controller(store, timers)

    ctl.begin_drag(200)
    ctl.end_drag()
    store.remove(1)
    timers.advance(1)

    assert [t.id for t in store.tasks] == [2]
    assert len(storage.writes) == 1


def test_failed_debounced_commit_resyncs_display(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = _controller(store, timers)

    ctl.begin_drag(200)
    ctl.end_drag()
    storage.fail_writes = True
    timers.advance(0.3)

    assert store.get(1).progress == 10
    assert ctl.display_value == 10


def test_failed_direct_commit_raises(make_store, timers, storage) -> None:
    store = make_store(Task(id=1, title="A", progress=10))
    ctl = _controller(store, timers)
    storage.fail_writes = True

    with pytest.raises(PersistenceError):
        ctl.set_complete_flag(True)

    assert store.get(1).completed is False
    assert ctl.display_value == 10


def test_close_flushes_pending_commit(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A"))
    ctl = _controller(store, timers)

    ctl.begin_drag(140)
    ctl.close()

    assert store.get(1).progress == 20
    store.update(Task(id=1, title="A", progress=90))
    assert ctl.display_value == 20


@pytest.mark.parametrize(
    "raw,expected",
    [("42", 42), (" 7", 7), ("42abc", 42), ("-3", -3), ("abc", None), ("", None), (12.9, 12), (True, None)],
)
def test_parse_leading_int(raw, expected) -> None:
    assert parse_leading_int(raw) == expected


@pytest.mark.parametrize("completed", [True, False])
def test_drag_rounding_up_to_100_does_not_complete(make_store, timers, completed) -> None:
    # x=299.2 -> 99.6 %: stored as 100 after rounding, but the clamped value is below 100
    store = make_store(Task(id=1, title="A", progress=100 if completed else 10, completed=completed))
    ctl = _controller(store, timers)

    ctl.begin_drag(299.2)
    ctl.end_drag()
    timers.advance(0.3)

    assert store.get(1).progress == 100
    assert store.get(1).completed is False


def test_undo_keeps_zero_display_when_stored_progress_was_below_100(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A", progress=40, completed=True))
    ctl = _controller(store, timers)

    ctl.set_complete_flag(False)

    assert store.get(1) == Task(id=1, title="A", progress=100, completed=False)
    assert ctl.display_value == 0

    store.update(Task(id=1, title="A", progress=70))
    assert ctl.display_value == 70


def test_end_drag_notifies_drag_end_listener_once(make_store, timers) -> None:
    store = make_store(Task(id=1, title="A"))
    ended: list[int] = []
    ctl = ProgressController(
        store, 1, timers=timers, track=fixed_track(100, 200), debounce_seconds=0.3, on_drag_end=ended.append
    )

    ctl.end_drag()
    ctl.begin_drag(150)
    ctl.end_drag()
    ctl.end_drag()

    assert ended == [1]
