import random
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.pairing.exceptions import NoActiveWalkError, WalkNotFoundError, WalkStoreError
from core.pairing.partitioner import rotate
from infrastructure.database.session import Database
from infrastructure.database.walk_store import WalkStore

# совпадает с T0 в conftest: last_rotation_time прогулок из seed_walk
T0 = datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_create_walk_deactivates_previous_active_walk(walk_store):
    first = walk_store.create_walk(duration_minutes=60, number_of_rotations=3)
    second = walk_store.create_walk(duration_minutes=30, number_of_rotations=2)

    active = walk_store.get_active_walks()
    assert [w.id for w in active] == [second.id]
    assert walk_store.get_walk(first.id).active is False


def test_create_walk_defaults_and_initial_state(walk_store):
    walk = walk_store.create_walk()

    assert walk.active is True
    assert walk.duration_minutes == 60
    assert walk.number_of_rotations == 3
    assert walk.current_rotation == 0
    assert walk.checked_in_users == []
    assert walk.pairs == []
    assert walk.last_rotation_time.tzinfo is not None


def test_create_walk_partitions_initial_participants(walk_store):
    walk = walk_store.create_walk(participants=["A", "B", "C", "D", "E"], rng=random.Random(1))

    stored = walk_store.get_walk(walk.id)
    assert sorted(u for p in stored.pairs for u in p.users) == ["A", "B", "C", "D", "E"]
    assert sum(p.is_triple for p in stored.pairs) == 1


def test_create_walk_rejects_non_positive_rotations(walk_store):
    with pytest.raises(ValueError):
        walk_store.create_walk(duration_minutes=-5)


def test_get_active_walks_returns_every_active_walk(walk_store, seed_walk):
    seed_walk("w1")
    seed_walk("w2", date=T0 + timedelta(days=1))
    seed_walk("w3", active=False)

    assert [w.id for w in walk_store.get_active_walks()] == ["w1", "w2"]
    assert walk_store.get_active_walk().id == "w2"


def test_get_active_walks_when_none_active(walk_store):
    assert walk_store.get_active_walks() == []
    assert walk_store.get_active_walk() is None


def test_get_walk_unknown_id(walk_store):
    with pytest.raises(WalkNotFoundError):
        walk_store.get_walk("missing")


def test_commit_rotation_replaces_pairs_counter_and_time(walk_store, seed_walk):
    seed_walk("w1", pairs=[["A", "B"], ["C", "D"]], current_rotation=1)
    new_pairs = rotate(["A", "B", "C", "D"], random.Random(0))
    ts = T0 + timedelta(minutes=20)

    assert walk_store.commit_rotation("w1", new_pairs, 2, ts) is True

    walk = walk_store.get_walk("w1")
    assert walk.current_rotation == 2
    assert walk.last_rotation_time == ts
    assert walk.pairs == new_pairs


def test_second_commit_with_same_expected_counter_is_rejected(walk_store, seed_walk):
    seed_walk("w1", pairs=[["A", "B"], ["C", "D"]], current_rotation=1)
    first = rotate(["A", "B", "C", "D"], random.Random(1))
    second = rotate(["A", "B", "C", "D"], random.Random(2))

    assert walk_store.commit_rotation("w1", first, 2, T0, expected_rotation=1) is True
    assert walk_store.commit_rotation("w1", second, 2, T0 + timedelta(minutes=1), expected_rotation=1) is False

    walk = walk_store.get_walk("w1")
    assert walk.current_rotation == 2
    assert walk.pairs == first
    assert walk.last_rotation_time == T0


def test_commit_rotation_refuses_past_the_last_rotation(walk_store, seed_walk):
    seed_walk("w1", pairs=[["A", "B"]], current_rotation=3, number_of_rotations=3)

    assert walk_store.commit_rotation("w1", rotate(["A", "B"]), 4, T0) is False
    assert walk_store.get_walk("w1").current_rotation == 3


def test_commit_rotation_unknown_walk(walk_store):
    with pytest.raises(WalkNotFoundError):
        walk_store.commit_rotation("missing", [], 1, T0)


def test_check_in_is_append_if_absent(walk_store, seed_walk):
    seed_walk("w1")

    walk_store.check_in("w1", "A")
    walk_store.check_in("w1", "B")
    walk = walk_store.check_in("w1", "A")

    assert walk.checked_in_users == ["A", "B"]


def test_check_in_unknown_walk(walk_store):
    with pytest.raises(WalkNotFoundError):
        walk_store.check_in("missing", "A")


def test_commit_rotation_does_not_touch_check_ins(walk_store, seed_walk):
    seed_walk("w1", pairs=[["A", "B"]], checked_in=["A", "B"])
    walk_store.check_in("w1", "C")

    walk_store.commit_rotation("w1", rotate(["A", "B"]), 1, T0)

    assert walk_store.get_walk("w1").checked_in_users == ["A", "B", "C"]


def test_join_walk_without_active_walk(walk_store):
    with pytest.raises(NoActiveWalkError):
        walk_store.join_walk("A")


def test_join_walk_pairs_up_joiners(walk_store):
    walk_store.create_walk()

    walk_store.join_walk("A")
    walk = walk_store.join_walk("B")
    assert [p.users for p in walk.pairs] == [["A", "B"]]

    walk = walk_store.join_walk("C")
    assert [p.users for p in walk.pairs] == [["A", "B"], ["C"]]

    walk = walk_store.join_walk("C")
    assert [p.users for p in walk.pairs] == [["A", "B"], ["C"]]


def test_end_walk(walk_store):
    walk = walk_store.create_walk()
    ended = walk_store.end_walk(walk.id)

    assert ended.active is False
    assert walk_store.get_active_walks() == []


def test_subscription_gets_current_state_then_changes(walk_store, seed_walk):
    seen = []
    seed_walk("w1", pairs=[["A", "B"]], checked_in=["A", "B"])

    unsubscribe = walk_store.subscribe_active_walk(seen.append)
    assert len(seen) == 1
    assert seen[0].id == "w1"

    walk_store.commit_rotation("w1", rotate(["A", "B"]), 1, T0)
    assert len(seen) == 2
    assert seen[1].current_rotation == 1

    unsubscribe()
    walk_store.check_in("w1", "C")
    assert len(seen) == 2


def test_subscription_reports_no_active_walk(walk_store):
    seen = []
    walk_store.subscribe_active_walk(seen.append)
    assert seen == [None]


def test_failing_subscriber_does_not_break_commit(walk_store, seed_walk):
    seed_walk("w1", pairs=[["A", "B"]])
    calls = []

    def boom(walk):
        calls.append(walk)
        raise RuntimeError("subscriber crashed")

    walk_store.subscribe_active_walk(boom)
    assert walk_store.commit_rotation("w1", rotate(["A", "B"]), 1, T0) is True
    assert len(calls) == 2


def test_database_errors_become_walk_store_errors(tmp_path):
    # каталога нет, sqlite не может открыть файл
    store = WalkStore(Database(f"sqlite:///{tmp_path / 'missing' / 'walks.db'}"))

    with pytest.raises(WalkStoreError) as exc_info:
        store.get_active_walks()
    assert isinstance(exc_info.value.original_error, SQLAlchemyError)

    with pytest.raises(WalkStoreError):
        store.commit_rotation("w1", rotate(["A", "B"], random.Random(0)), 1, T0)


def test_failed_initial_read_leaves_no_subscription(walk_store, monkeypatch):
    seen = []

    def broken_read():
        raise WalkStoreError("store is down")

    monkeypatch.setattr(walk_store, "get_active_walk", broken_read)
    with pytest.raises(WalkStoreError):
        walk_store.subscribe_active_walk(seen.append)
    monkeypatch.undo()

    walk_store.create_walk()

    assert seen == []


def test_snapshots_are_delivered_in_write_order(walk_store, seed_walk):
    seed_walk("w1", pairs=[["A", "B"]])
    seen = []
    first_write_delivered = threading.Event()

    def slow_subscriber(walk):
        if walk.checked_in_users == ["A"]:
            first_write_delivered.set()
            time.sleep(0.2)
        seen.append(list(walk.checked_in_users))

    walk_store.subscribe_active_walk(slow_subscriber)

    writer = threading.Thread(target=walk_store.check_in, args=("w1", "A"))
    writer.start()
    assert first_write_delivered.wait(timeout=2)
    walk_store.check_in("w1", "B")
    writer.join()

    assert seen == [[], ["A"], ["A", "B"]]
