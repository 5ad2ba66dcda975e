from datetime import datetime, timedelta, timezone

import pytest

from core.pairing.rotation_policy import (
    is_due,
    minutes_since_last_rotation,
    rotation_interval_minutes,
)
from core.pairing.types import Walk

T = datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc)


def _walk(current_rotation=0, number_of_rotations=3, duration_minutes=60, last_rotation_time=T):
    return Walk(
        id="w1",
        date=T,
        active=True,
        duration_minutes=duration_minutes,
        number_of_rotations=number_of_rotations,
        current_rotation=current_rotation,
        last_rotation_time=last_rotation_time,
    )


def test_interval_is_duration_divided_by_rotations():
    assert rotation_interval_minutes(_walk()) == 20


def test_not_due_one_minute_before_interval():
    assert is_due(_walk(), T + timedelta(minutes=19)) is False


def test_due_exactly_at_interval():
    assert is_due(_walk(), T + timedelta(minutes=20)) is True


def test_due_after_interval():
    assert is_due(_walk(), T + timedelta(minutes=47)) is True


def test_not_due_just_under_interval():
    assert is_due(_walk(), T + timedelta(minutes=20) - timedelta(seconds=1)) is False


@pytest.mark.parametrize("elapsed", [0, 20, 60, 24 * 60])
def test_never_due_once_all_rotations_done(elapsed):
    walk = _walk(current_rotation=3, number_of_rotations=3)
    assert is_due(walk, T + timedelta(minutes=elapsed)) is False


def test_last_rotation_can_still_happen():
    walk = _walk(current_rotation=2, number_of_rotations=3)
    assert is_due(walk, T + timedelta(minutes=20)) is True


def test_fractional_interval():
    walk = _walk(duration_minutes=50, number_of_rotations=4)  # 12.5 минут
    assert is_due(walk, T + timedelta(minutes=12)) is False
    assert is_due(walk, T + timedelta(minutes=12, seconds=30)) is True


def test_naive_datetimes_are_treated_as_utc():
    walk = _walk(last_rotation_time=T.replace(tzinfo=None))
    assert minutes_since_last_rotation(walk, T + timedelta(minutes=5)) == 5
    assert is_due(walk, (T + timedelta(minutes=20)).replace(tzinfo=None)) is True
