# WalkPairs - rotating partners for group walks
# Copyright (C) 2025-2026 Olga Kalinina

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.

"""Решение, пора ли менять пары."""

from datetime import datetime

from core.pairing.types import Walk, as_utc


def rotation_interval_minutes(walk: Walk) -> float:
    return walk.duration_minutes / walk.number_of_rotations


def minutes_since_last_rotation(walk: Walk, now: datetime) -> float:
    return (as_utc(now) - as_utc(walk.last_rotation_time)).total_seconds() / 60


def rotations_left(walk: Walk) -> bool:
    return walk.current_rotation < walk.number_of_rotations


def is_due(walk: Walk, now: datetime) -> bool:
    """
    Ротация нужна, если лимит ротаций не исчерпан и с прошлой
    ротации прошло не меньше интервала duration / rotations.
    """
    return (
        rotations_left(walk)
        and minutes_since_last_rotation(walk, now) >= rotation_interval_minutes(walk)
    )
