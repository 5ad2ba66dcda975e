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

"""
Схемы для эндпоинта /api/walks.

Содержит модели для создания прогулки, присоединения, отметки
о прибытии и отображения текущей пары участника.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from core.pairing.types import Pair, Walk


class WalkCreate(BaseModel):
    """
    Запрос на создание новой прогулки.

    Все прежние активные прогулки будут деактивированы.

    Attributes:
        date: Время начала (по умолчанию сейчас)
        duration_minutes: Длительность прогулки в минутах
        number_of_rotations: Сколько раз за прогулку менять пары
        participants: Участники для стартового разбиения на пары
    """
    date: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, gt=0, description="Длительность, минуты")
    number_of_rotations: Optional[int] = Field(None, gt=0, description="Количество ротаций")
    participants: List[str] = Field(default_factory=list)
    location_name: Optional[str] = None
    organizer: Optional[str] = None


class UserAction(BaseModel):
    """Действие участника (join / check-in)."""
    user_id: str = Field(..., min_length=1, description="ID пользователя")


class DeviceTokenIn(BaseModel):
    user_id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1, description="FCM/Pushy токен устройства")


class PairOut(BaseModel):
    id: str
    users: List[str]
    color: str
    number: int
    is_triple: bool

    @classmethod
    def from_pair(cls, pair: Pair) -> "PairOut":
        return cls(id=pair.id, users=pair.users, color=pair.color, number=pair.number, is_triple=pair.is_triple)


class WalkOut(BaseModel):
    id: str
    date: datetime
    active: bool
    duration_minutes: int
    number_of_rotations: int
    current_rotation: int
    last_rotation_time: datetime
    checked_in_users: List[str]
    pairs: List[PairOut]
    location_name: Optional[str] = None
    organizer: Optional[str] = None

    @classmethod
    def from_walk(cls, walk: Walk) -> "WalkOut":
        return cls(
            id=walk.id,
            date=walk.date,
            active=walk.active,
            duration_minutes=walk.duration_minutes,
            number_of_rotations=walk.number_of_rotations,
            current_rotation=walk.current_rotation,
            last_rotation_time=walk.last_rotation_time,
            checked_in_users=walk.checked_in_users,
            pairs=[PairOut.from_pair(p) for p in walk.pairs],
            location_name=walk.location_name,
            organizer=walk.organizer,
        )


class ActiveWalkOut(BaseModel):
    """Активная прогулка и пара текущего пользователя (None, если ещё не распределён)."""
    walk: WalkOut
    pair: Optional[PairOut] = None


class RotateResult(BaseModel):
    walk_id: str
    rotated: bool
