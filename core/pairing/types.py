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

"""Доменные типы прогулки и пар."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def as_utc(value: datetime) -> datetime:
    """Наивное время считаем UTC (SQLite теряет tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Pair:
    """Группа из 2 (или 3) участников на одно окно ротации."""
    id: str
    users: List[str]
    color: str
    number: int
    is_triple: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "users": list(self.users),
            "color": self.color,
            "number": self.number,
            "isTriple": self.is_triple,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pair":
        users = list(data.get("users") or [])
        return cls(
            id=str(data["id"]),
            users=users,
            color=data.get("color", ""),
            number=int(data.get("number", 0)),
            # в старых записях флага может не быть
            is_triple=bool(data.get("isTriple", len(users) > 2)),
        )


@dataclass
class Walk:
    """Одна групповая прогулка со своим состоянием пар."""
    id: str
    date: datetime
    active: bool
    duration_minutes: int
    number_of_rotations: int
    current_rotation: int
    last_rotation_time: datetime
    checked_in_users: List[str] = field(default_factory=list)
    pairs: List[Pair] = field(default_factory=list)
    location_name: Optional[str] = None
    organizer: Optional[str] = None

    @property
    def rotation_interval_minutes(self) -> float:
        return self.duration_minutes / self.number_of_rotations

    @property
    def participants(self) -> List[str]:
        """Все пользователи из текущих пар, в порядке пар."""
        return [user_id for pair in self.pairs for user_id in pair.users]
