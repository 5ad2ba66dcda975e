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
Разбиение участников на пары.

Структура результата всегда одна и та же (дуэты + не больше одной тройки),
случайно только содержимое. Источник случайности передаётся снаружи,
в тестах это `random.Random(seed)`.
"""

import random
from typing import Iterable, List, Optional

from core.pairing.types import Pair

PAIR_COLORS = [
    "#FF5733",
    "#33FF57",
    "#3357FF",
    "#FF33A8",
    "#33FFF5",
    "#F5FF33",
    "#C733FF",
    "#33FFA8",
    "#FFC733",
    "#FF9933",
]

# Номер, по которому участники ищут друг друга: 1..99 включительно
PAIR_NUMBER_MIN = 1
PAIR_NUMBER_MAX = 99


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def random_color(rng: Optional[random.Random] = None) -> str:
    return _rng(rng).choice(PAIR_COLORS)


def random_number(rng: Optional[random.Random] = None) -> int:
    return _rng(rng).randint(PAIR_NUMBER_MIN, PAIR_NUMBER_MAX)


def make_pair(position: int, users: List[str], rng: Optional[random.Random] = None) -> Pair:
    """Создаёт пару со случайным цветом и номером."""
    rng = _rng(rng)
    return Pair(
        id=f"pair-{position}",
        users=list(users),
        color=random_color(rng),
        number=random_number(rng),
        is_triple=len(users) == 3,
    )


def shuffle_users(user_ids: Iterable[str], rng: Optional[random.Random] = None) -> List[str]:
    """Равномерно перемешивает уникальных пользователей (Fisher–Yates)."""
    unique = list(dict.fromkeys(user_ids))
    _rng(rng).shuffle(unique)
    return unique


def rotate(user_ids: Iterable[str], rng: Optional[random.Random] = None) -> List[Pair]:
    """
    Перемешивает пользователей и собирает новые пары.

    При нечётном количестве последние трое после перемешивания становятся
    тройкой, поэтому никто не остаётся один.

    Args:
        user_ids: Участники, которых нужно разбить (дубликаты игнорируются)
        rng: Источник случайности

    Returns:
        Список пар: сначала дуэты, тройка (если есть) последней.
        0 пользователей -> [], 1 пользователь -> одна пара из одного человека.
    """
    rng = _rng(rng)
    shuffled = shuffle_users(user_ids, rng)

    if not shuffled:
        return []
    if len(shuffled) == 1:
        return [make_pair(0, shuffled, rng)]

    triple: List[str] = []
    if len(shuffled) % 2 == 1:
        triple = shuffled[-3:]
        shuffled = shuffled[:-3]

    pairs = [
        make_pair(i // 2, shuffled[i:i + 2], rng)
        for i in range(0, len(shuffled), 2)
    ]
    if triple:
        pairs.append(make_pair(len(pairs), triple, rng))

    return pairs
