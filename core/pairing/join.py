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
Присоединение участника к уже идущей прогулке.

Это отдельный путь от ротации: только здесь появляются пары из одного
человека ("жду напарника"). Ротация их не создаёт.
"""

import random
from dataclasses import replace
from typing import List, Optional

from core.pairing.partitioner import make_pair
from core.pairing.types import Pair


def find_user_pair(pairs: List[Pair], user_id: str) -> Optional[Pair]:
    return next((pair for pair in pairs if user_id in pair.users), None)


def place_user(pairs: List[Pair], user_id: str, rng: Optional[random.Random] = None) -> List[Pair]:
    """
    Добавляет пользователя в первую пару, где он один, или создаёт новую.

    Returns:
        Новый список пар (исходный не меняется). Если пользователь уже
        в паре, возвращается копия без изменений.
    """
    if find_user_pair(pairs, user_id):
        return list(pairs)

    waiting = next((pair for pair in pairs if len(pair.users) == 1), None)
    if waiting:
        return [
            replace(pair, users=pair.users + [user_id]) if pair.id == waiting.id else pair
            for pair in pairs
        ]

    return list(pairs) + [make_pair(len(pairs), [user_id], rng)]
