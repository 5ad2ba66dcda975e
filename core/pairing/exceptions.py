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

"""Исключения движка ротации пар."""


class WalkStoreError(Exception):
    """Хранилище прогулок недоступно. Ошибка временная, можно повторить."""

    def __init__(self, message: str, original_error: Exception = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class WalkNotFoundError(Exception):
    """Прогулка не найдена."""

    def __init__(self, walk_id: str):
        self.walk_id = walk_id
        self.message = f"Walk with id={walk_id} not found"
        super().__init__(self.message)


class NoActiveWalkError(Exception):
    """Нет активной прогулки."""

    def __init__(self, message: str = "NO_ACTIVE_WALK"):
        self.message = message
        super().__init__(self.message)
