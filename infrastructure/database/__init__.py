"""
Database infrastructure package.

Экспортирует основные классы для работы с базой данных прогулок.
"""

from .session import Database
from .models import Base, WalkRecord
from .repositories import WalkRepository, record_to_walk
from .walk_store import WalkStore

__all__ = [
    # Database
    "Database",
    "Base",
    # Модели
    "WalkRecord",
    # Репозитории
    "WalkRepository",
    "record_to_walk",
    # Хранилище
    "WalkStore",
]
