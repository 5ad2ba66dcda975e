"""
Репозитории для работы с моделями базы данных.

Репозитории не управляют транзакциями сами: коммит делает
infrastructure/database/walk_store.py.
"""

from .walk_repository import WalkRepository, record_to_walk

__all__ = [
    "WalkRepository",
    "record_to_walk",
]
