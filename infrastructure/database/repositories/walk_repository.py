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

"""Репозиторий для работы с прогулками и их парами."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from core.pairing.types import Pair, Walk, as_utc
from infrastructure.database.models import WalkRecord
from infrastructure.logging.logger import setup_logger

logger = setup_logger("walk_repository")


def record_to_walk(record: WalkRecord) -> Walk:
    """Переводит строку таблицы walks в доменный Walk."""
    return Walk(
        id=record.id,
        date=as_utc(record.date),
        active=bool(record.active),
        duration_minutes=record.duration_minutes,
        number_of_rotations=record.number_of_rotations,
        current_rotation=record.current_rotation,
        last_rotation_time=as_utc(record.last_rotation_time),
        checked_in_users=list(record.checked_in_users or []),
        pairs=[Pair.from_dict(p) for p in (record.pairs or [])],
        location_name=record.location_name,
        organizer=record.organizer,
    )


class WalkRepository:
    """
    Репозиторий прогулок.

    Методы не коммитят: транзакцией управляет вызывающий код,
    чтобы несколько шагов (например, деактивация + создание) шли одним коммитом.
    """

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, walk_id: str) -> Optional[WalkRecord]:
        """Получает прогулку по ID."""
        return self.session.query(WalkRecord).filter_by(id=walk_id).first()

    def get_for_update(self, walk_id: str) -> Optional[WalkRecord]:
        """Получает прогулку с блокировкой строки (SELECT ... FOR UPDATE, где поддерживается)."""
        return (
            self.session.query(WalkRecord)
            .filter(WalkRecord.id == walk_id)
            .with_for_update()
            .first()
        )

    def get_active(self, newest_first: bool = False, limit: Optional[int] = None) -> List[WalkRecord]:
        """
        Получает активные прогулки, отсортированные по дате.

        Args:
            newest_first: Сначала самые поздние
            limit: Ограничение количества
        """
        order = WalkRecord.date.desc() if newest_first else WalkRecord.date.asc()
        query = (
            self.session.query(WalkRecord)
            .filter(WalkRecord.active.is_(True))
            .order_by(order)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def deactivate_all(self) -> int:
        """Снимает флаг active со всех прогулок. Возвращает число затронутых строк."""
        result = self.session.execute(
            update(WalkRecord)
            .where(WalkRecord.active.is_(True))
            .values(active=False)
        )
        return result.rowcount

    def add(self, record: WalkRecord) -> WalkRecord:
        self.session.add(record)
        self.session.flush()
        logger.info(f"Создана прогулка: id={record.id}, date={record.date}, pairs={len(record.pairs or [])}")
        return record

    def update_rotation(
        self,
        walk_id: str,
        pairs: List[Pair],
        new_rotation_count: int,
        rotation_timestamp: datetime,
        expected_rotation: int,
    ) -> int:
        """
        Условно заменяет пары, счётчик и время ротации одним UPDATE.

        Строка обновляется, только если current_rotation всё ещё равен
        expected_rotation и лимит ротаций не исчерпан.

        Returns:
            Количество обновлённых строк (0 при конфликте или если прогулки нет)
        """
        result = self.session.execute(
            update(WalkRecord)
            .where(
                WalkRecord.id == walk_id,
                WalkRecord.current_rotation == expected_rotation,
                WalkRecord.current_rotation < WalkRecord.number_of_rotations,
            )
            .values(
                pairs=[pair.to_dict() for pair in pairs],
                current_rotation=new_rotation_count,
                last_rotation_time=rotation_timestamp,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_pairs(self, record: WalkRecord, pairs: List[Pair]) -> WalkRecord:
        record.pairs = [pair.to_dict() for pair in pairs]
        return record

    def add_checked_in_user(self, record: WalkRecord, user_id: str) -> bool:
        """Добавляет пользователя в checked_in_users, если его там нет."""
        checked_in = list(record.checked_in_users or [])
        if user_id in checked_in:
            return False
        record.checked_in_users = checked_in + [user_id]
        return True
