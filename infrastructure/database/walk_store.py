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
Хранилище прогулок: чтение/запись документов прогулки, поиск активных
и подписка на изменения активной прогулки.

Все методы синхронные; оркестратор вызывает их через пул потоков.
"""

import itertools
import random
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.pairing import partitioner
from core.pairing.exceptions import NoActiveWalkError, WalkNotFoundError, WalkStoreError
from core.pairing.join import place_user
from core.pairing.types import Pair, Walk, utc_now
from infrastructure.database.models import WalkRecord
from infrastructure.database.repositories import WalkRepository, record_to_walk
from infrastructure.database.session import Database
from infrastructure.logging.logger import setup_logger
from settings import settings

logger = setup_logger("walk_store")

ActiveWalkCallback = Callable[[Optional[Walk]], None]


class WalkStore:
    """Адаптер хранилища прогулок поверх SQLAlchemy."""

    def __init__(self, db: Database):
        self.db = db
        self._subscribers: Dict[int, ActiveWalkCallback] = {}
        self._subscriber_ids = itertools.count()
        self._lock = threading.Lock()
        # RLock: подписчик может сам писать в хранилище из callback
        self._publish_lock = threading.RLock()

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Сессия с коммитом в конце; ошибки БД превращаются в WalkStoreError."""
        session = self.db.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"[walk_store] Ошибка БД: {e}")
            raise WalkStoreError("Walk store is unavailable", original_error=e) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ---------- чтение ----------

    def get_active_walks(self) -> List[Walk]:
        """Все активные прогулки (обычно одна, но может быть и больше)."""
        with self._session_scope() as session:
            records = WalkRepository(session).get_active()
            return [record_to_walk(r) for r in records]

    def get_active_walk(self) -> Optional[Walk]:
        """Самая поздняя активная прогулка; её и показывают клиентам."""
        with self._session_scope() as session:
            records = WalkRepository(session).get_active(newest_first=True, limit=1)
            return record_to_walk(records[0]) if records else None

    def get_walk(self, walk_id: str) -> Walk:
        with self._session_scope() as session:
            record = WalkRepository(session).get_by_id(walk_id)
            if record is None:
                raise WalkNotFoundError(walk_id)
            return record_to_walk(record)

    # ---------- ротация ----------

    def commit_rotation(
        self,
        walk_id: str,
        new_pairs: List[Pair],
        new_rotation_count: int,
        rotation_timestamp: datetime,
        expected_rotation: Optional[int] = None,
    ) -> bool:
        """
        Атомарно записывает результат ротации.

        Запись проходит, только если счётчик в БД равен expected_rotation
        (по умолчанию new_rotation_count - 1).

        Returns:
            True, если записано; False, если кто-то уже сделал эту ротацию

        Raises:
            WalkNotFoundError: прогулки нет
            WalkStoreError: БД недоступна
        """
        if expected_rotation is None:
            expected_rotation = new_rotation_count - 1

        with self._session_scope() as session:
            repo = WalkRepository(session)
            updated = repo.update_rotation(
                walk_id,
                new_pairs,
                new_rotation_count,
                rotation_timestamp,
                expected_rotation,
            )
            if not updated and repo.get_by_id(walk_id) is None:
                raise WalkNotFoundError(walk_id)

        if not updated:
            logger.info(
                f"[walk_store] Конфликт ротации walk={walk_id}: "
                f"ожидали current_rotation={expected_rotation}, запись отклонена"
            )
            return False

        logger.info(f"[walk_store] Ротация записана walk={walk_id} rotation={new_rotation_count} pairs={len(new_pairs)}")
        self._publish()
        return True

    # ---------- действия участников и админа ----------

    def create_walk(
        self,
        date: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
        number_of_rotations: Optional[int] = None,
        participants: Optional[List[str]] = None,
        location_name: Optional[str] = None,
        organizer: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> Walk:
        """
        Создаёт новую активную прогулку.

        Все прежние активные прогулки деактивируются в той же транзакции,
        поэтому активной остаётся ровно одна. Если переданы participants,
        они сразу разбиваются на стартовые пары.
        """
        duration_minutes = duration_minutes or settings.DEFAULT_DURATION_MINUTES
        number_of_rotations = number_of_rotations or settings.DEFAULT_NUMBER_OF_ROTATIONS
        if duration_minutes <= 0 or number_of_rotations <= 0:
            raise ValueError("duration_minutes and number_of_rotations must be positive")

        now = utc_now()
        pairs = partitioner.rotate(participants or [], rng)

        with self._session_scope() as session:
            repo = WalkRepository(session)
            deactivated = repo.deactivate_all()
            if deactivated:
                logger.info(f"[walk_store] Деактивировано прогулок: {deactivated}")

            record = repo.add(WalkRecord(
                id=uuid.uuid4().hex,
                date=date or now,
                active=True,
                duration_minutes=duration_minutes,
                number_of_rotations=number_of_rotations,
                current_rotation=0,
                last_rotation_time=now,
                checked_in_users=[],
                pairs=[pair.to_dict() for pair in pairs],
                location_name=location_name,
                organizer=organizer,
                created_at=now,
            ))
            walk = record_to_walk(record)

        self._publish()
        return walk

    def check_in(self, walk_id: str, user_id: str) -> Walk:
        """Отмечает пользователя как пришедшего. Повторная отметка ничего не меняет."""
        with self._session_scope() as session:
            repo = WalkRepository(session)
            record = repo.get_for_update(walk_id)
            if record is None:
                raise WalkNotFoundError(walk_id)
            added = repo.add_checked_in_user(record, user_id)
            walk = record_to_walk(record)

        if added:
            logger.info(f"[walk_store] User {user_id} checked in for walk {walk_id}")
            self._publish()
        return walk

    def join_walk(self, user_id: str, rng: Optional[random.Random] = None) -> Walk:
        """Ставит пользователя в пару активной прогулки (или в новую пару на одного)."""
        with self._session_scope() as session:
            repo = WalkRepository(session)
            records = repo.get_active(newest_first=True, limit=1)
            if not records:
                raise NoActiveWalkError()
            record = repo.get_for_update(records[0].id)
            current = record_to_walk(record)
            pairs = place_user(current.pairs, user_id, rng)
            changed = pairs != current.pairs
            if changed:
                repo.set_pairs(record, pairs)
            walk = record_to_walk(record)

        if changed:
            logger.info(f"[walk_store] User {user_id} joined walk {walk.id}")
            self._publish()
        return walk

    def end_walk(self, walk_id: str) -> Walk:
        with self._session_scope() as session:
            record = WalkRepository(session).get_for_update(walk_id)
            if record is None:
                raise WalkNotFoundError(walk_id)
            record.active = False
            walk = record_to_walk(record)

        logger.info(f"[walk_store] Прогулка {walk_id} завершена")
        self._publish()
        return walk

    # ---------- подписка ----------

    def subscribe_active_walk(self, callback: ActiveWalkCallback) -> Callable[[], None]:
        """
        Подписка на активную прогулку.

        callback вызывается сразу с текущим состоянием (или None),
        затем после каждого изменения, записанного через это хранилище.
        Снимки доставляются по одному и в порядке чтения из БД.

        Returns:
            Функция отписки

        Raises:
            WalkStoreError: не удалось прочитать текущее состояние;
                подписка в этом случае не остаётся
        """
        with self._lock:
            subscription_id = next(self._subscriber_ids)
            self._subscribers[subscription_id] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(subscription_id, None)

        with self._publish_lock:
            try:
                walk = self.get_active_walk()
            except WalkStoreError:
                unsubscribe()
                raise
            self._notify(callback, walk)

        return unsubscribe

    def _publish(self) -> None:
        with self._lock:
            if not self._subscribers:
                return

        # чтение и доставка под одной блокировкой: более старый снимок
        # не может прийти после более нового
        with self._publish_lock:
            try:
                walk = self.get_active_walk()
            except WalkStoreError:
                # подписчики увидят изменение при следующей записи
                return

            with self._lock:
                callbacks = list(self._subscribers.values())
            for callback in callbacks:
                self._notify(callback, walk)

    @staticmethod
    def _notify(callback: ActiveWalkCallback, walk: Optional[Walk]) -> None:
        try:
            callback(walk)
        except Exception as e:
            logger.exception(f"[walk_store] Ошибка в подписчике: {e}")
