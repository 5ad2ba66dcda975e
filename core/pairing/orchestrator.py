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
Периодическая ротация пар во всех активных прогулках.

Один вызов run_once():
1. Берёт все активные прогулки.
2. Для каждой (независимо, с таймаутом) проверяет, пора ли ротация.
3. Оставляет в парах только отметившихся участников.
4. Перемешивает их в новые пары.
5. Записывает результат условным UPDATE по счётчику ротаций.
6. Рассылает уведомления (ошибки рассылки не откатывают запись).

Ошибка одной прогулки не прерывает обработку остальных. Наружу выходит
только невозможность получить сам список активных прогулок.
"""

import asyncio
import enum
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, List, Optional, Set, Tuple

from core.pairing import partitioner
from core.pairing.exceptions import WalkNotFoundError, WalkStoreError
from core.pairing.notifier import RotationNotifier
from core.pairing.rotation_policy import is_due, rotations_left
from core.pairing.types import Pair, Walk, utc_now
from infrastructure.database.walk_store import WalkStore
from infrastructure.logging.logger import setup_logger
from infrastructure.utils.threading_tools import run_in_executor
from settings import settings

logger = setup_logger("rotation")

MIN_USERS_TO_ROTATE = 2


class RotationOutcome(enum.Enum):
    ROTATED = "rotated"
    SKIPPED = "skipped"
    CONFLICT = "conflict"


@dataclass
class RotationReport:
    """Итог одного запуска: id прогулок по категориям."""
    walks_found: int = 0
    rotated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    # не уложились в таймаут; запись, если уже началась, доводится в фоне
    timed_out: List[str] = field(default_factory=list)

    @property
    def rotated_count(self) -> int:
        return len(self.rotated)


def filter_checked_in_pairs(walk: Walk) -> List[Pair]:
    """Пары, в которых оставлены только отметившиеся; пустые пары отбрасываются."""
    checked_in = set(walk.checked_in_users)
    filtered = []
    for pair in walk.pairs:
        users = [user_id for user_id in pair.users if user_id in checked_in]
        if users:
            filtered.append(replace(pair, users=users))
    return filtered


def eligible_users(walk: Walk) -> List[str]:
    """
    Кого перемешивать в этой ротации.

    Сначала отметившиеся участники текущих пар (в порядке пар), затем
    отметившиеся, которые ещё ни в одну пару не попали. Не отметившиеся
    из ротации выпадают.
    """
    users = [user_id for pair in filter_checked_in_pairs(walk) for user_id in pair.users]
    placed = set(users)
    users.extend(user_id for user_id in walk.checked_in_users if user_id not in placed)
    return list(dict.fromkeys(users))


class RotationOrchestrator:
    def __init__(
        self,
        store: WalkStore,
        notifier: RotationNotifier,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        walk_timeout: Optional[float] = None,
        notify_timeout: Optional[float] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.rng = rng or random.Random()
        self.walk_timeout = settings.WALK_PROCESS_TIMEOUT_SECONDS if walk_timeout is None else walk_timeout
        self.notify_timeout = settings.NOTIFY_TIMEOUT_SECONDS if notify_timeout is None else notify_timeout
        self._pending: Set[asyncio.Future] = set()

    async def run_once(self) -> RotationReport:
        """
        Один проход по активным прогулкам.

        Raises:
            WalkStoreError: не удалось получить список активных прогулок
        """
        logger.info("Starting pair rotation check...")
        report = RotationReport()

        walks = await run_in_executor(self.store.get_active_walks)
        report.walks_found = len(walks)

        if not walks:
            logger.info("No active walks found")
            return report

        logger.info(f"Found {len(walks)} active walks")

        for walk in walks:
            try:
                outcome, new_pairs = await asyncio.wait_for(
                    self._rotate(walk, force=False),
                    timeout=self.walk_timeout,
                )
            except asyncio.TimeoutError:
                logger.error(f"[rotation] walk={walk.id} не уложилась в {self.walk_timeout}s, пропускаем")
                report.timed_out.append(walk.id)
                continue
            except (WalkStoreError, WalkNotFoundError) as e:
                logger.error(f"[rotation] walk={walk.id} ошибка хранилища: {e}")
                report.failed.append(walk.id)
                continue
            except Exception as e:
                logger.exception(f"[rotation] Error processing walk {walk.id}: {e}")
                report.failed.append(walk.id)
                continue

            if outcome is RotationOutcome.ROTATED:
                report.rotated.append(walk.id)
                await self._notify(walk.id, new_pairs)
            elif outcome is RotationOutcome.CONFLICT:
                report.conflicts.append(walk.id)
            else:
                report.skipped.append(walk.id)

        logger.info(
            f"Pair rotation check completed. Rotated pairs for {report.rotated_count} walks "
            f"(skipped={len(report.skipped)}, conflicts={len(report.conflicts)}, "
            f"failed={len(report.failed)}, timed_out={len(report.timed_out)})."
        )
        return report

    async def rotate_walk(self, walk_id: str, force: bool = False) -> bool:
        """
        Ротация одной прогулки по запросу.

        Args:
            walk_id: ID прогулки
            force: Не ждать интервала (лимит ротаций всё равно соблюдается)

        Returns:
            True, если новые пары записаны
        """
        walk = await run_in_executor(self.store.get_walk, walk_id)
        outcome, new_pairs = await asyncio.wait_for(
            self._rotate(walk, force=force),
            timeout=self.walk_timeout,
        )
        if outcome is not RotationOutcome.ROTATED:
            return False
        await self._notify(walk.id, new_pairs)
        return True

    async def _rotate(self, walk: Walk, force: bool) -> Tuple[RotationOutcome, List[Pair]]:
        now = self.clock()

        if not rotations_left(walk):
            logger.debug(f"[rotation] walk={walk.id} все ротации выполнены")
            return RotationOutcome.SKIPPED, []
        if not force and not is_due(walk, now):
            return RotationOutcome.SKIPPED, []

        logger.info(f"Rotating pairs for walk {walk.id}")

        users = eligible_users(walk)
        if len(users) < MIN_USERS_TO_ROTATE:
            logger.info(f"[rotation] walk={walk.id}: отметившихся {len(users)}, ротация пропущена")
            return RotationOutcome.SKIPPED, []

        new_pairs = partitioner.rotate(users, self.rng)

        commit = asyncio.ensure_future(run_in_executor(
            self.store.commit_rotation,
            walk.id,
            new_pairs,
            walk.current_rotation + 1,
            now,
            expected_rotation=walk.current_rotation,
        ))
        try:
            committed = await asyncio.shield(commit)
        except asyncio.CancelledError:
            # таймаут: поток с UPDATE не прервать, уведомим, когда он закончит
            self._finish_in_background(walk.id, new_pairs, commit)
            raise
        if not committed:
            logger.info(f"[rotation] walk={walk.id} уже повернули в этом цикле, отказываемся")
            return RotationOutcome.CONFLICT, []

        return RotationOutcome.ROTATED, new_pairs

    def _finish_in_background(self, walk_id: str, new_pairs: List[Pair], commit: asyncio.Future) -> None:
        async def finish() -> None:
            try:
                committed = await commit
            except Exception as e:
                logger.error(f"[rotation] walk={walk_id} запись после таймаута не удалась: {e}")
                return
            if committed:
                logger.warning(f"[rotation] walk={walk_id} ротация записана после таймаута, рассылаем")
                await self._notify(walk_id, new_pairs)

        task = asyncio.ensure_future(finish())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Дожидается записей и рассылок, оставшихся после таймаутов."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _notify(self, walk_id: str, pairs: List[Pair]) -> None:
        try:
            await asyncio.wait_for(self.notifier.broadcast(pairs, walk_id), timeout=self.notify_timeout)
        except asyncio.TimeoutError:
            logger.error(f"[notify] walk={walk_id} рассылка не уложилась в {self.notify_timeout}s")
        except Exception as e:
            logger.exception(f"[notify] walk={walk_id} ошибка рассылки: {e}")
