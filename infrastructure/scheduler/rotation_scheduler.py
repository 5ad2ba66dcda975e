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
Внешний таймер для оркестратора ротаций.

Каждые ROTATION_CHECK_INTERVAL_SECONDS запускает run_once(); если весь
запуск упал, повторяет до ROTATION_RETRY_COUNT раз с экспоненциальной
паузой, суммарно не дольше ROTATION_MAX_RETRY_SECONDS.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from core.pairing.orchestrator import RotationOrchestrator, RotationReport
from infrastructure.logging.logger import setup_logger
from settings import settings

logger = setup_logger("rotation_scheduler")


class RotationScheduler:
    def __init__(
        self,
        orchestrator: RotationOrchestrator,
        interval_seconds: Optional[float] = None,
        retry_count: Optional[int] = None,
        max_retry_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.orchestrator = orchestrator
        self.interval_seconds = settings.ROTATION_CHECK_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        self.retry_count = settings.ROTATION_RETRY_COUNT if retry_count is None else retry_count
        self.max_retry_seconds = settings.ROTATION_MAX_RETRY_SECONDS if max_retry_seconds is None else max_retry_seconds
        self._sleep = sleep

    def backoff(self, attempt: int, waited: float) -> float:
        """Пауза перед повтором attempt (1, 2, ...), не выходя за общий бюджет."""
        return max(0.0, min(2.0 ** attempt, self.max_retry_seconds - waited))

    async def tick(self) -> Optional[RotationReport]:
        """Один запуск с повторами. None, если все попытки провалились."""
        waited = 0.0
        for attempt in range(self.retry_count + 1):
            try:
                return await self.orchestrator.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if attempt >= self.retry_count:
                    logger.error(f"[scheduler] rotation check failed after {attempt + 1} attempts: {e}")
                    return None
                delay = self.backoff(attempt + 1, waited)
                logger.warning(f"[scheduler] rotation check failed (attempt {attempt + 1}), retry in {delay:.1f}s: {e}")
                await self._sleep(delay)
                waited += delay
        return None

    async def run_forever(self) -> None:
        logger.info(f"[scheduler] rotation worker started, interval={self.interval_seconds}s")
        while True:
            await self.tick()
            await self._sleep(self.interval_seconds)
