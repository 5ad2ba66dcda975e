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

"""Живое отражение активной прогулки и пары текущего пользователя."""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from core.pairing.join import find_user_pair
from core.pairing.types import Pair, Walk
from infrastructure.database.walk_store import WalkStore
from infrastructure.utils.threading_tools import run_in_executor


@dataclass(frozen=True)
class MirrorSnapshot:
    walk: Optional[Walk]
    pair: Optional[Pair]


def snapshot_for(walk: Optional[Walk], user_id: str) -> MirrorSnapshot:
    """Пара пользователя в прогулке; None, если он ещё не распределён."""
    if walk is None:
        return MirrorSnapshot(walk=None, pair=None)
    return MirrorSnapshot(walk=walk, pair=find_user_pair(walk.pairs, user_id))


class WalkMirror:
    """
    Подписывается на хранилище и пересчитывает пару пользователя
    при каждом изменении. Без опроса: всё через callback подписки.
    """

    def __init__(self, store: WalkStore):
        self.store = store
        self.last: Optional[MirrorSnapshot] = None

    def observe(
        self,
        user_id: str,
        callback: Callable[[Optional[Walk], Optional[Pair]], None],
    ) -> Callable[[], None]:
        """Возвращает функцию отписки. callback получает (walk, pair)."""

        def on_walk(walk: Optional[Walk]) -> None:
            self.last = snapshot_for(walk, user_id)
            callback(self.last.walk, self.last.pair)

        return self.store.subscribe_active_walk(on_walk)

    async def stream(self, user_id: str) -> AsyncIterator[MirrorSnapshot]:
        """Асинхронный поток снимков; первым идёт текущее состояние."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def on_change(walk: Optional[Walk], pair: Optional[Pair]) -> None:
            # запись может прийти из потока пула
            loop.call_soon_threadsafe(queue.put_nowait, MirrorSnapshot(walk=walk, pair=pair))

        # первое чтение из БД идёт в пуле потоков, не в event loop
        unsubscribe = await run_in_executor(self.observe, user_id, on_change)
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()
