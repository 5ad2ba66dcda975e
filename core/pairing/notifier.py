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
Рассылка уведомлений о новых парах.

Fire-and-forget: без повторов и подтверждений доставки. Любая ошибка
логируется и не выходит за пределы broadcast().
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.pairing.types import Pair
from infrastructure.firebase.tokens import get_user_tokens
from infrastructure.logging.logger import setup_logger
from infrastructure.utils.threading_tools import run_in_executor
from settings import settings

logger = setup_logger("rotation_notifier")

PushSender = Callable[..., object]
TokenLookup = Callable[[str], List[str]]

NOTIFICATION_TITLE = "New Walking Partner!"


@dataclass
class NotificationPayload:
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)


def build_payload(pair: Pair, walk_id: str) -> NotificationPayload:
    """Текст и data-поля уведомления для участников одной пары."""
    is_triple = pair.is_triple or len(pair.users) > 2
    if is_triple:
        body = (f"You've been matched with new partners in a group of {len(pair.users)}. "
                f"Look for number {pair.number}!")
    else:
        body = f"You've been matched with a new partner. Look for number {pair.number}!"

    return NotificationPayload(
        title=NOTIFICATION_TITLE,
        body=body,
        data={
            "walkId": str(walk_id),
            "pairId": str(pair.id),
            "pairColor": str(pair.color),
            "pairNumber": str(pair.number),
            "isTriple": "true" if is_triple else "false",
        },
    )


def get_push_sender(provider: Optional[str] = None) -> PushSender:
    """Выбирает транспорт по PUSH_PROVIDER."""
    provider = (provider or settings.PUSH_PROVIDER).lower()
    if provider == "pushy":
        from infrastructure.pushi.push_notifications import send_pushy_notification
        return send_pushy_notification
    if provider == "firebase":
        from infrastructure.firebase.client import send_push
        return send_push
    raise ValueError(f"Unknown PUSH_PROVIDER: {provider}")


class RotationNotifier:
    """Рассылает каждому участнику новой пары сообщение о напарнике."""

    def __init__(self, sender: Optional[PushSender] = None, token_lookup: Optional[TokenLookup] = None):
        self._sender = sender
        self.token_lookup = token_lookup or get_user_tokens

    @property
    def sender(self) -> PushSender:
        if self._sender is None:
            self._sender = get_push_sender()
        return self._sender

    async def broadcast(self, pairs: List[Pair], walk_id: str) -> None:
        """Уведомляет всех пользователей всех пар. Никогда не бросает исключений."""
        tasks = []
        for pair in pairs:
            payload = build_payload(pair, walk_id)
            for user_id in pair.users:
                tasks.append(self.send_to_user(user_id, payload))

        if not tasks:
            return

        results = await asyncio.gather(*tasks, return_exceptions=True)
        failed = sum(1 for r in results if r is not True)
        logger.info(f"[notify] walk={walk_id} отправлено={len(results) - failed} пропущено/ошибок={failed}")

    async def send_to_user(self, user_id: str, payload: NotificationPayload) -> bool:
        try:
            tokens = await run_in_executor(self.token_lookup, user_id)
        except Exception as e:
            logger.error(f"[notify] не удалось получить токены user={user_id}: {e}")
            return False

        if not tokens:
            logger.debug(f"[notify] нет push-токена у user={user_id}, пропускаем")
            return False

        sent = False
        for token in tokens:
            try:
                msg_id = await run_in_executor(
                    self.sender,
                    token=token,
                    title=payload.title,
                    body=payload.body,
                    data=payload.data,
                )
                logger.info(f"[notify] sent msg_id={msg_id} user={user_id} token={token[:12]}…")
                sent = True
            except Exception as e:
                logger.error(f"[notify] send error user={user_id} token={token[:12]}… err={e}")
        return sent
