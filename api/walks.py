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

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies.runtime import get_orchestrator, get_walk_store
from api.schemas.walks import (
    ActiveWalkOut,
    DeviceTokenIn,
    PairOut,
    RotateResult,
    UserAction,
    WalkCreate,
    WalkOut,
)
from core.pairing.exceptions import NoActiveWalkError, WalkNotFoundError, WalkStoreError
from core.pairing.mirror import snapshot_for
from core.pairing.orchestrator import RotationOrchestrator
from infrastructure.database.walk_store import WalkStore
from infrastructure.firebase.tokens import save_device_token
from infrastructure.logging.logger import setup_logger
from infrastructure.utils.threading_tools import run_in_executor

logger = setup_logger("walks_api")

router = APIRouter(prefix="/api/walks", tags=["Walks"])


def _store_unavailable(e: WalkStoreError) -> HTTPException:
    logger.error(f"[walks] хранилище недоступно: {e}")
    return HTTPException(status_code=503, detail="Walk store is unavailable")


@router.post("", response_model=WalkOut)
async def create_walk(payload: WalkCreate, store: WalkStore = Depends(get_walk_store)) -> WalkOut:
    """
    Создаёт новую активную прогулку.

    Прежние активные прогулки деактивируются в той же транзакции.
    Если переданы participants, они сразу разбиваются на пары.

    Raises:
        HTTPException 503: Хранилище недоступно.
    """
    try:
        walk = await run_in_executor(
            store.create_walk,
            date=payload.date,
            duration_minutes=payload.duration_minutes,
            number_of_rotations=payload.number_of_rotations,
            participants=payload.participants,
            location_name=payload.location_name,
            organizer=payload.organizer,
        )
    except WalkStoreError as e:
        raise _store_unavailable(e)

    logger.info(f"[walks] Создана прогулка {walk.id}, участников={len(payload.participants)}")
    return WalkOut.from_walk(walk)


@router.get("/active", response_model=ActiveWalkOut)
async def get_active_walk(user_id: Optional[str] = None, store: WalkStore = Depends(get_walk_store)) -> ActiveWalkOut:
    """
    Текущая активная прогулка и пара пользователя.

    Args:
        user_id: Если передан, в ответе будет его пара (или null, если он
                 ещё не распределён в этой ротации).

    Raises:
        HTTPException 404: Активной прогулки нет.
    """
    try:
        walk = await run_in_executor(store.get_active_walk)
    except WalkStoreError as e:
        raise _store_unavailable(e)

    if walk is None:
        raise HTTPException(status_code=404, detail="No active walk")

    snapshot = snapshot_for(walk, user_id) if user_id else None
    pair = snapshot.pair if snapshot else None
    return ActiveWalkOut(
        walk=WalkOut.from_walk(walk),
        pair=PairOut.from_pair(pair) if pair else None,
    )


@router.post("/join", response_model=WalkOut)
async def join_walk(payload: UserAction, store: WalkStore = Depends(get_walk_store)) -> WalkOut:
    """Ставит пользователя в пару активной прогулки."""
    try:
        walk = await run_in_executor(store.join_walk, payload.user_id)
    except NoActiveWalkError:
        raise HTTPException(status_code=404, detail="No active walk")
    except WalkStoreError as e:
        raise _store_unavailable(e)
    return WalkOut.from_walk(walk)


@router.post("/{walk_id}/check_in", response_model=WalkOut)
async def check_in(walk_id: str, payload: UserAction, store: WalkStore = Depends(get_walk_store)) -> WalkOut:
    """Отмечает прибытие участника. Повторная отметка ничего не меняет."""
    try:
        walk = await run_in_executor(store.check_in, walk_id, payload.user_id)
    except WalkNotFoundError:
        raise HTTPException(status_code=404, detail="Walk not found")
    except WalkStoreError as e:
        raise _store_unavailable(e)
    return WalkOut.from_walk(walk)


@router.post("/{walk_id}/rotate", response_model=RotateResult)
async def rotate_walk(
    walk_id: str,
    force: bool = False,
    orchestrator: RotationOrchestrator = Depends(get_orchestrator),
) -> RotateResult:
    """
    Ротация пар по запросу.

    Args:
        force: Не ждать окончания интервала ротации.

    Returns:
        rotated=false, если ротация не нужна, участников меньше двух
        или её уже сделал планировщик.
    """
    try:
        rotated = await orchestrator.rotate_walk(walk_id, force=force)
    except WalkNotFoundError:
        raise HTTPException(status_code=404, detail="Walk not found")
    except WalkStoreError as e:
        raise _store_unavailable(e)
    except asyncio.TimeoutError:
        logger.error(f"[walks] Ротация walk={walk_id} не уложилась в таймаут")
        raise HTTPException(status_code=504, detail="Rotation timed out")
    except Exception as e:
        logger.exception(f"[walks] Ошибка ротации walk={walk_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return RotateResult(walk_id=walk_id, rotated=rotated)


@router.post("/{walk_id}/end", response_model=WalkOut)
async def end_walk(walk_id: str, store: WalkStore = Depends(get_walk_store)) -> WalkOut:
    try:
        walk = await run_in_executor(store.end_walk, walk_id)
    except WalkNotFoundError:
        raise HTTPException(status_code=404, detail="Walk not found")
    except WalkStoreError as e:
        raise _store_unavailable(e)
    return WalkOut.from_walk(walk)


@router.post("/tokens")
async def register_token(payload: DeviceTokenIn) -> dict[str, str]:
    """Регистрирует push-токен устройства пользователя."""
    added = await run_in_executor(save_device_token, payload.user_id, payload.token)
    return {"status": "ok" if added else "exists"}
