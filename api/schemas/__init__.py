"""
Схемы API для WalkPairs.

Структура:
- walks: создание прогулки, присоединение, отметка, ротация, токены
"""

from api.schemas.walks import (
    ActiveWalkOut,
    DeviceTokenIn,
    PairOut,
    RotateResult,
    UserAction,
    WalkCreate,
    WalkOut,
)

__all__ = [
    "ActiveWalkOut",
    "DeviceTokenIn",
    "PairOut",
    "RotateResult",
    "UserAction",
    "WalkCreate",
    "WalkOut",
]
