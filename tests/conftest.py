from datetime import datetime, timedelta, timezone

import pytest

from core.pairing.types import Pair
from infrastructure.database.models import WalkRecord
from infrastructure.database.session import Database
from infrastructure.database.walk_store import WalkStore

T0 = datetime(2026, 5, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'walks.db'}")
    database.create_all()
    return database


@pytest.fixture
def walk_store(db):
    return WalkStore(db)


@pytest.fixture
def seed_walk(db):
    """Кладёт прогулку в БД напрямую, минуя create_walk."""

    def _seed(
        walk_id="w1",
        pairs=(),
        checked_in=(),
        current_rotation=0,
        number_of_rotations=3,
        duration_minutes=60,
        last_rotation_time=T0,
        active=True,
        date=None,
    ):
        with db.get_session() as session:
            session.add(WalkRecord(
                id=walk_id,
                date=date or last_rotation_time - timedelta(minutes=5),
                active=active,
                duration_minutes=duration_minutes,
                number_of_rotations=number_of_rotations,
                current_rotation=current_rotation,
                last_rotation_time=last_rotation_time,
                checked_in_users=list(checked_in),
                pairs=[
                    Pair(id=f"pair-{i}", users=list(users), color="#FF5733", number=7,
                         is_triple=len(users) == 3).to_dict()
                    for i, users in enumerate(pairs)
                ],
                created_at=last_rotation_time,
            ))
            session.commit()
        return walk_id

    return _seed
