from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from infrastructure.database.models import Base
from settings import settings


class Database:
    _instance: Optional["Database"] = None

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = db_url or settings.DATABASE_URL

        connect_args = {}
        if self.db_url.startswith("sqlite"):
            # сессии открываются из пула потоков оркестратора
            connect_args["check_same_thread"] = False

        # Синхронный движок и сессия
        self.engine = create_engine(self.db_url, future=True, connect_args=connect_args)
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

    @classmethod
    def get_instance(cls) -> "Database":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get_session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        """Создаёт таблицы, если их нет (dev и тесты; в проде через alembic)."""
        Base.metadata.create_all(self.engine)
