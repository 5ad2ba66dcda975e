import asyncio
import contextlib

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from api import walks
from core.pairing.notifier import RotationNotifier
from core.pairing.orchestrator import RotationOrchestrator
from infrastructure.database.session import Database
from infrastructure.database.walk_store import WalkStore
from infrastructure.logging.logger import setup_logger
from infrastructure.scheduler.rotation_scheduler import RotationScheduler

logger = setup_logger("walkpairs")

db = Database.get_instance()
db.create_all()

walk_store = WalkStore(db)
orchestrator = RotationOrchestrator(walk_store, RotationNotifier())
scheduler = RotationScheduler(orchestrator)

app = FastAPI(
    title="WalkPairs",
    version="0.1.0",
    description="Меняем напарников на прогулке каждые несколько минут"
)

# Разрешаем доступ с телефона
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Разрешаем всем
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.db = db
app.state.walk_store = walk_store
app.state.orchestrator = orchestrator

# Подключаем эндпоинты
app.include_router(walks.router)


@app.get("/")
def root():
    return {"status": "ok"}


@app.on_event("startup")
async def start_rotation_worker():
    app.state.rotation_task = asyncio.create_task(scheduler.run_forever())


@app.on_event("shutdown")
async def stop_rotation_worker():
    task = getattr(app.state, "rotation_task", None)
    if task is None:
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    logger.info("[scheduler] rotation worker stopped")
    await orchestrator.drain()
