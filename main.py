import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import AsyncSessionLocal, engine, init_db, is_single_writer
from api.admin import router as admin_router
from api.requests import router as requests_router
from services.store import RecordStore
from services.sync import ViewSynchronizer
import models  # noqa: F401  (registers tables on Base.metadata)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    app.state.store = RecordStore(AsyncSessionLocal, serialize_sessions=is_single_writer(engine))
    app.state.synchronizer = ViewSynchronizer(app.state.store)
    logger.info("%s ready", settings.app_name)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Short-term loan requests: intake, admin lifecycle and live status",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(requests_router)
app.include_router(admin_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
