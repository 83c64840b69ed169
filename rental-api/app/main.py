import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.core.config import settings
from app.core.db import engine, Base, SCHEMA
from app.core.scheduler import start_scheduler, stop_scheduler
from app.routers import auth, users, items, categories, rentals, chat, stats
from app.routers import settings as settings_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events"""
    # Startup
    with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
    Base.metadata.create_all(bind=engine)

    if settings.SCHEDULER_ENABLED:
        start_scheduler()

    yield

    # Shutdown
    stop_scheduler()


app = FastAPI(
    title="Clan Rental API",
    version="0.1",
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
def health():
    return {"ok": True}


@app.get("/", tags=["system"])
def root():
    return {"service": "clan-rental-api"}


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(users.admin_router)
app.include_router(categories.router)
app.include_router(items.router)
app.include_router(rentals.router)
app.include_router(chat.router)
app.include_router(settings_router.router)
app.include_router(stats.router)
