import logging

from fastapi import FastAPI
from pymongo.errors import PyMongoError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from config import CORS_ORIGINS, LOG_LEVEL
from database import get_database, create_indexes, close_mongo_connection
from errors import register_exception_handlers
from routers import users, assignments, media
from utils.logging_middleware import LoggingMiddleware

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Assignment Tracker API")
    await create_indexes(await get_database())
    yield
    # Shutdown
    await close_mongo_connection()

app = FastAPI(title="Assignment Tracker", version="1.0.0", lifespan=lifespan)

register_exception_handlers(app)

# Include routers
app.include_router(users.router)
app.include_router(assignments.router)
app.include_router(media.router)

# Middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/")
async def root():
    return {"message": "Assignment Tracker API is running"}


@app.get("/health")
async def health():
    db = await get_database()
    try:
        await db.command("ping")
        database_status = "ok"
    except PyMongoError as e:
        logger.warning("Health check ping failed: %s", e)
        database_status = "unavailable"
    return {"status": "ok", "database": database_status}
