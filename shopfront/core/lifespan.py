# shopfront/core/lifespan.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from shopfront.db import mongo, redis as r
from shopfront.core.config import get_settings
from shopfront.api.deps import build_session_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is mandatory
    try:
        await mongo.connect()
        logger.info("✅ Mongo connected")
    except Exception as e:
        logger.error("❌ Mongo connection failed: %s", e)
        raise

    # Redis is optional
    if settings.REDIS_URL:
        await r.connect()
    else:
        logger.warning("⚠️ No REDIS_URL provided, history cache disabled")

    app.state.sessions = build_session_registry(settings)

    # Application runs
    yield

    # --- Shutdown ---
    await app.state.sessions.close_all()
    if settings.REDIS_URL:
        await r.disconnect()
    await mongo.disconnect()
    logger.info("🔌 Mongo disconnected")
