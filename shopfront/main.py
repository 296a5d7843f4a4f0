from fastapi import FastAPI
from shopfront.core.config import get_settings
from shopfront.core.lifespan import lifespan
from shopfront.api.v1.routers.health import router as health_router
from shopfront.api.v1.routers.session import router as session_router
from shopfront.api.v1.routers.wishlist import router as wishlist_router
from shopfront.api.v1.routers.compare import router as compare_router
from shopfront.api.v1.routers.history import router as history_router
from shopfront.api.v1.routers.recommendations import router as recommendations_router
from shopfront.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import logging

settings = get_settings()
configure_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS from env (CSV), e.g. "https://shop.example.com,https://www.shop.example.com"
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or ["http://localhost:5173"],
    allow_credentials=False,                        # bearer tokens, no cookies
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["authorization", "content-type", "x-session-id"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(session_router)           # sign-out / session info
app.include_router(wishlist_router)          # wishlist
app.include_router(compare_router)           # compare panel
app.include_router(history_router)           # browsing history
app.include_router(recommendations_router)   # recommended for you
