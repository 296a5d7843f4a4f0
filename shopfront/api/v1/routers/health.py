# shopfront/api/v1/routers/health.py
import time
import subprocess
from fastapi import APIRouter, Request
from shopfront.core.config import get_settings
from shopfront.db import mongo
from shopfront.db.redis import get_redis  # returns Redis instance or None

router = APIRouter()
START_TIME = time.time()


def _git_sha(short: bool = True) -> str:
    try:
        cmd = ["git", "rev-parse", "--short" if short else "HEAD"]
        return subprocess.check_output(cmd, stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


def _is_ok(v) -> bool:
    return v in ("ok", "skipped")


@router.get("/health")
async def health(request: Request):
    """
    Tolerant health check:
    - ping Mongo via Motor
    - Redis 'skipped' when not configured (history cache disabled)
    - basic app info and active UI sessions
    """
    settings = get_settings()
    sessions = getattr(request.app.state, "sessions", None)
    checks: dict[str, object] = {
        "app_name": settings.APP_NAME,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
        "version": settings.GIT_SHA if settings.GIT_SHA != "unknown" else _git_sha(),
        "uptime_seconds": int(time.time() - START_TIME),
        "active_sessions": len(sessions) if sessions is not None else 0,
    }

    # --- Mongo ---
    try:
        db = mongo.get_db()
        await db.command("ping")
        checks["mongodb"] = "ok"
    except Exception as e:
        checks["mongodb"] = f"error: {e}"

    # --- Redis (tolerant) ---
    try:
        r = get_redis()
        if r:
            await r.ping()
            checks["redis"] = "ok"
        else:
            checks["redis"] = "skipped"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    status = "ok" if all(_is_ok(checks.get(k)) for k in ("mongodb", "redis")) else "error"

    return {"status": status, "checks": checks, "timestamp": int(time.time())}
