# shopfront/api/deps.py
from typing import AsyncIterator, Optional
import logging
import uuid

from fastapi import Depends, Header, Request

from shopfront.core.config import Settings, get_settings
from shopfront.db.mongo import get_db
from shopfront.db.redis import get_redis
from shopfront.domain.repositories.session_repo import SessionRepo
from shopfront.domain.repositories.table_gateway import MongoTableGateway, RemoteTableGateway
from shopfront.domain.services.session_svc import SessionRegistry, UserSession

logger = logging.getLogger(__name__)


# Dependency for injecting the table gateway (Mongo-backed) into endpoints/services
def gateway_dep() -> RemoteTableGateway:
    return MongoTableGateway(get_db())


def build_session_registry(settings: Settings) -> SessionRegistry:
    def _factory(session_id: str) -> UserSession:
        return UserSession(
            session_id,
            MongoTableGateway(get_db()),
            redis=get_redis(),
            compare_max_items=settings.compare_max_items,
            history_default_limit=settings.history_default_limit,
            history_cache_ttl=settings.history_cache_ttl,
            history_atomic_views=settings.history_atomic_views,
        )
    return SessionRegistry(_factory, idle_ttl=settings.session_idle_ttl)


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """
    'Authorization: Bearer <token>' -> '<token>'. Anything else is anonymous.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def user_session(
    registry: SessionRegistry = Depends(get_session_registry),
    gateway: RemoteTableGateway = Depends(gateway_dep),
    token: Optional[str] = Depends(bearer_token),
    x_session_id: Optional[str] = Header(default=None),
) -> AsyncIterator[UserSession]:
    """
    The caller's UserSession with this request's auth state applied.
    Sessions are owned by one user per X-Session-Id, so concurrent requests
    with different credentials never share an identity.
    Requests without X-Session-Id get a throwaway session closed after the response.
    """
    auth = await SessionRepo(gateway).resolve(token)
    if x_session_id:
        session = await registry.bind(x_session_id, auth)
        detached = False
    else:
        session = registry.new_detached(f"anon-{uuid.uuid4().hex}")
        detached = True
        await session.apply_auth(auth)
    try:
        yield session
    finally:
        if detached:
            await session.close()


def settings_dep() -> Settings:
    return get_settings()
