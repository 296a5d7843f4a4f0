import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from redis.asyncio import Redis

from shopfront.core.identity import AuthSession, IdentityProvider
from shopfront.domain.repositories.product_repo import ProductRepo
from shopfront.domain.repositories.table_gateway import RemoteTableGateway
from shopfront.domain.services.browsing_history_svc import BrowsingHistoryTracker
from shopfront.domain.services.compare_svc import CompareStore
from shopfront.domain.services.constants import COMPARE_MAX_ITEMS, HISTORY_DEFAULT_LIMIT
from shopfront.domain.services.notices import NoticeSink
from shopfront.domain.services.wishlist_svc import WishlistStore
from shopfront.utils.clock import Clock

logger = logging.getLogger(__name__)


class UserSession:
    """
    Everything one UI session owns: its identity, notices and the three stores,
    built once and handed to consumers by reference.
    """

    def __init__(
        self,
        session_id: str,
        gateway: RemoteTableGateway,
        *,
        redis: Optional[Redis] = None,
        compare_max_items: int = COMPARE_MAX_ITEMS,
        history_default_limit: int = HISTORY_DEFAULT_LIMIT,
        history_cache_ttl: int = 300,
        history_atomic_views: bool = True,
        clock: Optional[Clock] = None,
    ):
        self.session_id = session_id
        self.identity = IdentityProvider(clock)
        self.notices = NoticeSink()
        self.products = ProductRepo(gateway)
        self.wishlist = WishlistStore(gateway, self.identity, self.notices, self.products)
        self.compare = CompareStore(self.notices, max_items=compare_max_items)
        self.history = BrowsingHistoryTracker(
            gateway,
            self.identity,
            self.products,
            redis,
            cache_ttl=history_cache_ttl,
            default_limit=history_default_limit,
            atomic=history_atomic_views,
            clock=clock,
        )
        self.last_used = time.monotonic()
        self.closed = False

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.current_user_id()

    async def apply_auth(self, auth: Optional[AuthSession]) -> bool:
        """
        Install the request's auth state. When the effective user changes
        (login, logout, switch, expiry) the previous user's history cache is
        dropped and the wishlist is re-synchronized for the new user.
        """
        previous = self.identity.current_user_id()
        if auth is None:
            self.identity.sign_out()
        else:
            self.identity.sign_in(auth)
        current = self.identity.current_user_id()
        if previous == current:
            return False

        logger.info("session identity_change session_id=%s from=%s to=%s", self.session_id, previous, current)
        await self.history.invalidate(previous)
        await self.wishlist.fetch_all()
        return True

    async def sign_out(self) -> None:
        await self.apply_auth(None)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.identity.sign_out()
        self.compare.close()
        self.wishlist.close()
        self.history.close()
        self.identity.clear_listeners()
        logger.debug("session closed session_id=%s", self.session_id)


SessionFactory = Callable[[str], UserSession]
SessionKey = Tuple[str, Optional[str]]


class SessionRegistry:
    """
    Process-local map of (UI session id, user id) -> UserSession.
    A UserSession never changes owner: a request arriving on a known session id
    with a different user (or anonymously) gets a session of its own, so two
    overlapping requests can never run as each other.
    Sessions idle longer than `idle_ttl` seconds are closed on the next acquire.
    """

    def __init__(self, factory: SessionFactory, idle_ttl: int = 1800, clock: Callable[[], float] = time.monotonic):
        self._factory = factory
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: Dict[SessionKey, UserSession] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return any(sid == session_id for sid, _ in self._sessions)

    def new_detached(self, session_id: str) -> UserSession:
        """A session that is not registered; the caller closes it."""
        return self._factory(session_id)

    async def acquire(self, session_id: str, user_id: Optional[str] = None) -> UserSession:
        key = (session_id, user_id)
        async with self._lock:
            await self._purge_idle_locked()
            session = self._sessions.get(key)
            if session is None:
                session = self._factory(session_id)
                self._sessions[key] = session
                logger.info(
                    "session created session_id=%s user_id=%s active=%s", session_id, user_id, len(self._sessions)
                )
            session.last_used = self._clock()
            return session

    async def bind(self, session_id: str, auth: Optional[AuthSession]) -> UserSession:
        """The session owned by `auth`'s user under `session_id`, with `auth` applied."""
        session = await self.acquire(session_id, auth.user_id if auth else None)
        await session.apply_auth(auth)
        return session

    async def discard(self, session_id: str) -> bool:
        """Close every session registered under `session_id`, whoever owns it."""
        async with self._lock:
            keys = [key for key in self._sessions if key[0] == session_id]
            sessions = [self._sessions.pop(key) for key in keys]
        for session in sessions:
            await session.close()
        return bool(sessions)

    async def purge_idle(self) -> int:
        async with self._lock:
            return await self._purge_idle_locked()

    async def _purge_idle_locked(self) -> int:
        now = self._clock()
        idle = [key for key, s in self._sessions.items() if now - s.last_used > self._idle_ttl]
        for key in idle:
            await self._sessions.pop(key).close()
        if idle:
            logger.info("session purged idle=%s active=%s", len(idle), len(self._sessions))
        return len(idle)

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()
