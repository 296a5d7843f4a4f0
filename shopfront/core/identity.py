# shopfront/core/identity.py
from __future__ import annotations
from datetime import datetime
from typing import Optional
import logging

from pydantic import BaseModel

from shopfront.domain.services.observable import Observable
from shopfront.utils.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    user_id: str
    access_token: str
    expires_at: datetime
    model_config = {"frozen": True}

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = as_utc(now or utcnow())
        return as_utc(self.expires_at) > now


class IdentityProvider(Observable):
    """
    Holds the authenticated session of one UI session.
    Subscribers are called with the new effective user id (or None) every
    time it changes: sign-in, sign-out, switching users, or expiry noticed on read.
    """

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__()
        self._clock = clock or utcnow
        self._session: Optional[AuthSession] = None
        self._effective_user_id: Optional[str] = None

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    def is_session_valid(self, now: Optional[datetime] = None) -> bool:
        return self._session is not None and self._session.is_valid(now or self._clock())

    def current_user_id(self) -> Optional[str]:
        user_id = self._session.user_id if self.is_session_valid() else None
        if user_id != self._effective_user_id:
            if user_id is None:
                logger.info("identity session_expired user_id=%s", self._effective_user_id)
            self._publish(user_id)
        return user_id

    def sign_in(self, session: AuthSession) -> bool:
        """Install `session`. Returns True when the effective user changed."""
        self._session = session
        user_id = session.user_id if session.is_valid(self._clock()) else None
        if user_id == self._effective_user_id:
            return False
        logger.info("identity sign_in user_id=%s", user_id)
        self._publish(user_id)
        return True

    def sign_out(self) -> bool:
        """Drop the session. Returns True when a user was signed in."""
        self._session = None
        if self._effective_user_id is None:
            return False
        logger.info("identity sign_out user_id=%s", self._effective_user_id)
        self._publish(None)
        return True

    def _publish(self, user_id: Optional[str]) -> None:
        self._effective_user_id = user_id
        self.notify(user_id)
