# shopfront/domain/repositories/session_repo.py
from __future__ import annotations
from typing import Optional
import logging

from shopfront.core.identity import AuthSession
from shopfront.domain.errors import GatewayError
from shopfront.domain.repositories.table_gateway import RemoteTableGateway
from shopfront.domain.services.constants import TABLE_SESSIONS

logger = logging.getLogger(__name__)


class SessionRepo:
    """
    Resolves bearer access tokens against the `sessions` table
    ({access_token, user_id, expires_at}) maintained by the auth backend.
    """

    def __init__(self, gateway: RemoteTableGateway, table: str = TABLE_SESSIONS):
        self.gateway = gateway
        self.table = table

    async def resolve(self, access_token: Optional[str]) -> Optional[AuthSession]:
        if not access_token:
            return None
        try:
            rows = await self.gateway.select(self.table, {"access_token": access_token}, limit=1)
        except GatewayError as e:
            # an auth lookup failure is treated as anonymous
            logger.warning("session resolve error err=%s", e)
            return None
        if not rows:
            logger.info("session resolve unknown_token")
            return None
        row = rows[0]
        return AuthSession(
            user_id=str(row["user_id"]),
            access_token=access_token,
            expires_at=row["expires_at"],
        )
