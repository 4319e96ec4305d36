"""Exclusive lock guarding edits of the shared gateway config file."""

import asyncio
import hashlib
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import text

from baas_engine.common.config import BaasSettings
from baas_engine.common.database import DatabaseManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


def lock_key_for(scope: str) -> int:
    """32-bit key from the first 8 hex chars of md5(scope)."""
    return int(hashlib.md5(scope.encode("utf-8")).hexdigest()[:8], 16)


class GatewayConfigLock:
    """Transaction-scoped advisory lock on the metadata database.

    The key is derived from the tenant database's host:port/name, so every
    instance provisioning into the same tenant database contends for the
    same lock. Callers in this process are also serialized by an asyncio lock.
    """

    def __init__(self, settings: BaasSettings, db: DatabaseManager):
        self.settings = settings
        self.db = db
        self.key = lock_key_for(settings.tenant_db_lock_scope)
        self._local = asyncio.Lock()

    async def run_exclusive(self, action: Callable[[], Awaitable[T]]) -> T:
        async with self._local:
            async with self.db.get_session() as session:
                if self.db.dialect_name == "postgresql":
                    await session.execute(
                        text("SELECT pg_advisory_xact_lock(:key)"), {"key": self.key}
                    )
                logger.debug("Gateway config lock acquired", extra={"lock_key": self.key})
                try:
                    return await action()
                finally:
                    # Released when the session's transaction ends.
                    logger.debug("Gateway config lock released", extra={"lock_key": self.key})
