"""Redis-backed call session store."""
import logging
from datetime import datetime
from typing import List, Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from app.core.errors import SessionAlreadyExists, SessionConflict, SessionNotFound
from app.services.call_session.models import CallSession
from app.services.call_session.store import DEFAULT_SESSION_TTL, SessionStore
from app.services.persistence.base import CallLog

logger = logging.getLogger(__name__)


class RedisSessionStore(SessionStore):
    """
    Session store shared by every service instance.

    Expiry is left to Redis key TTLs. Replace and end run inside
    WATCH/MULTI/EXEC so a record changed by another instance between the
    read and the write is detected instead of overwritten.
    """

    def __init__(
        self,
        call_log: CallLog,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        ttl_seconds: int = DEFAULT_SESSION_TTL,
        key_prefix: str = "ivr:session:",
    ):
        super().__init__(call_log, ttl_seconds)
        if client is None:
            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self.redis = client
        self.key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def create(
        self, session_id: str, caller_id: str, language: str = "en"
    ) -> CallSession:
        session = CallSession(session_id=session_id, caller_id=caller_id, language=language)
        created = await self.redis.set(
            self._key(session_id),
            session.model_dump_json(),
            ex=self.ttl_seconds,
            nx=True,
        )
        if not created:
            raise SessionAlreadyExists(session_id)
        return session

    async def get(self, session_id: str) -> CallSession:
        raw = await self.redis.get(self._key(session_id))
        if not raw:
            raise SessionNotFound(session_id)
        return CallSession.model_validate_json(raw)

    async def replace(self, session_id: str, session: CallSession) -> CallSession:
        key = self._key(session_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if not raw:
                    raise SessionNotFound(session_id)
                stored = CallSession.model_validate_json(raw)
                if stored.version != session.version:
                    raise SessionConflict(session_id, session.version, stored.version)
                updated = session.model_copy(
                    update={"version": session.version + 1, "updated_at": datetime.utcnow()}
                )
                pipe.multi()
                pipe.set(key, updated.model_dump_json(), ex=self.ttl_seconds)
                await pipe.execute()
            except WatchError:
                logger.warning(f"[SESSION STORE] Concurrent write detected - SessionId: {session_id}")
                raise SessionConflict(session_id, session.version, -1) from None
        return updated

    async def claim(self, session_id: str) -> CallSession:
        key = self._key(session_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if not raw:
                    raise SessionNotFound(session_id)
                pipe.multi()
                pipe.delete(key)
                await pipe.execute()
            except WatchError:
                # Another webhook touched the record; whoever deleted it owns the summary
                raw = await self.redis.getdel(key)
                if not raw:
                    raise SessionNotFound(session_id) from None
        return CallSession.model_validate_json(raw)

    async def restore(self, session: CallSession) -> None:
        # NX: a call that was started again under the same id wins
        await self.redis.set(
            self._key(session.session_id),
            session.model_dump_json(),
            ex=self.ttl_seconds,
            nx=True,
        )

    async def list_active(self) -> List[CallSession]:
        keys = [key async for key in self.redis.scan_iter(match=f"{self.key_prefix}*")]
        if not keys:
            return []
        values = await self.redis.mget(keys)
        return [CallSession.model_validate_json(raw) for raw in values if raw]

    async def close(self) -> None:
        await self.redis.aclose()
