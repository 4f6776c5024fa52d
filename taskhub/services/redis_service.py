"""Redis-backed session revocation and sign-in throttling"""

import redis.asyncio as redis
from typing import Optional
from taskhub.config import settings

REVOKED_PREFIX = "taskhub:revoked:"
FAILURES_PREFIX = "taskhub:login_failures:"


class RedisService:
    """Shared Redis client plus the two key families the identity layer needs"""

    _client: Optional[redis.Redis] = None

    @classmethod
    async def get_client(cls) -> redis.Redis:
        if cls._client is None:
            cls._client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
        return cls._client

    @classmethod
    async def close(cls):
        if cls._client:
            await cls._client.aclose()
            cls._client = None

    async def ping(self) -> bool:
        client = await self.get_client()
        return await client.ping()

    async def revoke_session(self, token: str, ttl_seconds: int):
        """
        Mark a session token as signed out.

        The key lives only as long as the token would have, so expired tokens
        need no entry at all.
        """
        if ttl_seconds <= 0:
            return
        client = await self.get_client()
        await client.setex(REVOKED_PREFIX + token, ttl_seconds, "1")

    async def is_session_revoked(self, token: str) -> bool:
        client = await self.get_client()
        return await client.get(REVOKED_PREFIX + token) is not None

    async def record_login_failure(self, client_ip: str) -> int:
        """Count a failed sign-in; the lockout window opens at the first failure"""
        client = await self.get_client()
        key = FAILURES_PREFIX + client_ip
        failures = await client.incr(key)
        if failures == 1:
            await client.expire(key, settings.login_lockout_seconds)
        return failures

    async def clear_login_failures(self, client_ip: str):
        client = await self.get_client()
        await client.delete(FAILURES_PREFIX + client_ip)

    async def login_failures(self, client_ip: str) -> int:
        client = await self.get_client()
        value = await client.get(FAILURES_PREFIX + client_ip)
        return int(value) if value else 0
