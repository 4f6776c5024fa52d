"""Identity half of the backend collaborator: sign-in, current user, sign-out"""

import logging
from typing import Optional
from uuid import UUID

from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from taskhub.backend.errors import AuthenticationError, BackendError, RateLimitError
from taskhub.config import settings
from taskhub.models import Profile
from taskhub.monitoring.metrics import metrics_collector
from taskhub.schemas.auth import AuthSession, Identity
from taskhub.services.auth_service import AuthService
from taskhub.services.redis_service import RedisService

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid login credentials"


class IdentityService:
    """Resolves session tokens to identities and issues new sessions"""

    def __init__(self, session_factory: async_sessionmaker, redis_service: Optional[RedisService] = None):
        self.session_factory = session_factory
        self.redis_service = redis_service or RedisService()

    async def _find_profile(self, **criteria) -> Optional[Profile]:
        try:
            async with self.session_factory() as session:
                stmt = select(Profile).filter_by(**criteria)
                result = await session.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Profile lookup failed: {e}")
            raise BackendError(str(getattr(e, "orig", None) or e)) from e

    async def _redis(self, operation, *args):
        try:
            return await operation(*args)
        except RedisError as e:
            logger.error(f"Redis {operation.__name__} failed: {e}")
            raise BackendError(str(e)) from e

    async def sign_in(self, email: str, password: str, client_ip: str) -> AuthSession:
        """
        Authenticate with email and password

        Args:
            email: Profile email
            password: Plain text password
            client_ip: Address used for throttling failed attempts

        Returns:
            AuthSession with a fresh access token

        Raises:
            RateLimitError: Too many failed attempts from client_ip
            AuthenticationError: Unknown email or wrong password
        """
        attempts = await self._redis(self.redis_service.login_failures, client_ip)
        if attempts >= settings.login_max_attempts:
            metrics_collector.record_auth_event("rate_limited")
            minutes = max(settings.login_lockout_seconds // 60, 1)
            raise RateLimitError(
                f"Too many login attempts. Please try again in {minutes} minutes."
            )

        profile = await self._find_profile(email=email.strip().lower())

        if not profile or not AuthService.verify_password(password, profile.password_hash):
            await self._redis(self.redis_service.record_login_failure, client_ip)
            metrics_collector.record_auth_event("login_failed")
            logger.info(f"Failed sign-in for {email} from {client_ip}")
            raise AuthenticationError(INVALID_CREDENTIALS)

        await self._redis(self.redis_service.clear_login_failures, client_ip)

        token = AuthService.create_access_token(user_id=str(profile.id), email=profile.email)
        metrics_collector.record_auth_event("login")
        logger.info(f"Signed in {profile.email}")

        return AuthSession(
            access_token=token,
            expires_in=settings.jwt_expiration_hours * 3600,
            user=Identity(id=profile.id, email=profile.email),
        )

    async def get_current_user(self, token: Optional[str]) -> Optional[Identity]:
        """
        Resolve a session token

        Returns:
            Identity, or None when the token is missing, invalid, revoked or
            its profile no longer exists
        """
        if not token:
            return None

        payload = AuthService.validate_token(token, token_type="access")
        if not payload:
            return None

        if await self._redis(self.redis_service.is_session_revoked, token):
            return None

        try:
            user_id = UUID(payload.get("sub", ""))
        except ValueError:
            return None

        profile = await self._find_profile(id=user_id)
        if not profile:
            return None

        return Identity(id=profile.id, email=profile.email)

    async def sign_out(self, token: Optional[str]) -> None:
        """Revoke a session token until it would have expired anyway"""
        if not token:
            return

        payload = AuthService.decode_token(token)
        if not payload:
            return

        await self._redis(self.redis_service.revoke_session, token, AuthService.seconds_until_expiry(payload))
        metrics_collector.record_auth_event("logout")
        logger.info(f"Signed out {payload.get('email')}")
