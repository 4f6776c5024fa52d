"""Services package"""

from .auth_service import AuthService
from .identity_service import IdentityService
from .redis_service import RedisService

__all__ = ["AuthService", "IdentityService", "RedisService"]
