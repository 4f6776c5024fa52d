"""Password hashing and JWT session tokens"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import bcrypt
from taskhub.config import settings

TOKEN_ISSUER = "taskhub"


class AuthService:
    """Service for handling password hashes and session tokens"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        Hash a password using bcrypt

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @staticmethod
    def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
        """
        Verify a password against its hash

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored hash; profiles without one never match

        Returns:
            True if password matches, False otherwise
        """
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
        except ValueError:
            # Malformed stored hash
            return False

    @staticmethod
    def generate_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None,
        token_type: str = "access"
    ) -> str:
        """
        Generate a JWT token with the provided data

        Args:
            data: Dictionary of claims to include in the token
            expires_delta: Optional lifetime (defaults to jwt_expiration_hours)
            token_type: Value of the ``type`` claim

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))

        to_encode.update({
            "exp": expire,
            "iat": now,
            "iss": TOKEN_ISSUER,
            "type": token_type
        })

        secret = settings.jwt_secret or settings.secret_key
        return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)

    @staticmethod
    def decode_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Decode and validate a JWT token signature and expiry

        Args:
            token: JWT token string to decode

        Returns:
            Dictionary of token claims if valid, None otherwise
        """
        try:
            secret = settings.jwt_secret or settings.secret_key
            return jwt.decode(
                token,
                secret,
                algorithms=[settings.jwt_algorithm],
                issuer=TOKEN_ISSUER
            )
        except JWTError:
            return None

    @staticmethod
    def validate_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """
        Validate a JWT token including signature, expiration, and type

        Args:
            token: JWT token string to validate
            token_type: Expected token type

        Returns:
            Dictionary of token claims if valid, None otherwise
        """
        payload = AuthService.decode_token(token)

        if not payload:
            return None

        if payload.get("type") != token_type:
            return None

        exp = payload.get("exp")
        if exp and datetime.fromtimestamp(exp, tz=timezone.utc) < datetime.now(timezone.utc):
            return None

        return payload

    @staticmethod
    def seconds_until_expiry(payload: Dict[str, Any]) -> int:
        """Remaining lifetime of a decoded token, never negative"""
        exp = payload.get("exp")
        if not exp:
            return 0
        remaining = datetime.fromtimestamp(exp, tz=timezone.utc) - datetime.now(timezone.utc)
        return max(int(remaining.total_seconds()), 0)

    @staticmethod
    def create_access_token(user_id: str, email: str) -> str:
        """
        Create a session token for a profile

        Args:
            user_id: Profile UUID
            email: Profile email

        Returns:
            JWT access token
        """
        return AuthService.generate_token({"sub": user_id, "email": email}, token_type="access")
