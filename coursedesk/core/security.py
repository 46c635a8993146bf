import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from coursedesk.core.config import JWT_SECRET_KEY, JWT_ACCESS_TOKEN_EXPIRE_MINUTES
from coursedesk.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_WEBSITE = "website"


def hash_password(password: str) -> str:
    """Salted bcrypt hash, stored as text"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.error("Stored password hash is not a valid bcrypt hash")
        return False


class JWTManager:
    def __init__(
        self,
        secret_key: Optional[str] = None,
        expire_minutes: int = JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    ):
        self.secret_key = secret_key or JWT_SECRET_KEY
        if not self.secret_key:
            # Tokens will not survive a restart
            logger.warning("JWT_SECRET_KEY is not set, using an ephemeral secret")
            self.secret_key = secrets.token_urlsafe(32)
        self.algorithm = "HS256"
        self.access_token_expire_minutes = expire_minutes

    def create_access_token(
        self, username: str, role: str, extra_data: Dict[str, Any] = None
    ) -> str:
        """
        Create an access token

        Args:
            username: Account name (admin, website)
            role: Role granted by the token
            extra_data: Additional claims

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        payload = {
            "username": username,
            "role": role,
            "exp": now + timedelta(minutes=self.access_token_expire_minutes),
            "iat": now,
            "type": "access_token",
        }

        if extra_data:
            payload.update(extra_data)

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.info(f"JWT token created for user: {username}, role: {role}")
        return token

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify an access token

        Raises:
            AuthenticationError: invalid, expired or wrong type
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            logger.warning("Invalid JWT token provided")
            raise AuthenticationError("Invalid token")

        if payload.get("type") != "access_token":
            raise AuthenticationError("Invalid token type")

        return payload


jwt_manager = JWTManager()
