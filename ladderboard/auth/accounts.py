"""Password hashing, bearer tokens and the authenticated-user dependency."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from os import getenv

import bcrypt
import jwt
from litestar import Request
from litestar.exceptions import NotAuthorizedException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ladderboard.models import User

logger = logging.getLogger("Ladderboard.auth")

# Token configuration
JWT_SECRET = getenv("JWT_SECRET", "dev-only-insecure-secret")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_HOURS = int(getenv("JWT_EXPIRES_HOURS", "24"))

if JWT_SECRET == "dev-only-insecure-secret":
    logger.warning("JWT_SECRET not set, using the development secret")


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: uuid.UUID) -> str:
    """Signed token naming the user, valid for JWT_EXPIRES_HOURS."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(hours=JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> uuid.UUID:
    """
    Verify a token and return the user id it names.
    
    Raises NotAuthorizedException for expired, forged or malformed tokens.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise NotAuthorizedException("Token expired")
    except jwt.InvalidTokenError:
        raise NotAuthorizedException("Invalid token")
    
    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise NotAuthorizedException("Invalid token payload")


async def provide_current_user(request: Request, session: AsyncSession) -> User:
    """Dependency resolving the `Authorization: Bearer <token>` header to a User."""
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        logger.debug(f"Missing bearer token on {request.url.path}")
        raise NotAuthorizedException("Missing or invalid Authorization header")
    
    user_id = decode_access_token(auth_header.split(" ", 1)[1])
    user = await session.scalar(select(User).where(User.id == user_id))
    if user is None:
        logger.warning(f"Token for unknown user {user_id}")
        raise NotAuthorizedException("User not found")
    return user
