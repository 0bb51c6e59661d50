"""Account API endpoints."""

import logging
import uuid

from litestar import Controller, post
from litestar.exceptions import NotAuthorizedException, ValidationException
from litestar.status_codes import HTTP_200_OK
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ladderboard.auth.accounts import create_access_token, hash_password, verify_password
from ladderboard.models import User

logger = logging.getLogger("Ladderboard.accounts")


# --- Request/Response Schemas ---

class SignupRequest(BaseModel):
    """Request to register an account."""
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    email: str


class AuthResponse(BaseModel):
    """Bearer token plus the account it belongs to."""
    token: str
    user: UserResponse


# --- Controller ---

class AccountsController(Controller):
    """Signup and login."""
    
    path = "/api"
    tags = ["accounts"]
    
    @post("/signup")
    async def signup(
        self,
        data: SignupRequest,
        session: AsyncSession,
    ) -> AuthResponse:
        """Register an account and log it in."""
        email = str(data.email).lower()
        stmt = select(User.id).where(or_(User.username == data.username, User.email == email))
        if await session.scalar(stmt) is not None:
            raise ValidationException("Username or email already registered")
        
        user = User(
            username=data.username,
            email=email,
            password_hash=hash_password(data.password),
        )
        session.add(user)
        try:
            await session.flush()
        except IntegrityError:
            await session.rollback()
            raise ValidationException("Username or email already registered")
        
        response = AuthResponse(
            token=create_access_token(user.id),
            user=UserResponse(id=user.id, username=user.username, email=user.email),
        )
        await session.commit()
        logger.info(f"Account created: {data.username}")
        return response
    
    @post("/login", status_code=HTTP_200_OK)
    async def login(
        self,
        data: LoginRequest,
        session: AsyncSession,
    ) -> AuthResponse:
        """Exchange email and password for a bearer token."""
        email = str(data.email).lower()
        user = await session.scalar(select(User).where(User.email == email))
        if user is None or not verify_password(data.password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise NotAuthorizedException("Invalid credentials")
        
        logger.info(f"Login: {user.username}")
        return AuthResponse(
            token=create_access_token(user.id),
            user=UserResponse(id=user.id, username=user.username, email=user.email),
        )
