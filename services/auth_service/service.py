"""
Identity facade: sign up, sign in, sign out and current user.

Roles come from the user's profile and travel inside the access token, so
the booking services never look up session state on their own.
"""
import structlog
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from shared.security import Identity, create_access_token, revoke_access_token

from .models import UserProfile
from .repository import UserRepository
from .schemas import TokenResponse, UserCreate, UserLogin

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    def _issue_token(user: UserProfile) -> TokenResponse:
        token = create_access_token(data={"sub": user.id, "email": user.email}, role=user.user_type)
        return TokenResponse(access_token=token, user_type=user.user_type)

    @staticmethod
    async def sign_up(db: AsyncSession, data: UserCreate) -> TokenResponse:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered",
            )
        user = UserProfile(
            email=data.email,
            name=data.name or data.email.split("@")[0],
            user_type=data.user_type,
            hashed_password=AuthService._hash_password(data.password),
        )
        user = await UserRepository.create(db, user)
        logger.info("user_signed_up", user_id=user.id, user_type=user.user_type)
        return AuthService._issue_token(user)

    @staticmethod
    async def sign_in(db: AsyncSession, data: UserLogin) -> TokenResponse:
        user = await UserRepository.get_by_email(db, data.email)
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return AuthService._issue_token(user)

    @staticmethod
    def sign_out(token: str) -> None:
        if not revoke_access_token(token):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

    @staticmethod
    async def current_user(db: AsyncSession, identity: Identity) -> UserProfile:
        user = await UserRepository.get_by_id(db, identity.user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user
