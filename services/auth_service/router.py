from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import Identity, get_current_user
from shared.security.dependencies import oauth2_scheme

from .schemas import TokenResponse, UserCreate, UserLogin, UserResponse
from .service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new parent, student or driver account",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.sign_up(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and receive a JWT access token",
)
async def login(payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await AuthService.sign_in(db, payload)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Revoke the current token")
async def logout(
    identity: Identity = Depends(get_current_user),
    token: str = Depends(oauth2_scheme),
):
    AuthService.sign_out(token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.current_user(db, identity)
