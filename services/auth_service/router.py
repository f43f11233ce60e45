from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import LOGIN_RATE_LIMIT
from shared.security import Caller, get_current_user, limiter, require_admin

from .schemas import (
    ProfileUpdate,
    RoleCreate,
    RoleResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from .service import AuthService, RoleService

router = APIRouter(prefix="/auth", tags=["Authentication"])
users_router = APIRouter(prefix="/users", tags=["Users"])
roles_router = APIRouter(prefix="/roles", tags=["Roles"])
public_router = APIRouter(prefix="/auth")

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "auth", "status": "running"}


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.register(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and receive a JWT access token",
)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(request: Request, payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await AuthService.login(db, payload)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the current authenticated user's profile",
)
async def get_me(
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_user_by_id(db, caller.user_id)


@router.patch("/me", response_model=UserResponse, summary="Update the current user's profile")
async def update_me(
    payload: ProfileUpdate,
    caller: Caller = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.update_profile(db, caller.user_id, payload)


@users_router.get("/", response_model=list[UserResponse], dependencies=[Depends(require_admin)])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await AuthService.list_users(db)


@roles_router.get("/", response_model=list[RoleResponse])
async def list_roles(db: AsyncSession = Depends(get_db)):
    return await RoleService.list_roles(db)


@roles_router.post(
    "/",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_role(payload: RoleCreate, db: AsyncSession = Depends(get_db)):
    return await RoleService.create_role(db, payload)
