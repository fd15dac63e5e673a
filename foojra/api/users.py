"""
Foojra API — User, auth and admin user-management routes
"""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.core.config import get_settings
from foojra.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from foojra.core.security import create_access_token, hash_password, verify_password
from foojra.db.database import get_db
from foojra.middleware.auth import get_current_user, require_admin
from foojra.models.user import User, UserRole
from foojra.schemas.auth import (
    AuthResponse,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    RoleUpdateRequest,
    UserListResponse,
    UserResponse,
)
from foojra.schemas.common import Pagination

settings = get_settings()
logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/users", tags=["users"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token({"sub": user.id, "role": user.role.value})
    return AuthResponse(
        **UserResponse.model_validate(user).model_dump(),
        access_token=token,
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email.lower()))
    return result.first() is not None


@router.post("", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a customer or shop owner account and log it in."""
    if payload.role == UserRole.ADMIN:
        raise ValidationError("Admin accounts cannot be self-registered")
    if await _email_taken(db, payload.email):
        raise ConflictError("User already exists")

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        hashed_password=hash_password(payload.password),
        role=payload.role,
        phone=payload.phone,
        address=payload.address.model_dump() if payload.address else None,
    )
    db.add(user)
    await db.commit()
    logger.info("Registered %s user %s", user.role.value, user.id)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email.lower()))
    user: User | None = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.hashed_password):
        raise UnauthorizedError("Invalid email or password")
    if not user.is_active:
        raise UnauthorizedError("Account is disabled")
    return _auth_response(user)


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if payload.email and payload.email.lower() != user.email:
        if await _email_taken(db, payload.email):
            raise ConflictError("Email already in use")
        user.email = payload.email.lower()
    if payload.name is not None:
        user.name = payload.name
    if payload.phone is not None:
        user.phone = payload.phone
    if payload.address is not None:
        user.address = payload.address.model_dump()
    if payload.password:
        user.hashed_password = hash_password(payload.password)
    await db.commit()
    return _auth_response(user)


# ─── Admin ────────────────────────────────────────────────────────────────────

@router.get("/admin/all", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: UserRole | None = None,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in result.scalars()],
        pagination=Pagination.build(page, limit, total),
    )


async def _load_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.get("/admin/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, _: User = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await _load_user(db, user_id)


@router.put("/admin/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: str,
    payload: RoleUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    if user.id == admin.id:
        raise ValidationError("Admins cannot change their own role")
    user.role = payload.role
    await db.commit()
    logger.info("Admin %s set role of %s to %s", admin.id, user.id, user.role.value)
    return user


@router.put("/admin/{user_id}/toggle-status", response_model=UserResponse)
async def toggle_status(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await _load_user(db, user_id)
    if user.id == admin.id:
        raise ValidationError("Admins cannot deactivate themselves")
    user.is_active = not user.is_active
    await db.commit()
    return user
