"""
Foojra API — JWT Authentication Middleware and route guards

The middleware validates the Bearer token on every non-public route and
attaches the decoded claims to request.state.user. Route dependencies then
resolve the claims to an active User and check the role tag.
"""
import re

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.middleware.base import BaseHTTPMiddleware

from foojra.core.errors import UnauthorizedError
from foojra.core.security import decode_token
from foojra.db.database import get_db
from foojra.models.user import User, UserRole

# Paths that do NOT require authentication, for any method
PUBLIC_PATHS = {
    "/",
    "/health",
    "/metrics",
    "/docs",
    "/openapi.json",
}

# (methods, path pattern) pairs that do NOT require authentication
PUBLIC_ROUTES = [
    ({"POST"}, re.compile(r"^/api/users/?$")),
    ({"POST"}, re.compile(r"^/api/users/login/?$")),
    ({"GET"}, re.compile(r"^/api/shops/(?!my-shop$)[^/]+$")),
    ({"GET"}, re.compile(r"^/api/menu/shop/[^/]+$")),
    ({"GET"}, re.compile(r"^/api/menu/shop/[^/]+/categories$")),
    ({"GET"}, re.compile(r"^/api/menu/(?!my-items$)[^/]+$")),
    ({"GET"}, re.compile(r"^/api/reviews/shop/[^/]+$")),
    ({"GET"}, re.compile(r"^/api/menu-item-reviews/item/[^/]+$")),
]

ROLE_LABELS = {
    UserRole.CUSTOMER: "customer",
    UserRole.SHOP_OWNER: "shop owner",
    UserRole.ADMIN: "admin",
}


def is_public(method: str, path: str) -> bool:
    if path in PUBLIC_PATHS or path.startswith("/metrics"):
        return True
    return any(method in methods and pattern.match(path) for methods, pattern in PUBLIC_ROUTES)


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Intercepts every request. Validates JWT Bearer token.
    Attaches decoded claims to request.state.user on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        auth_header = request.headers.get("Authorization", "")

        if request.method == "OPTIONS" or is_public(request.method, request.url.path):
            # Public routes still see who is calling when a valid token is sent
            if auth_header.startswith("Bearer "):
                try:
                    request.state.user = decode_token(auth_header.split(" ", 1)[1])
                except JWTError:
                    pass
            return await call_next(request)

        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=401,
                content={"detail": "Not authorized, no token"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header.split(" ", 1)[1]
        try:
            request.state.user = decode_token(token)
        except JWTError:
            return JSONResponse(
                status_code=401,
                content={"detail": "Not authorized, token failed"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    claims = getattr(request.state, "user", None)
    if not claims or not claims.get("sub"):
        raise UnauthorizedError("Not authorized, no token")
    user = await db.get(User, claims["sub"])
    if user is None or not user.is_active:
        raise UnauthorizedError("User not found")
    return user


async def get_optional_user(request: Request, db: AsyncSession = Depends(get_db)) -> User | None:
    claims = getattr(request.state, "user", None)
    if not claims or not claims.get("sub"):
        return None
    user = await db.get(User, claims["sub"])
    return user if user is not None and user.is_active else None


def require_roles(*roles: UserRole):
    """Route guard: the authenticated user must carry one of `roles`."""
    async def guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            label = " or ".join(ROLE_LABELS[r] for r in roles)
            raise UnauthorizedError(f"Not authorized as {label}")
        return user
    return guard


require_customer = require_roles(UserRole.CUSTOMER)
require_shop_owner = require_roles(UserRole.SHOP_OWNER)
require_admin = require_roles(UserRole.ADMIN)
