"""
Foojra API — Shop registration, owner management and admin approval routes
"""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.core.errors import ConflictError, NotFoundError, ValidationError
from foojra.db.database import get_db, utcnow
from foojra.middleware.auth import get_optional_user, require_admin, require_shop_owner
from foojra.models.shop import ApprovalStatus, Shop
from foojra.models.user import User, UserRole
from foojra.schemas.shop import (
    ApproveShopRequest,
    RejectShopRequest,
    ShopAdminResponse,
    ShopRegisterRequest,
    ShopResponse,
    ShopStatusResponse,
    ShopUpdateRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/shops", tags=["shops"])

MONEY_FIELDS = {"delivery_fee", "free_delivery_threshold", "min_order_amount"}


async def get_owned_shop(db: AsyncSession, owner: User) -> Shop:
    result = await db.execute(select(Shop).where(Shop.owner_id == owner.id))
    shop = result.scalar_one_or_none()
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop


@router.post("/register", response_model=ShopAdminResponse, status_code=status.HTTP_201_CREATED)
async def register_shop(
    payload: ShopRegisterRequest,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    """Register the owner's shop. It stays invisible to customers until approved."""
    existing = await db.execute(select(Shop.id).where(Shop.owner_id == owner.id))
    if existing.first() is not None:
        raise ConflictError("You already have a registered shop")

    data = payload.model_dump(mode="json", exclude=MONEY_FIELDS | {"logo"})
    shop = Shop(
        owner_id=owner.id,
        delivery_fee=payload.delivery_fee,
        free_delivery_threshold=payload.free_delivery_threshold,
        min_order_amount=payload.min_order_amount,
        approval_status=ApprovalStatus.PENDING,
        **data,
    )
    if payload.logo:
        shop.logo = payload.logo
    db.add(shop)
    await db.commit()
    logger.info("Shop %s registered by %s, awaiting approval", shop.id, owner.id)
    return shop


@router.get("/my-shop", response_model=ShopAdminResponse)
async def my_shop(owner: User = Depends(require_shop_owner), db: AsyncSession = Depends(get_db)):
    return await get_owned_shop(db, owner)


@router.put("/my-shop", response_model=ShopAdminResponse)
async def update_my_shop(
    payload: ShopUpdateRequest,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    shop = await get_owned_shop(db, owner)
    # Nested documents are stored in their JSON form; money columns stay Decimal
    documents = payload.model_dump(mode="json", exclude_unset=True)
    for field in payload.model_fields_set:
        value = getattr(payload, field)
        if value is None:
            continue
        setattr(shop, field, value if field in MONEY_FIELDS else documents[field])
    await db.commit()
    return shop


@router.put("/toggle-status", response_model=ShopStatusResponse)
async def toggle_shop_status(owner: User = Depends(require_shop_owner), db: AsyncSession = Depends(get_db)):
    shop = await get_owned_shop(db, owner)
    if not shop.is_approved:
        raise ValidationError("Shop must be approved before it can be opened")
    shop.is_open = not shop.is_open
    await db.commit()
    state = "open" if shop.is_open else "closed"
    return ShopStatusResponse(message=f"Shop is now {state}", is_open=shop.is_open)


# ─── Admin ────────────────────────────────────────────────────────────────────

@router.get("/admin/pending", response_model=list[ShopAdminResponse])
async def pending_shops(
    approval_status: ApprovalStatus = Query(ApprovalStatus.PENDING, alias="status"),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Shop).where(Shop.approval_status == approval_status).order_by(Shop.created_at)
    )
    return list(result.scalars())


async def _load_shop(db: AsyncSession, shop_id: str) -> Shop:
    shop = await db.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    return shop


@router.put("/admin/{shop_id}/approve", response_model=ShopAdminResponse)
async def approve_shop(
    shop_id: str,
    payload: ApproveShopRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    shop = await _load_shop(db, shop_id)
    shop.approval_status = ApprovalStatus.APPROVED
    shop.approved_at = utcnow()
    shop.rejection_reason = None
    shop.admin_notes = payload.admin_notes
    await db.commit()
    logger.info("Shop %s approved by %s", shop.id, admin.id)
    return shop


@router.put("/admin/{shop_id}/reject", response_model=ShopAdminResponse)
async def reject_shop(
    shop_id: str,
    payload: RejectShopRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    shop = await _load_shop(db, shop_id)
    shop.approval_status = ApprovalStatus.REJECTED
    shop.rejected_at = utcnow()
    shop.rejection_reason = payload.rejection_reason
    shop.admin_notes = payload.admin_notes
    await db.commit()
    logger.info("Shop %s rejected by %s", shop.id, admin.id)
    return shop


# Declared last so the static paths above win.
@router.get("/{shop_id}", response_model=ShopResponse)
async def get_shop(
    shop_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    shop = await db.get(Shop, shop_id)
    if shop is None:
        raise NotFoundError("Shop not found")
    privileged = viewer is not None and (viewer.id == shop.owner_id or viewer.role == UserRole.ADMIN)
    if not shop.is_approved and not privileged:
        raise NotFoundError("Shop not found")
    return shop
