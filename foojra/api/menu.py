"""
Foojra API — Menu item routes
"""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foojra.api.shops import get_owned_shop
from foojra.core.errors import NotFoundError, UnauthorizedError
from foojra.db.database import get_db
from foojra.middleware.auth import get_optional_user, require_shop_owner
from foojra.models.menu_item import MenuItem
from foojra.models.shop import Shop
from foojra.models.user import User, UserRole
from foojra.schemas.common import MessageResponse
from foojra.schemas.menu import (
    MenuCategoriesResponse,
    MenuItemBulkUpdateRequest,
    MenuItemBulkUpdateResponse,
    MenuItemCreateRequest,
    MenuItemListResponse,
    MenuItemResponse,
    MenuItemUpdateRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/menu", tags=["menu"])


async def _load_item(db: AsyncSession, item_id: str) -> MenuItem:
    item = await db.get(MenuItem, item_id)
    if item is None:
        raise NotFoundError("Menu item not found")
    return item


async def _owned_item(db: AsyncSession, owner: User, item_id: str) -> MenuItem:
    item = await _load_item(db, item_id)
    shop = await db.get(Shop, item.shop_id)
    if shop is None or shop.owner_id != owner.id:
        raise UnauthorizedError("Not authorized to manage this menu item")
    return item


def _apply_fields(item: MenuItem, payload) -> None:
    """Copy the fields the client sent onto `item`; None means "leave as is"."""
    documents = payload.model_dump(mode="json", exclude_unset=True)
    for field in payload.model_fields_set:
        value = getattr(payload, field)
        if value is None:
            continue
        setattr(item, field, value if field == "base_price" else documents[field])


def _can_view(shop: Shop, viewer: User | None) -> bool:
    # Unapproved shops stay hidden from everyone but their owner and admins
    if shop.is_approved:
        return True
    return viewer is not None and (viewer.role == UserRole.ADMIN or viewer.id == shop.owner_id)


async def _visible_shop(db: AsyncSession, shop_id: str) -> Shop:
    shop = await db.get(Shop, shop_id)
    if shop is None or not _can_view(shop, None):
        raise NotFoundError("Shop not found")
    return shop


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    payload: MenuItemCreateRequest,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    shop = await get_owned_shop(db, owner)
    data = payload.model_dump(mode="json", exclude={"base_price"})
    item = MenuItem(shop_id=shop.id, base_price=payload.base_price, **data)
    db.add(item)
    await db.commit()
    logger.info("Menu item %s added to shop %s", item.id, shop.id)
    return item


@router.get("/my-items", response_model=MenuItemListResponse)
async def my_items(owner: User = Depends(require_shop_owner), db: AsyncSession = Depends(get_db)):
    shop = await get_owned_shop(db, owner)
    result = await db.execute(select(MenuItem).where(MenuItem.shop_id == shop.id).order_by(MenuItem.name))
    return MenuItemListResponse(
        menu_items=[MenuItemResponse.model_validate(i) for i in result.scalars()]
    )


@router.patch("/bulk-update", response_model=MenuItemBulkUpdateResponse)
async def bulk_update_menu_items(
    payload: MenuItemBulkUpdateRequest,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    shop = await get_owned_shop(db, owner)
    wanted = set(payload.menu_item_ids)
    result = await db.execute(
        select(MenuItem).where(MenuItem.id.in_(list(wanted)), MenuItem.shop_id == shop.id)
    )
    items = list(result.scalars())
    if len(items) != len(wanted):
        raise UnauthorizedError("Not authorized to update some menu items")

    for item in items:
        _apply_fields(item, payload.updates)
    await db.commit()
    logger.info("Bulk update of %d menu items in shop %s", len(items), shop.id)
    return MenuItemBulkUpdateResponse(
        message=f"{len(items)} menu items updated successfully", modified_count=len(items)
    )


@router.get("/shop/{shop_id}", response_model=MenuItemListResponse)
async def shop_menu(
    shop_id: str,
    category: str | None = None,
    available_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    await _visible_shop(db, shop_id)
    query = select(MenuItem).where(MenuItem.shop_id == shop_id)
    if category:
        query = query.where(MenuItem.category == category)
    if available_only:
        query = query.where(MenuItem.is_available.is_(True))
    result = await db.execute(query.order_by(MenuItem.category, MenuItem.name))
    return MenuItemListResponse(
        menu_items=[MenuItemResponse.model_validate(i) for i in result.scalars()]
    )


@router.get("/shop/{shop_id}/categories", response_model=MenuCategoriesResponse)
async def shop_categories(shop_id: str, db: AsyncSession = Depends(get_db)):
    await _visible_shop(db, shop_id)
    result = await db.execute(
        select(MenuItem.category)
        .where(MenuItem.shop_id == shop_id, MenuItem.is_available.is_(True))
        .distinct()
        .order_by(MenuItem.category)
    )
    return MenuCategoriesResponse(categories=list(result.scalars()))


@router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_item(
    item_id: str,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    item = await _load_item(db, item_id)
    shop = await db.get(Shop, item.shop_id)
    if shop is None or not _can_view(shop, viewer):
        raise NotFoundError("Menu item not found")
    return item


@router.put("/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: str,
    payload: MenuItemUpdateRequest,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    """Catalog edits never touch existing orders: their line items are snapshots."""
    item = await _owned_item(db, owner, item_id)
    _apply_fields(item, payload)
    await db.commit()
    return item


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_menu_item(
    item_id: str,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    item = await _owned_item(db, owner, item_id)
    await db.delete(item)
    await db.commit()
    logger.info("Menu item %s deleted", item_id)
    return MessageResponse(message="Menu item removed")


@router.patch("/{item_id}/availability", response_model=MenuItemResponse)
async def toggle_availability(
    item_id: str,
    owner: User = Depends(require_shop_owner),
    db: AsyncSession = Depends(get_db),
):
    item = await _owned_item(db, owner, item_id)
    item.is_available = not item.is_available
    await db.commit()
    return item
