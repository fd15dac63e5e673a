"""
Foojra API — Review schemas
"""
from datetime import datetime

from pydantic import BaseModel, Field

from foojra.schemas.common import Pagination


class ShopReviewCreateRequest(BaseModel):
    shop_id: str
    order_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=500)


class ShopReviewUpdateRequest(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    comment: str | None = Field(None, min_length=1, max_length=500)


class ShopReviewResponse(BaseModel):
    id: str
    user_id: str
    shop_id: str
    order_id: str
    rating: int
    comment: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ShopReviewListResponse(BaseModel):
    reviews: list[ShopReviewResponse]
    pagination: Pagination


class Aspects(BaseModel):
    taste: int | None = Field(None, ge=1, le=5)
    presentation: int | None = Field(None, ge=1, le=5)
    portion_size: int | None = Field(None, ge=1, le=5)
    value_for_money: int | None = Field(None, ge=1, le=5)


class MenuItemReviewCreateRequest(BaseModel):
    menu_item_id: str
    order_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1, max_length=500)
    aspects: Aspects = Field(default_factory=Aspects)
    would_recommend: bool = True


class MenuItemReviewUpdateRequest(BaseModel):
    rating: int | None = Field(None, ge=1, le=5)
    comment: str | None = Field(None, min_length=1, max_length=500)
    aspects: Aspects | None = None
    would_recommend: bool | None = None


class MenuItemReviewResponse(BaseModel):
    id: str
    user_id: str
    menu_item_id: str
    order_id: str
    rating: int
    comment: str
    aspects: Aspects
    would_recommend: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MenuItemReviewListResponse(BaseModel):
    reviews: list[MenuItemReviewResponse]
    pagination: Pagination
