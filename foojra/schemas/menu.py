"""
Foojra API — Menu item schemas
"""
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class Variation(BaseModel):
    name: str = Field(..., min_length=1, examples=["Large"])
    price: Decimal = Field(Decimal("0"), description="Added to the item's price")
    description: str | None = None
    is_default: bool = False


class AddOn(BaseModel):
    name: str = Field(..., min_length=1, examples=["Extra Cheese"])
    price: Decimal = Field(Decimal("0"), ge=0)
    category: str | None = None
    is_required: bool = False


class Offers(BaseModel):
    has_discount: bool = False
    discount_percentage: Decimal | None = Field(None, gt=0, le=100)
    discount_price: Decimal | None = Field(None, ge=0)
    offer_description: str | None = None
    valid_until: datetime | None = None

    @model_validator(mode="after")
    def _discount_needs_terms(self):
        if self.has_discount and self.discount_price is None and self.discount_percentage is None:
            raise ValueError("A discount needs either discount_price or discount_percentage")
        return self


class DietaryInfo(BaseModel):
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_halal: bool = True
    is_spicy: bool = False
    spice_level: int = Field(0, ge=0, le=5)
    allergens: list[str] = []


class MenuItemCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    base_price: Decimal = Field(..., ge=0)
    category: str = Field(..., min_length=1, max_length=50)
    sub_category: str | None = None
    preparation_time: int = Field(15, ge=1, le=240)
    variations: list[Variation] = []
    add_ons: list[AddOn] = []
    images: list[str] = []
    tags: list[str] = []
    dietary_info: DietaryInfo = Field(default_factory=DietaryInfo)
    offers: Offers = Field(default_factory=Offers)


class MenuItemUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, min_length=1, max_length=500)
    base_price: Decimal | None = Field(None, ge=0)
    category: str | None = Field(None, min_length=1, max_length=50)
    sub_category: str | None = None
    preparation_time: int | None = Field(None, ge=1, le=240)
    variations: list[Variation] | None = None
    add_ons: list[AddOn] | None = None
    images: list[str] | None = None
    tags: list[str] | None = None
    dietary_info: DietaryInfo | None = None
    offers: Offers | None = None
    is_available: bool | None = None


class MenuItemResponse(BaseModel):
    id: str
    shop_id: str
    name: str
    description: str
    base_price: Decimal
    current_price: Decimal
    category: str
    sub_category: str | None
    preparation_time: int
    variations: list[Variation]
    add_ons: list[AddOn]
    images: list[str]
    tags: list[str]
    dietary_info: DietaryInfo
    offers: Offers
    is_available: bool
    rating: float
    review_count: int
    aspect_ratings: dict[str, float | None] | None
    recommendation_rate: int
    created_at: datetime

    model_config = {"from_attributes": True}


class MenuItemListResponse(BaseModel):
    menu_items: list[MenuItemResponse]


class MenuItemBulkFields(BaseModel):
    category: str | None = Field(None, min_length=1, max_length=50)
    sub_category: str | None = None
    preparation_time: int | None = Field(None, ge=1, le=240)
    offers: Offers | None = None
    is_available: bool | None = None

    @model_validator(mode="after")
    def _something_to_change(self):
        if not any(getattr(self, f) is not None for f in self.model_fields_set):
            raise ValueError("No fields to update")
        return self


class MenuItemBulkUpdateRequest(BaseModel):
    menu_item_ids: list[str] = Field(..., min_length=1)
    updates: MenuItemBulkFields


class MenuItemBulkUpdateResponse(BaseModel):
    message: str
    modified_count: int


class MenuCategoriesResponse(BaseModel):
    categories: list[str]
