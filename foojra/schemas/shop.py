"""
Foojra API — Shop schemas
"""
import re
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from foojra.models.shop import ApprovalStatus

MOBILE_PATTERN = re.compile(r"^(\+92|0)?3\d{9}$")
CNIC_PATTERN = r"^\d{5}-\d{7}-\d{1}$"

ShopCategory = Literal[
    "Restaurant", "Fast Food", "Cafe", "Bakery", "Grocery Store", "Pharmacy", "Home Shop", "Others"
]


def _check_mobile(value: str) -> str:
    if not MOBILE_PATTERN.match(re.sub(r"[\s-]", "", value)):
        raise ValueError("Please provide a valid Pakistani mobile number")
    return value


class ShopCoordinates(BaseModel):
    latitude: float | None = None
    longitude: float | None = None


class ShopAddress(BaseModel):
    street: str = Field(..., min_length=1)
    area: str = Field(..., min_length=1)
    city: str = "Gojra"
    postal_code: str = Field(..., min_length=1)
    coordinates: ShopCoordinates | None = None


class BusinessInfo(BaseModel):
    business_name: str = Field(..., min_length=1)
    business_type: ShopCategory = "Restaurant"
    owner_name: str = Field(..., min_length=1)
    owner_cnic: str = Field(..., pattern=CNIC_PATTERN, examples=["12345-1234567-1"])
    tax_number: str | None = None


class DayHours(BaseModel):
    open: str | None = None
    close: str | None = None
    is_closed: bool = False


class ShopRegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    phone: str
    cuisine: str = Field(..., min_length=1, max_length=100)
    category: ShopCategory = "Restaurant"
    address: ShopAddress
    business_info: BusinessInfo
    operating_hours: dict[str, DayHours] | None = None
    images: list[str] = Field(..., min_length=1, max_length=10, description="Image URLs")
    logo: str | None = None
    delivery_fee: Decimal = Field(Decimal("50"), ge=0)
    free_delivery_threshold: Decimal = Field(Decimal("500"), ge=0)
    min_order_amount: Decimal = Field(Decimal("200"), ge=0)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str) -> str:
        return _check_mobile(value)


class ShopUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, min_length=1, max_length=500)
    phone: str | None = None
    cuisine: str | None = Field(None, min_length=1, max_length=100)
    category: ShopCategory | None = None
    address: ShopAddress | None = None
    operating_hours: dict[str, DayHours] | None = None
    images: list[str] | None = Field(None, min_length=1, max_length=10)
    logo: str | None = None
    delivery_fee: Decimal | None = Field(None, ge=0)
    free_delivery_threshold: Decimal | None = Field(None, ge=0)
    min_order_amount: Decimal | None = Field(None, ge=0)

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str | None) -> str | None:
        return value if value is None else _check_mobile(value)


class ApproveShopRequest(BaseModel):
    admin_notes: str | None = None


class RejectShopRequest(BaseModel):
    rejection_reason: str = Field(..., min_length=1)
    admin_notes: str | None = None


class ShopResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    description: str
    phone: str
    cuisine: str
    category: str
    address: ShopAddress
    operating_hours: dict[str, DayHours] | None
    images: list[str]
    logo: str
    delivery_fee: Decimal
    free_delivery_threshold: Decimal
    min_order_amount: Decimal
    approval_status: ApprovalStatus
    rating: float
    total_reviews: int
    is_open: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ShopAdminResponse(ShopResponse):
    business_info: BusinessInfo
    admin_notes: str | None
    rejection_reason: str | None
    approved_at: datetime | None
    rejected_at: datetime | None


class ShopStatusResponse(BaseModel):
    message: str
    is_open: bool
