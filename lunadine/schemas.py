"""
Pydantic Schemas for Request/Response Validation

One explicit request struct per endpoint: missing fields, unknown enum
values and out-of-range ratings are rejected before any service runs.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lunadine.models import OrderType, ServiceRequestType


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CustomizationChoice(BaseModel):
    """A chosen option, stored by label only."""
    group: str = Field(..., min_length=1, max_length=100, examples=["Spice Level"])
    option: str = Field(..., min_length=1, max_length=100, examples=["Medium"])


class CartLine(BaseModel):
    """Single line in an order cart."""
    branch_menu_item_id: int = Field(..., examples=[1])
    # Strict: JSON true/false or "2" are not quantities. Range is checked by
    # the pricing engine so direct callers get it too
    quantity: int = Field(..., strict=True, examples=[2])
    customizations: List[CustomizationChoice] = Field(default_factory=list)


class OrderCreate(BaseModel):
    """Request schema for placing a new order."""

    branch_id: int = Field(..., examples=[1])
    order_type: OrderType = Field(..., examples=["dine-in"])
    items: List[CartLine] = Field(..., min_length=1)
    promo_code: Optional[str] = Field(None, max_length=50, examples=["LUNA10"])
    table_id: Optional[int] = Field(None, examples=[3])

    # Customer Info
    customer_name: Optional[str] = Field(None, max_length=100, examples=["John Doe"])
    customer_phone: Optional[str] = Field(None, max_length=20, examples=["+8801712345678"])
    customer_address: Optional[str] = Field(None, max_length=500)

    @field_validator("promo_code")
    @classmethod
    def blank_promo_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        return v


class PromoCodeLookup(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, examples=["SAVE20"])


class Ratings(BaseModel):
    overall: int = Field(..., ge=1, le=5)
    food: Optional[int] = Field(None, ge=1, le=5)
    service: Optional[int] = Field(None, ge=1, le=5)


class FeedbackCreate(BaseModel):
    """Feedback for a placed order, addressed by its external id."""
    order_id: str = Field(..., min_length=1, examples=["ORD3F9A0C2B7D114E55"])
    ratings: Ratings
    item_feedback: List[dict[str, Any]] = Field(default_factory=list)
    comment: Optional[str] = Field(None, max_length=2000)


class ServiceRequestCreate(BaseModel):
    branch_id: int
    table_id: int
    request_type: ServiceRequestType = Field(..., examples=["water"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class BranchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: Optional[str]
    status: str
    phone: Optional[str]


class TableResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    table_identifier: str
    capacity: int


class CustomizationOptionResponse(BaseModel):
    id: int
    name: str
    price: float


class CustomizationGroupResponse(BaseModel):
    id: int
    name: str
    type: str
    options: List[CustomizationOptionResponse]


class MenuItemResponse(BaseModel):
    branch_menu_item_id: int
    price: float
    is_available: bool
    master_item_id: int
    name: str
    description: Optional[str]
    image_url: Optional[str]
    tags: List[str]
    category_id: int
    category_name: str
    customizations: List[CustomizationGroupResponse]


class MenuCategoryResponse(BaseModel):
    id: int
    name: str
    items: List[MenuItemResponse]


class MenuResponse(BaseModel):
    categories: List[MenuCategoryResponse]


class OrderCreateResponse(BaseModel):
    """Response after successfully placing an order."""
    order_id: str
    status: str
    estimated_completion_time: Optional[str]


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str
    estimated_completion_time: Optional[str]


class PromoCodeResponse(BaseModel):
    code: str
    type: str
    discount: float
    min_order_amount: float


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    timestamp: datetime
