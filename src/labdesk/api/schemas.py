"""Pydantic request/response schemas for the LabDesk API.

These are external contracts; handlers receive Protean commands built from
them, never the schemas themselves.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    zip_code: str | None = None
    country: str = "Chile"
    phone: str | None = None
    contact_name: str | None = None


class QuoteItemSchema(BaseModel):
    product_id: str
    product_name: str
    product_code: str | None = None
    quantity: int = Field(ge=1)
    notes: str | None = None


class PricedItemSchema(BaseModel):
    product_id: str | None = None
    unit_price: float = Field(ge=0)
    subtotal: float = Field(ge=0)
    discount: float = Field(ge=0, default=0.0)
    notes: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    product_name: str
    product_code: str | None = None
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    subtotal: float = Field(ge=0)
    discount: float = Field(ge=0, default=0.0)
    tax: float = Field(ge=0, default=0.0)
    notes: str | None = None


class PreparedItemSchema(BaseModel):
    product_id: str
    quantity_prepared: int = 0
    is_prepared: bool
    notes: str | None = None


# ---------------------------------------------------------------------------
# Quote Request Schemas
# ---------------------------------------------------------------------------
class CreateQuoteRequest(BaseModel):
    customer_name: str = Field(..., max_length=200)
    customer_email: str = Field(..., max_length=254)
    items: list[QuoteItemSchema] = Field(default_factory=list)
    user_id: str | None = None
    customer_id: str | None = None
    customer_phone: str | None = None
    organization: str | None = None
    tax_id: str | None = None
    customer_message: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_name": "Laboratorio Andes",
                    "customer_email": "compras@labandes.cl",
                    "items": [
                        {"product_id": "prod-pipette-10", "product_name": "Micropipette 10µL", "quantity": 2}
                    ],
                    "customer_message": "Need these before the end of the month",
                }
            ]
        }
    }


class PriceQuoteRequest(BaseModel):
    items: list[PricedItemSchema]
    subtotal: float = Field(ge=0)
    total: float = Field(ge=0)
    discount: float = Field(ge=0, default=0.0)
    tax: float = Field(ge=0, default=0.0)
    valid_days: int = Field(ge=1, default=30)
    vendor_notes: str | None = None
    quote_notes: str | None = None


class ReviewQuoteRequest(BaseModel):
    approved: bool
    notes: str | None = None
    rejection_reason: str | None = None


class ConvertQuoteRequest(BaseModel):
    payment_method: str | None = None
    shipping_address: AddressSchema | None = None
    shipping_method: str | None = None
    customer_notes: str | None = None


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    customer_name: str = Field(..., max_length=200)
    customer_email: str = Field(..., max_length=254)
    items: list[OrderItemSchema] = Field(default_factory=list)
    subtotal: float = Field(ge=0)
    total: float
    discount: float = Field(ge=0, default=0.0)
    tax: float = Field(ge=0, default=0.0)
    shipping_cost: float = Field(ge=0, default=0.0)
    user_id: str | None = None
    customer_phone: str | None = None
    organization: str | None = None
    tax_id: str | None = None
    payment_method: str | None = None
    shipping_address: AddressSchema | None = None
    shipping_method: str | None = None
    customer_notes: str | None = None


class UpdateOrderRequest(BaseModel):
    status: str | None = None
    payment_status: str | None = None
    payment_method: str | None = None
    tracking_number: str | None = None
    shipping_method: str | None = None
    internal_notes: str | None = None
    customer_notes: str | None = None
    confirm_delivery: bool = False


# ---------------------------------------------------------------------------
# Warehouse Request Schemas
# ---------------------------------------------------------------------------
class RecordProgressRequest(BaseModel):
    items: list[PreparedItemSchema]
    notes: str | None = None


class DispatchRequest(BaseModel):
    carrier: str | None = None
    tracking_number: str | None = None
    notes: str | None = None


class ReassignRequest(BaseModel):
    assign_to: str | None = None
    auto_assign: bool = False


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class QuoteIdResponse(BaseModel):
    quote_id: str


class OrderIdResponse(BaseModel):
    order_id: str


class AssignmentResponse(BaseModel):
    order_id: str
    assigned_to: str


class ProgressResponse(BaseModel):
    order_id: str
    progress: int


class MarkedReadResponse(BaseModel):
    marked: int


class QuoteItemResponse(BaseModel):
    product_id: str
    product_name: str
    product_code: str | None = None
    quantity: int
    unit_price: float | None = None
    subtotal: float | None = None
    discount: float = 0.0
    notes: str | None = None


class QuoteResponse(BaseModel):
    """A quote as its reader may see it; review notes are left out for customers."""

    quote_id: str
    quote_number: str
    status: str
    user_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    organization: str | None = None
    assigned_sales_rep: str | None = None
    assigned_sales_rep_name: str | None = None
    subtotal: float | None = None
    discount: float | None = None
    tax: float | None = None
    total: float | None = None
    valid_until: datetime | None = None
    customer_message: str | None = None
    quote_notes: str | None = None
    vendor_notes: str | None = None
    admin_notes: str | None = None
    rejection_reason: str | None = None
    order_id: str | None = None
    created_at: datetime | None = None
    items: list[QuoteItemResponse] = Field(default_factory=list)


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    product_code: str | None = None
    quantity: int
    unit_price: float
    subtotal: float
    discount: float = 0.0
    tax: float = 0.0
    notes: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    payment_method: str | None = None
    user_id: str | None = None
    customer_name: str
    customer_email: str
    customer_phone: str | None = None
    organization: str | None = None
    quote_id: str | None = None
    quote_number: str | None = None
    subtotal: float
    discount: float = 0.0
    tax: float = 0.0
    shipping_cost: float = 0.0
    total: float
    unit_count: int
    shipping_method: str | None = None
    shipping_address: AddressSchema | None = None
    tracking_number: str | None = None
    customer_notes: str | None = None
    internal_notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    items: list[OrderItemResponse] = Field(default_factory=list)


class PreparationItemResponse(BaseModel):
    product_id: str
    product_name: str
    product_code: str | None = None
    quantity_ordered: int
    quantity_prepared: int
    is_prepared: bool
    notes: str | None = None


class PreparationResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    assigned_to: str | None = None
    assigned_to_name: str | None = None
    assigned_by: str | None = None
    total_items: int
    prepared_items: int
    progress: int
    estimated_minutes: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    items: list[PreparationItemResponse] = Field(default_factory=list)


class NotificationResponse(BaseModel):
    notification_id: str
    notification_type: str
    title: str
    message: str
    priority: str
    read: bool
    related_entity_type: str | None = None
    related_entity_id: str | None = None
    related_entity_number: str | None = None
    action_url: str | None = None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    unread: int
    notifications: list[NotificationResponse]
