"""Pydantic request/response schemas for the marketplace API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands and aggregates.
"""

from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    id: str
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    vendor_id: str | None = None
    vendor_name: str | None = None
    variant: dict[str, Any] | None = None
    name: str | None = None
    image: str | None = None


class ShippingAddressSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class LineItemResponse(BaseModel):
    product_id: str
    price: float
    quantity: int
    vendor_id: str
    vendor_name: str
    variant: dict[str, Any] | None = None
    name: str | None = None
    image: str | None = None


class VendorGroupResponse(BaseModel):
    vendor_id: str
    vendor_name: str
    items: list[LineItemResponse] = []
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    discount: float = 0.0


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    items: list[CartItemSchema]
    user_id: str | None = None
    shipping_address: ShippingAddressSchema | None = None
    payment_method: str | None = None
    shipping: float = Field(default=0.0, ge=0)
    tax: float = Field(default=0.0, ge=0)
    discount: float = Field(default=0.0, ge=0)
    coupon_code: str | None = None
    shipping_option: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"id": "P1", "price": 100, "quantity": 1, "vendor_id": "A", "vendor_name": "Acme"},
                        {"id": "P2", "price": 50, "quantity": 1, "vendor_id": "B", "vendor_name": "Bolt"},
                    ],
                    "user_id": "user-001",
                    "payment_method": "card",
                    "shipping": 10,
                    "tax": 15,
                    "discount": 0,
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class RequestReturnRequest(BaseModel):
    reason: str
    vendor_id: str | None = None
    items: list[str] | None = None


class ResolveReturnRequest(BaseModel):
    status: str
    rejection_reason: str | None = None


class UpdateStatusRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    id: str
    user_id: str | None = None
    status: str
    provenance: str
    items: list[LineItemResponse] = []
    vendor_groups: list[VendorGroupResponse] = []
    shipping_address: ShippingAddressSchema | None = None
    payment_method: str | None = None
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    coupon_code: str | None = None
    tracking_number: str | None = None
    estimated_delivery: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: str | None = None
    return_status: str | None = None
    return_reason: str | None = None
    return_vendor_id: str | None = None
    return_items: list[str] | None = None
    return_requested_at: str | None = None
    return_rejection_reason: str | None = None
    return_resolved_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(**order.to_snapshot())


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    count: int


# ---------------------------------------------------------------------------
# Commission Schemas
# ---------------------------------------------------------------------------
class MarkPaidRequest(BaseModel):
    payment_method: str | None = None
    transaction_id: str | None = None
    notes: str | None = None


class CommissionResponse(BaseModel):
    id: str
    order_id: str
    vendor_id: str
    vendor_name: str | None = None
    subtotal: float
    commission_rate: float
    commission: float
    vendor_earnings: float
    status: str
    settlement_id: str | None = None
    created_at: str | None = None
    paid_at: str | None = None

    @classmethod
    def from_commission(cls, commission) -> "CommissionResponse":
        return cls(**commission.to_snapshot())


class SettlementResponse(BaseModel):
    id: str
    commission_id: str
    vendor_id: str
    vendor_name: str | None = None
    amount: float
    payment_method: str
    transaction_id: str | None = None
    notes: str = ""
    created_at: str | None = None

    @classmethod
    def from_settlement(cls, settlement) -> "SettlementResponse":
        return cls(**settlement.to_snapshot())


class EarningsSummaryResponse(BaseModel):
    vendor_id: str
    total_earnings: float
    pending_earnings: float
    paid_earnings: float
    total_commission: float
    total_orders: int


class CommissionPreviewRequest(BaseModel):
    items: list[CartItemSchema]


class VendorCommissionResponse(BaseModel):
    vendor_id: str
    vendor_name: str
    subtotal: float
    commission_rate: float
    commission: float
    vendor_earnings: float


class CommissionPreviewResponse(BaseModel):
    vendors: list[VendorCommissionResponse]
    total_commission: float
    total_vendor_earnings: float


class VendorRateResponse(BaseModel):
    vendor_id: str
    commission_rate: float


# ---------------------------------------------------------------------------
# Variant Schemas
# ---------------------------------------------------------------------------
class ResolveVariantRequest(BaseModel):
    definition: dict[str, Any] = {}
    selection: dict[str, Any] | None = None
    base_price: float = Field(default=0.0, ge=0)


class VariantAxisResponse(BaseModel):
    key: str
    label: str
    values: list[str]
    available: dict[str, bool]


class ResolveVariantResponse(BaseModel):
    selection: dict[str, Any]
    signature: str
    label: str
    price: float
    stock: float | None = None
    axes: list[VariantAxisResponse]
