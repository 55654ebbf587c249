"""FastAPI routes for the marketplace — orders, commissions and variants."""

from fastapi import APIRouter, HTTPException, Query

from marketplace.api.schemas import (
    CancelOrderRequest,
    CommissionPreviewRequest,
    CommissionPreviewResponse,
    CommissionResponse,
    CreateOrderRequest,
    EarningsSummaryResponse,
    MarkPaidRequest,
    OrderListResponse,
    OrderResponse,
    RequestReturnRequest,
    ResolveReturnRequest,
    ResolveVariantRequest,
    ResolveVariantResponse,
    SettlementResponse,
    UpdateStatusRequest,
    VariantAxisResponse,
    VendorCommissionResponse,
    VendorGroupResponse,
    VendorRateResponse,
)
from marketplace.catalogue.variants import (
    VariantDefinition,
    default_selection,
    format_variant_label,
    is_option_available,
    resolve_axes,
    resolve_price,
    resolve_stock,
    variant_signature,
)
from marketplace.commission.engine import (
    compute_order_commission,
    total_commission,
    total_vendor_earnings,
    vendor_commission_rate,
)
from marketplace.commission.ledger import SettlementLedger
from marketplace.order.ledger import OrderLedger
from marketplace.order.order import CartLineItem

order_ledger = OrderLedger()
settlement_ledger = SettlementLedger()


def _order_list(orders) -> OrderListResponse:
    return OrderListResponse(orders=[OrderResponse.from_order(o) for o in orders], count=len(orders))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(body: CreateOrderRequest) -> OrderResponse:
    """Place an order from a cart."""
    order = await order_ledger.create(body.model_dump())
    return OrderResponse.from_order(order)


@order_router.get("", response_model=OrderListResponse)
async def list_orders(user_id: str | None = None) -> OrderListResponse:
    """Orders of one user; guest orders when no user is given."""
    return _order_list(order_ledger.orders_for_user(user_id))


@order_router.post("/sync", response_model=OrderListResponse)
async def sync_orders(page: int = Query(default=1, ge=1), limit: int = Query(default=20, ge=1, le=100)):
    """Pull one page of the user's orders from the order backend."""
    return _order_list(await order_ledger.fetch_user_orders(page=page, limit=limit))


@order_router.get("/track/{order_id}", response_model=OrderResponse)
async def track_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(await order_ledger.track(order_id))


@order_router.get("/vendors/{vendor_id}", response_model=OrderListResponse)
async def vendor_orders(vendor_id: str) -> OrderListResponse:
    return _order_list(order_ledger.vendor_orders(vendor_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(await order_ledger.fetch_by_id(order_id))


@order_router.get("/{order_id}/vendors/{vendor_id}", response_model=VendorGroupResponse)
async def vendor_order_items(order_id: str, vendor_id: str) -> VendorGroupResponse:
    group = order_ledger.vendor_order_items(order_id, vendor_id)
    if group is None:
        raise HTTPException(status_code=404, detail=f"Vendor {vendor_id} has no items in order {order_id}")
    return VendorGroupResponse(**group.to_dict())


@order_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> OrderResponse:
    return OrderResponse.from_order(await order_ledger.cancel(order_id, body.reason))


@order_router.post("/{order_id}/returns", response_model=OrderResponse)
async def request_return(order_id: str, body: RequestReturnRequest) -> OrderResponse:
    order = await order_ledger.request_return(order_id, body.reason, vendor_id=body.vendor_id, items=body.items)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/returns/status", response_model=OrderResponse)
async def resolve_return(order_id: str, body: ResolveReturnRequest) -> OrderResponse:
    """Vendor decision on a return request: approved, rejected, processing or completed."""
    order = order_ledger.resolve_return(order_id, body.status, rejection_reason=body.rejection_reason)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_status(order_id: str, body: UpdateStatusRequest) -> OrderResponse:
    """Trusted status update, for fulfilment tooling."""
    return OrderResponse.from_order(order_ledger.update_status(order_id, body.status))


# ---------------------------------------------------------------------------
# Commission Router
# ---------------------------------------------------------------------------
commission_router = APIRouter(prefix="/commissions", tags=["commissions"])


@commission_router.get("/pending", response_model=list[CommissionResponse])
async def pending_commissions() -> list[CommissionResponse]:
    return [CommissionResponse.from_commission(c) for c in settlement_ledger.pending_commissions()]


@commission_router.post("/preview", response_model=CommissionPreviewResponse)
async def preview_commission(body: CommissionPreviewRequest) -> CommissionPreviewResponse:
    """Per-vendor commission for a cart, before any order exists."""
    items = [CartLineItem.from_dict(item.model_dump()) for item in body.items]
    preview = compute_order_commission(items)
    splits = [entry.split for entry in preview]
    return CommissionPreviewResponse(
        vendors=[
            VendorCommissionResponse(
                vendor_id=entry.vendor_id,
                vendor_name=entry.vendor_name,
                subtotal=float(entry.split.subtotal),
                commission_rate=float(entry.split.commission_rate),
                commission=float(entry.split.commission),
                vendor_earnings=float(entry.split.vendor_earnings),
            )
            for entry in preview
        ],
        total_commission=float(total_commission(splits)),
        total_vendor_earnings=float(total_vendor_earnings(splits)),
    )


@commission_router.get("/vendors/{vendor_id}/rate", response_model=VendorRateResponse)
async def vendor_rate(vendor_id: str) -> VendorRateResponse:
    return VendorRateResponse(vendor_id=vendor_id, commission_rate=float(vendor_commission_rate(vendor_id)))


@commission_router.get("/vendors/{vendor_id}", response_model=list[CommissionResponse])
async def vendor_commissions(vendor_id: str, status: str | None = None) -> list[CommissionResponse]:
    return [CommissionResponse.from_commission(c) for c in settlement_ledger.commissions_for_vendor(vendor_id, status)]


@commission_router.get("/vendors/{vendor_id}/summary", response_model=EarningsSummaryResponse)
async def earnings_summary(vendor_id: str) -> EarningsSummaryResponse:
    return EarningsSummaryResponse(vendor_id=vendor_id, **settlement_ledger.earnings_summary(vendor_id))


@commission_router.get("/vendors/{vendor_id}/settlements", response_model=list[SettlementResponse])
async def vendor_settlements(vendor_id: str) -> list[SettlementResponse]:
    return [SettlementResponse.from_settlement(s) for s in settlement_ledger.settlements_for_vendor(vendor_id)]


@commission_router.get("/{commission_id}", response_model=CommissionResponse)
async def get_commission(commission_id: str) -> CommissionResponse:
    return CommissionResponse.from_commission(settlement_ledger.get_commission(commission_id))


@commission_router.post("/{commission_id}/pay", response_model=SettlementResponse)
async def mark_paid(commission_id: str, body: MarkPaidRequest) -> SettlementResponse:
    """Settle a commission. Repeating the call returns the original settlement."""
    settlement = settlement_ledger.mark_paid(commission_id, body.model_dump(exclude_none=True))
    return SettlementResponse.from_settlement(settlement)


# ---------------------------------------------------------------------------
# Variant Router
# ---------------------------------------------------------------------------
variant_router = APIRouter(prefix="/variants", tags=["variants"])


@variant_router.post("/resolve", response_model=ResolveVariantResponse)
async def resolve_variant(body: ResolveVariantRequest) -> ResolveVariantResponse:
    """Price, stock and per-option availability for a selection (the default one when omitted)."""
    definition = VariantDefinition.from_dict(body.definition)
    selection = body.selection if body.selection is not None else default_selection(definition)

    axes = [
        VariantAxisResponse(
            key=axis.key,
            label=axis.label,
            values=list(axis.values),
            available={value: is_option_available(definition, selection, axis.key, value) for value in axis.values},
        )
        for axis in resolve_axes(definition)
    ]
    return ResolveVariantResponse(
        selection=selection,
        signature=variant_signature(selection),
        label=format_variant_label(selection),
        price=resolve_price(definition, selection, body.base_price),
        stock=resolve_stock(definition, selection),
        axes=axes,
    )
