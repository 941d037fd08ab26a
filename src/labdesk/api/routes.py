"""FastAPI endpoints for quotes, orders, the warehouse and notifications.

The caller is identified by the ``X-User-*`` headers set by the gateway;
``X-Origin`` is recorded as the update origin on order changes.
"""

import json

from fastapi import APIRouter, Depends, Header, HTTPException
from protean.utils.globals import current_domain

from labdesk.access import Actor, authorize
from labdesk.api.schemas import (
    AddressSchema,
    AssignmentResponse,
    ConvertQuoteRequest,
    CreateQuoteRequest,
    DispatchRequest,
    MarkedReadResponse,
    NotificationListResponse,
    NotificationResponse,
    OrderIdResponse,
    OrderItemResponse,
    OrderResponse,
    PlaceOrderRequest,
    PreparationItemResponse,
    PreparationResponse,
    PriceQuoteRequest,
    ProgressResponse,
    QuoteIdResponse,
    QuoteItemResponse,
    QuoteResponse,
    ReassignRequest,
    RecordProgressRequest,
    ReviewQuoteRequest,
    StatusResponse,
    UpdateOrderRequest,
)
from labdesk.assignment.reassignment import ReassignPreparation
from labdesk.notification.queries import notifications_for, unread_count
from labdesk.notification.reading import MarkAllNotificationsRead, MarkNotificationRead
from labdesk.order.cancellation import CancelOrder
from labdesk.order.creation import PlaceOrder
from labdesk.order.queries import order_for
from labdesk.order.update import UpdateOrder
from labdesk.preparation.dispatch import DispatchOrder
from labdesk.preparation.opening import OpenPreparation
from labdesk.preparation.progress import RecordPreparationProgress
from labdesk.preparation.queries import preparation_for, warehouse_queue, warehouse_stats
from labdesk.quote.approval import AdminReviewQuote, StartAdminReview, VendorReviewQuote
from labdesk.quote.conversion import ConvertQuoteToOrder
from labdesk.quote.creation import RequestQuote
from labdesk.quote.expiry import ExpireQuote
from labdesk.quote.pricing import PriceQuote
from labdesk.quote.queries import pending_review_queue, quote_for, quotes_for

quote_router = APIRouter(prefix="/quotes", tags=["quotes"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
warehouse_router = APIRouter(prefix="/warehouse", tags=["warehouse"])
notification_router = APIRouter(prefix="/notifications", tags=["notifications"])


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------
def current_actor(
    x_user_id: str = Header(default=""),
    x_user_role: str = Header(default=""),
    x_user_email: str = Header(default=""),
    x_user_name: str = Header(default=""),
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing X-User-Id or X-User-Role header")
    return Actor(user_id=x_user_id, role=x_user_role, email=x_user_email, name=x_user_name)


def request_origin(x_origin: str = Header(default="")) -> str | None:
    return x_origin or None


def _actor_fields(actor: Actor) -> dict:
    return {
        "actor_id": actor.user_id,
        "actor_role": actor.role,
        "actor_email": actor.email,
        "actor_name": actor.name,
    }


def _dump_items(items) -> str:
    return json.dumps([item.model_dump() for item in items])


def _preparation_response(prep) -> PreparationResponse:
    return PreparationResponse(
        order_id=str(prep.order_id),
        order_number=prep.order_number,
        status=prep.status,
        assigned_to=prep.assigned_to,
        assigned_to_name=prep.assigned_to_name,
        assigned_by=prep.assigned_by,
        total_items=prep.total_items,
        prepared_items=prep.prepared_items,
        progress=prep.progress,
        estimated_minutes=prep.estimated_minutes,
        started_at=prep.started_at,
        completed_at=prep.completed_at,
        items=[
            PreparationItemResponse(
                product_id=item.product_id,
                product_name=item.product_name,
                product_code=item.product_code,
                quantity_ordered=item.quantity_ordered,
                quantity_prepared=item.quantity_prepared,
                is_prepared=item.is_prepared,
                notes=item.notes,
            )
            for item in prep.items
        ],
    )


def _quote_response(quote, actor: Actor) -> QuoteResponse:
    # Review notes are staff-only
    staff_view = not actor.is_customer
    return QuoteResponse(
        quote_id=str(quote.id),
        quote_number=quote.quote_number,
        status=quote.status,
        user_id=quote.user_id,
        customer_name=quote.customer_name,
        customer_email=quote.customer_email,
        customer_phone=quote.customer_phone,
        organization=quote.organization,
        assigned_sales_rep=quote.assigned_sales_rep,
        assigned_sales_rep_name=quote.assigned_sales_rep_name,
        subtotal=quote.subtotal,
        discount=quote.discount,
        tax=quote.tax,
        total=quote.total,
        valid_until=quote.valid_until,
        customer_message=quote.customer_message,
        quote_notes=quote.quote_notes,
        vendor_notes=quote.vendor_notes if staff_view else None,
        admin_notes=quote.admin_notes if staff_view else None,
        rejection_reason=quote.rejection_reason,
        order_id=str(quote.order_id) if quote.order_id else None,
        created_at=quote.created_at,
        items=[
            QuoteItemResponse(
                product_id=item.product_id,
                product_name=item.product_name,
                product_code=item.product_code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                discount=item.discount or 0.0,
                notes=item.notes,
            )
            for item in quote.items
        ],
    )


def _order_response(order, actor: Actor) -> OrderResponse:
    address = order.shipping_address
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        user_id=order.user_id,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        customer_phone=order.customer_phone,
        organization=order.organization,
        quote_id=str(order.quote_id) if order.quote_id else None,
        quote_number=order.quote_number,
        subtotal=order.subtotal,
        discount=order.discount or 0.0,
        tax=order.tax or 0.0,
        shipping_cost=order.shipping_cost or 0.0,
        total=order.total,
        unit_count=order.unit_count,
        shipping_method=order.shipping_method,
        shipping_address=(
            AddressSchema(
                street=address.street,
                city=address.city,
                state=address.state,
                zip_code=address.zip_code,
                country=address.country or "Chile",
                phone=address.phone,
                contact_name=address.contact_name,
            )
            if address
            else None
        ),
        tracking_number=order.tracking_number,
        customer_notes=order.customer_notes,
        internal_notes=None if actor.is_customer else order.internal_notes,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
        cancelled_at=order.cancelled_at,
        items=[
            OrderItemResponse(
                product_id=item.product_id,
                product_name=item.product_name,
                product_code=item.product_code,
                quantity=item.quantity,
                unit_price=item.unit_price,
                subtotal=item.subtotal,
                discount=item.discount or 0.0,
                tax=item.tax or 0.0,
                notes=item.notes,
            )
            for item in order.items
        ],
    )


# --- Quote endpoints ---


@quote_router.get("", response_model=list[QuoteResponse])
async def list_quotes(status: str | None = None, actor: Actor = Depends(current_actor)) -> list[QuoteResponse]:
    authorize(actor, "quote:read")
    if actor.is_customer:
        quotes = quotes_for(user_id=actor.user_id, status=status)
    elif actor.is_elevated:
        quotes = quotes_for(status=status)
    else:
        quotes = quotes_for(assigned_sales_rep=actor.user_id, status=status)
    return [_quote_response(quote, actor) for quote in quotes]


@quote_router.get("/pending-review", response_model=list[QuoteResponse])
async def get_review_queue(
    sales_rep_id: str | None = None, actor: Actor = Depends(current_actor)
) -> list[QuoteResponse]:
    authorize(actor, "quote:review_queue")
    # Representatives only ever see their own queue
    if not actor.is_elevated:
        sales_rep_id = actor.user_id
    return [_quote_response(quote, actor) for quote in pending_review_queue(sales_rep_id)]


@quote_router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(quote_id: str, actor: Actor = Depends(current_actor)) -> QuoteResponse:
    quote = quote_for(quote_id)
    authorize(actor, "quote:read", quote)
    return _quote_response(quote, actor)


@quote_router.post("", status_code=201, response_model=QuoteIdResponse)
async def create_quote(body: CreateQuoteRequest, actor: Actor = Depends(current_actor)) -> QuoteIdResponse:
    command = RequestQuote(
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        items=_dump_items(body.items),
        user_id=body.user_id,
        customer_id=body.customer_id,
        customer_phone=body.customer_phone,
        organization=body.organization,
        tax_id=body.tax_id,
        customer_message=body.customer_message,
        **_actor_fields(actor),
    )
    result = current_domain.process(command, asynchronous=False)
    return QuoteIdResponse(quote_id=result)


@quote_router.put("/{quote_id}/pricing", response_model=StatusResponse)
async def price_quote(quote_id: str, body: PriceQuoteRequest, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = PriceQuote(
        quote_id=quote_id,
        items=_dump_items(body.items),
        subtotal=body.subtotal,
        total=body.total,
        discount=body.discount,
        tax=body.tax,
        valid_days=body.valid_days,
        vendor_notes=body.vendor_notes,
        quote_notes=body.quote_notes,
        **_actor_fields(actor),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/vendor-review", response_model=StatusResponse)
async def vendor_review_quote(
    quote_id: str, body: ReviewQuoteRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    command = VendorReviewQuote(
        quote_id=quote_id,
        approved=body.approved,
        notes=body.notes,
        rejection_reason=body.rejection_reason,
        **_actor_fields(actor),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/admin-review/start", response_model=StatusResponse)
async def start_admin_review(quote_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(StartAdminReview(quote_id=quote_id, **_actor_fields(actor)), asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/admin-review", response_model=StatusResponse)
async def admin_review_quote(
    quote_id: str, body: ReviewQuoteRequest, actor: Actor = Depends(current_actor)
) -> StatusResponse:
    command = AdminReviewQuote(
        quote_id=quote_id,
        approved=body.approved,
        notes=body.notes,
        rejection_reason=body.rejection_reason,
        **_actor_fields(actor),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@quote_router.put("/{quote_id}/expire", response_model=StatusResponse)
async def expire_quote(quote_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    current_domain.process(ExpireQuote(quote_id=quote_id, **_actor_fields(actor)), asynchronous=False)
    return StatusResponse()


@quote_router.post("/{quote_id}/convert", status_code=201, response_model=OrderIdResponse)
async def convert_quote(
    quote_id: str, body: ConvertQuoteRequest, actor: Actor = Depends(current_actor)
) -> OrderIdResponse:
    command = ConvertQuoteToOrder(
        quote_id=quote_id,
        payment_method=body.payment_method,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        shipping_method=body.shipping_method,
        customer_notes=body.customer_notes,
        **_actor_fields(actor),
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


# --- Order endpoints ---


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, actor: Actor = Depends(current_actor)) -> OrderIdResponse:
    command = PlaceOrder(
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        items=_dump_items(body.items),
        subtotal=body.subtotal,
        total=body.total,
        discount=body.discount,
        tax=body.tax,
        shipping_cost=body.shipping_cost,
        user_id=body.user_id,
        customer_phone=body.customer_phone,
        organization=body.organization,
        tax_id=body.tax_id,
        payment_method=body.payment_method,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        shipping_method=body.shipping_method,
        customer_notes=body.customer_notes,
        **_actor_fields(actor),
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    order = order_for(order_id)
    authorize(actor, "order:read", order)
    return _order_response(order, actor)


@order_router.patch("/{order_id}", response_model=StatusResponse)
async def update_order(
    order_id: str,
    body: UpdateOrderRequest,
    actor: Actor = Depends(current_actor),
    origin: str | None = Depends(request_origin),
) -> StatusResponse:
    command = UpdateOrder(
        order_id=order_id,
        status=body.status,
        payment_status=body.payment_status,
        payment_method=body.payment_method,
        tracking_number=body.tracking_number,
        shipping_method=body.shipping_method,
        internal_notes=body.internal_notes,
        customer_notes=body.customer_notes,
        confirm_delivery=body.confirm_delivery,
        origin=origin,
        **_actor_fields(actor),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def cancel_order(
    order_id: str,
    reason: str | None = None,
    actor: Actor = Depends(current_actor),
    origin: str | None = Depends(request_origin),
) -> StatusResponse:
    command = CancelOrder(order_id=order_id, reason=reason, origin=origin, **_actor_fields(actor))
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# --- Warehouse endpoints ---


@warehouse_router.post("/preparations/{order_id}", status_code=201, response_model=AssignmentResponse)
async def open_preparation(
    order_id: str,
    actor: Actor = Depends(current_actor),
    origin: str | None = Depends(request_origin),
) -> AssignmentResponse:
    command = OpenPreparation(order_id=order_id, origin=origin, **_actor_fields(actor))
    assignee = current_domain.process(command, asynchronous=False)
    return AssignmentResponse(order_id=order_id, assigned_to=assignee)


@warehouse_router.get("/preparations/{order_id}", response_model=PreparationResponse)
async def get_preparation(order_id: str, actor: Actor = Depends(current_actor)) -> PreparationResponse:
    authorize(actor, "warehouse:stats")
    return _preparation_response(preparation_for(order_id))


@warehouse_router.patch("/preparations/{order_id}", response_model=ProgressResponse)
async def record_progress(
    order_id: str, body: RecordProgressRequest, actor: Actor = Depends(current_actor)
) -> ProgressResponse:
    command = RecordPreparationProgress(
        order_id=order_id,
        items=_dump_items(body.items),
        notes=body.notes,
        **_actor_fields(actor),
    )
    progress = current_domain.process(command, asynchronous=False)
    return ProgressResponse(order_id=order_id, progress=progress)


@warehouse_router.post("/preparations/{order_id}/dispatch", response_model=StatusResponse)
async def dispatch_order(
    order_id: str,
    body: DispatchRequest,
    actor: Actor = Depends(current_actor),
    origin: str | None = Depends(request_origin),
) -> StatusResponse:
    command = DispatchOrder(
        order_id=order_id,
        carrier=body.carrier,
        tracking_number=body.tracking_number,
        notes=body.notes,
        origin=origin,
        **_actor_fields(actor),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@warehouse_router.post("/preparations/{order_id}/reassign", response_model=AssignmentResponse)
async def reassign_preparation(
    order_id: str, body: ReassignRequest, actor: Actor = Depends(current_actor)
) -> AssignmentResponse:
    command = ReassignPreparation(
        order_id=order_id,
        assign_to=body.assign_to,
        auto_assign=body.auto_assign,
        **_actor_fields(actor),
    )
    assignee = current_domain.process(command, asynchronous=False)
    return AssignmentResponse(order_id=order_id, assigned_to=assignee)


@warehouse_router.get("/queue", response_model=list[PreparationResponse])
async def get_queue(operator_id: str | None = None, actor: Actor = Depends(current_actor)) -> list[PreparationResponse]:
    authorize(actor, "warehouse:stats")
    # Operators see their own queue unless they ask for someone else's
    if operator_id is None and actor.is_warehouse:
        operator_id = actor.user_id
    return [_preparation_response(prep) for prep in warehouse_queue(operator_id)]


@warehouse_router.get("/stats")
async def get_stats(actor: Actor = Depends(current_actor)) -> dict:
    authorize(actor, "warehouse:stats")
    return warehouse_stats()


# --- Notification endpoints ---


@notification_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False, actor: Actor = Depends(current_actor)
) -> NotificationListResponse:
    notifications = notifications_for(actor.user_id, unread_only=unread_only)
    return NotificationListResponse(
        unread=unread_count(actor.user_id),
        notifications=[
            NotificationResponse(
                notification_id=str(n.id),
                notification_type=n.notification_type,
                title=n.title,
                message=n.message,
                priority=n.priority,
                read=n.read,
                related_entity_type=n.related_entity_type,
                related_entity_id=n.related_entity_id,
                related_entity_number=n.related_entity_number,
                action_url=n.action_url,
                created_at=n.created_at,
            )
            for n in notifications
        ],
    )


@notification_router.put("/read-all", response_model=MarkedReadResponse)
async def mark_all_read(actor: Actor = Depends(current_actor)) -> MarkedReadResponse:
    marked = current_domain.process(MarkAllNotificationsRead(actor_id=actor.user_id), asynchronous=False)
    return MarkedReadResponse(marked=marked or 0)


@notification_router.put("/{notification_id}/read", response_model=StatusResponse)
async def mark_read(notification_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    command = MarkNotificationRead(notification_id=notification_id, actor_id=actor.user_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
