"""
Order Placement and Status

Placement prices the cart once, then writes the order header and all of its
line items in a single commit. If the commit fails the session is rolled
back and the caller gets one InternalError; a half-written order is never
visible to other sessions.

Status workflow (only ``placed`` is written here at placement time):

    placed -> in_kitchen -> ready -> completed
    placed | in_kitchen -> cancelled
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lunadine.core.config import get_settings
from lunadine.core.exceptions import InternalError, NotFoundError, ValidationError
from lunadine.models import ORDER_STATUS_TRANSITIONS, Order, OrderItem, OrderStatus
from lunadine.schemas import OrderCreate
from lunadine.services.catalog import get_table
from lunadine.services.pricing import PricedOrder, price_order

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def generate_order_uid() -> str:
    """Opaque external order id, e.g. ``ORD3F9A0C2B7D114E55``."""
    return f"ORD{uuid.uuid4().hex[:16].upper()}"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(TIMESTAMP_FORMAT)


async def place_order(db: AsyncSession, request: OrderCreate) -> Order:
    """
    Validate, price and persist a new order.

    Raises:
        InvalidItemError: A cart line is not orderable
        NotFoundError: Branch missing, or table not in the branch
        InternalError: The write failed and was rolled back
    """
    priced = await price_order(db, request.branch_id, request.items, request.promo_code)

    if request.table_id is not None:
        await get_table(db, request.table_id, request.branch_id)

    return await persist_order(db, request, priced)


async def persist_order(db: AsyncSession, request: OrderCreate, priced: PricedOrder) -> Order:
    """
    Insert one order row and its item rows atomically.

    Unit prices come from ``priced``; the catalog is not read again.
    """
    settings = get_settings()
    placed_at = datetime.now().replace(microsecond=0)

    order = Order(
        order_uid=generate_order_uid(),
        branch_id=request.branch_id,
        table_id=request.table_id,
        order_type=request.order_type,
        status=OrderStatus.PLACED,
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        customer_address=request.customer_address,
        subtotal=priced.subtotal,
        vat_amount=priced.vat_amount,
        discount_amount=priced.discount_amount,
        total_amount=priced.total_amount,
        promo_code_id=priced.promo_code_id,
        estimated_completion_time=placed_at + timedelta(minutes=settings.estimated_completion_minutes),
        items=[
            OrderItem(
                branch_menu_item_id=line.branch_menu_item_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                customizations=line.customizations,
            )
            for line in priced.lines
        ],
    )

    db.add(order)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception(f"Order {order.order_uid} rolled back: {exc}")
        raise InternalError("Failed to save order") from exc

    logger.info(
        f"Order {order.order_uid} placed at branch {order.branch_id} "
        f"({len(priced.lines)} lines, total={priced.total_amount})"
    )
    return order


async def get_order_by_uid(db: AsyncSession, order_uid: str) -> Order:
    result = await db.execute(select(Order).where(Order.order_uid == order_uid))
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError("Order not found")
    return order


async def update_order_status(db: AsyncSession, order_uid: str, new_status: OrderStatus) -> Order:
    """
    Move an order along the status workflow.

    Used by kitchen and front-of-house tooling, never by placement.

    Raises:
        NotFoundError: Unknown order
        ValidationError: Transition not allowed from the current status
    """
    order = await get_order_by_uid(db, order_uid)
    current = order.status

    if new_status not in ORDER_STATUS_TRANSITIONS[current]:
        raise ValidationError(
            f"Cannot move order {order_uid} from {current.value} to {new_status.value}"
        )

    order.status = new_status
    if new_status == OrderStatus.COMPLETED:
        order.completed_at = datetime.now().replace(microsecond=0)

    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception(f"Status update for {order_uid} rolled back: {exc}")
        raise InternalError("Failed to update order status") from exc

    logger.info(f"Order {order_uid}: {current.value} -> {new_status.value}")
    return order
