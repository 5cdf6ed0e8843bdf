import asyncio
import re
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from lunadine.core.exceptions import InternalError, InvalidItemError, NotFoundError, ValidationError
from lunadine.models import BranchMenuItem, Feedback, Order, OrderItem, OrderStatus, OrderType
from lunadine.schemas import CartLine, CustomizationChoice, OrderCreate
from lunadine.services.orders import (
    generate_order_uid,
    get_order_by_uid,
    persist_order,
    place_order,
    update_order_status,
)
from lunadine.services.pricing import PricedLine, PricedOrder


def scenario_request(**overrides) -> OrderCreate:
    data = {
        "branch_id": 1,
        "order_type": OrderType.DINE_IN,
        "table_id": 3,
        "items": [
            CartLine(
                branch_menu_item_id=1,
                quantity=2,
                customizations=[CustomizationChoice(group="Sauce", option="Spicy Mayo")],
            ),
            CartLine(branch_menu_item_id=2, quantity=1),
        ],
        "customer_name": "Nadia",
        "customer_phone": "+8801711111111",
    }
    data.update(overrides)
    return OrderCreate(**data)


async def load_order(session_maker, order_uid: str) -> Order:
    async with session_maker() as session:
        result = await session.execute(
            select(Order).where(Order.order_uid == order_uid).options(selectinload(Order.items))
        )
        return result.scalar_one()


def test_order_uid_format_and_uniqueness():
    uids = {generate_order_uid() for _ in range(2000)}

    assert len(uids) == 2000
    assert all(re.fullmatch(r"ORD[0-9A-F]{16}", uid) for uid in uids)


async def test_place_order_writes_header_and_items(db, session_maker):
    order = await place_order(db, scenario_request(promo_code="LUNA10"))

    stored = await load_order(session_maker, order.order_uid)
    assert stored.status == OrderStatus.PLACED
    assert stored.order_type == OrderType.DINE_IN
    assert stored.table_id == 3
    assert stored.subtotal == Decimal("650")
    assert stored.vat_amount == Decimal("97.5")
    assert stored.discount_amount == Decimal("65")
    assert stored.total_amount == Decimal("682.5")
    assert stored.promo_code_id is not None
    assert stored.customer_name == "Nadia"

    assert [(i.branch_menu_item_id, i.quantity, i.unit_price) for i in stored.items] == [
        (1, 2, Decimal("150")),
        (2, 1, Decimal("350")),
    ]
    assert stored.items[0].customizations == [{"group": "Sauce", "option": "Spicy Mayo"}]
    assert stored.items[1].customizations == []


async def test_estimated_completion_is_thirty_minutes_out(db):
    before = datetime.now()
    order = await place_order(db, scenario_request())

    expected = before + timedelta(minutes=30)
    assert abs(order.estimated_completion_time - expected) < timedelta(minutes=1)


async def test_unit_price_is_a_snapshot(db, session_maker):
    order = await place_order(db, scenario_request())

    menu_item = await db.get(BranchMenuItem, 1)
    menu_item.price = Decimal("999")
    await db.commit()

    stored = await load_order(session_maker, order.order_uid)
    assert stored.items[0].unit_price == Decimal("150")


async def test_unknown_item_writes_nothing(db, rows):
    orders_before = await rows(db, Order)
    items_before = await rows(db, OrderItem)

    request = scenario_request(items=[
        CartLine(branch_menu_item_id=1, quantity=1),
        CartLine(branch_menu_item_id=4242, quantity=1),
    ])
    with pytest.raises(InvalidItemError):
        await place_order(db, request)

    assert await rows(db, Order) == orders_before
    assert await rows(db, OrderItem) == items_before


async def test_table_from_another_branch_is_rejected(db, rows):
    orders_before = await rows(db, Order)

    # Table 9 is G1 at Gulshan
    with pytest.raises(NotFoundError, match="Invalid table for this branch"):
        await place_order(db, scenario_request(table_id=9))

    assert await rows(db, Order) == orders_before


async def test_failed_item_insert_rolls_back_the_header(db, rows):
    orders_before = await rows(db, Order)
    items_before = await rows(db, OrderItem)

    # Priced against an item that has since disappeared from the catalog
    priced = PricedOrder(
        lines=(
            PricedLine(branch_menu_item_id=1, quantity=1, unit_price=Decimal("150")),
            PricedLine(branch_menu_item_id=9999, quantity=1, unit_price=Decimal("80")),
        ),
        subtotal=Decimal("230"),
        vat_percentage=Decimal("15"),
        vat_amount=Decimal("34.5"),
        discount_amount=Decimal("0"),
        total_amount=Decimal("264.5"),
    )

    with pytest.raises(InternalError, match="Failed to save order"):
        await persist_order(db, scenario_request(), priced)

    assert await rows(db, Order) == orders_before
    assert await rows(db, OrderItem) == items_before


async def test_concurrent_placements_get_distinct_ids(session_maker, seeded):
    async def place_one():
        async with session_maker() as session:
            order = await place_order(session, scenario_request(table_id=None, order_type=OrderType.TAKEAWAY))
            return order.order_uid

    uids = await asyncio.gather(*[place_one() for _ in range(5)])

    assert len(set(uids)) == 5
    async with session_maker() as session:
        for uid in uids:
            assert (await get_order_by_uid(session, uid)).status == OrderStatus.PLACED


async def test_status_walks_through_the_kitchen(db):
    order = await place_order(db, scenario_request())

    for status in (OrderStatus.IN_KITCHEN, OrderStatus.READY, OrderStatus.COMPLETED):
        order = await update_order_status(db, order.order_uid, status)

    assert order.status == OrderStatus.COMPLETED
    assert order.completed_at is not None


async def test_order_can_be_cancelled_from_kitchen(db):
    order = await update_order_status(db, "ORD987654321", OrderStatus.CANCELLED)

    assert order.status == OrderStatus.CANCELLED
    assert order.completed_at is None


@pytest.mark.parametrize(
    "order_uid, target",
    [
        ("ORD987654321", OrderStatus.PLACED),
        ("ORD123456789", OrderStatus.CANCELLED),
        ("ORD123456789", OrderStatus.IN_KITCHEN),
    ],
)
async def test_illegal_transitions_are_rejected(db, order_uid, target):
    with pytest.raises(ValidationError, match="Cannot move order"):
        await update_order_status(db, order_uid, target)


async def test_skipping_the_kitchen_is_rejected(db):
    order = await place_order(db, scenario_request())

    with pytest.raises(ValidationError):
        await update_order_status(db, order.order_uid, OrderStatus.READY)


async def test_deleting_order_removes_its_items_and_feedback(db, rows):
    order = await get_order_by_uid(db, "ORD123456789")
    order_id = order.id
    items_before = await rows(db, OrderItem)
    feedback_before = await rows(db, Feedback)

    await db.delete(order)
    await db.commit()

    remaining_items = await db.execute(select(OrderItem).where(OrderItem.order_id == order_id))
    remaining_feedback = await db.execute(select(Feedback).where(Feedback.order_id == order_id))
    assert remaining_items.first() is None
    assert remaining_feedback.first() is None
    assert await rows(db, OrderItem) == items_before - 2
    assert await rows(db, Feedback) == feedback_before - 1


async def test_status_update_for_unknown_order(db):
    with pytest.raises(NotFoundError, match="Order not found"):
        await update_order_status(db, "ORDMISSING", OrderStatus.READY)
