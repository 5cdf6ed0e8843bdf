import re
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select

from lunadine.models import Feedback, Order, OrderItem, ServiceRequest

SCENARIO_ORDER = {
    "branch_id": 1,
    "order_type": "dine-in",
    "table_id": 3,
    "items": [
        {"branch_menu_item_id": 1, "quantity": 2, "customizations": [{"group": "Sauce", "option": "Soy Garlic"}]},
        {"branch_menu_item_id": 2, "quantity": 1},
    ],
    "customer_name": "Nadia",
}


async def stored_order(session_maker, order_uid: str) -> Order:
    async with session_maker() as session:
        result = await session.execute(select(Order).where(Order.order_uid == order_uid))
        return result.scalar_one()


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------

async def test_branches(client):
    response = await client.get("/api/branches")

    assert response.status_code == 200
    branches = response.json()
    assert [b["id"] for b in branches] == [1, 2, 3]
    assert set(branches[0]) == {"id", "name", "address", "status", "phone"}
    assert branches[0]["name"] == "Luna dine - Dhanmondi"
    assert branches[2]["status"] == "closed"


async def test_settings_include_branch_id(client):
    response = await client.get("/api/settings", params={"branch_id": 2})

    assert response.status_code == 200
    assert response.json()["vat_percentage"] == 12
    assert response.json()["branch_id"] == 2


async def test_settings_for_unknown_branch(client):
    response = await client.get("/api/settings", params={"branch_id": 99})

    assert response.status_code == 404
    assert response.json() == {"error": "Branch not found"}


async def test_settings_without_branch(client):
    response = await client.get("/api/settings")

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameter: branch_id"}


async def test_menu_is_grouped_and_ordered(client):
    response = await client.get("/api/menu", params={"branch_id": 1})

    assert response.status_code == 200
    categories = response.json()["categories"]
    assert [c["name"] for c in categories] == ["Appetizers", "Main Course", "Desserts", "Beverages"]

    appetizers = categories[0]["items"]
    assert [i["name"] for i in appetizers] == ["Chicken Soup", "Spring Rolls"]

    spring_rolls = appetizers[1]
    assert spring_rolls["price"] == 150
    assert spring_rolls["category_name"] == "Appetizers"
    assert "popular" in spring_rolls["tags"]
    sauce = spring_rolls["customizations"][0]
    assert sauce["name"] == "Sauce"
    assert sauce["type"] == "single"
    assert [o["price"] for o in sauce["options"]] == [0, 10, 10]

    lemonade = next(i for i in categories[3]["items"] if i["name"] == "Fresh Lemonade")
    assert lemonade["is_available"] is False


async def test_menu_for_branch_without_categories(client):
    response = await client.get("/api/menu", params={"branch_id": 99})

    assert response.status_code == 200
    assert response.json() == {"categories": []}


async def test_tables(client):
    response = await client.get("/api/tables", params={"branch_id": 2})

    assert response.status_code == 200
    assert [t["table_identifier"] for t in response.json()] == ["G1", "G2", "G3", "G4", "G5", "G6"]


# -----------------------------------------------------------------------------
# Orders
# -----------------------------------------------------------------------------

async def test_place_order(client, session_maker):
    response = await client.post("/api/orders", json=SCENARIO_ORDER)

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"order_id", "status", "estimated_completion_time"}
    assert body["status"] == "placed"
    assert re.fullmatch(r"ORD[0-9A-F]{16}", body["order_id"])

    eta = datetime.strptime(body["estimated_completion_time"], "%Y-%m-%d %H:%M:%S")
    assert abs(eta - (datetime.now() + timedelta(minutes=30))) < timedelta(minutes=1)

    order = await stored_order(session_maker, body["order_id"])
    assert order.total_amount == Decimal("747.5")


async def test_place_order_with_promo(client, session_maker):
    response = await client.post("/api/orders", json={**SCENARIO_ORDER, "promo_code": "LUNA10"})

    order = await stored_order(session_maker, response.json()["order_id"])
    assert order.discount_amount == Decimal("65")
    assert order.total_amount == Decimal("682.5")


async def test_expired_promo_is_ignored(client, session_maker):
    response = await client.post("/api/orders", json={**SCENARIO_ORDER, "promo_code": "EXPIRED"})

    assert response.status_code == 200
    order = await stored_order(session_maker, response.json()["order_id"])
    assert order.discount_amount == 0
    assert order.promo_code_id is None


async def test_sold_out_item_can_be_ordered(client):
    response = await client.post(
        "/api/orders",
        json={"branch_id": 1, "order_type": "takeaway", "items": [{"branch_menu_item_id": 5, "quantity": 1}]},
    )

    assert response.status_code == 200


async def test_unknown_item_is_rejected_without_writes(client, db, rows):
    orders_before = await rows(db, Order)
    items_before = await rows(db, OrderItem)

    response = await client.post(
        "/api/orders",
        json={**SCENARIO_ORDER, "items": [{"branch_menu_item_id": 1, "quantity": 1},
                                          {"branch_menu_item_id": 9999, "quantity": 1}]},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid menu item"}
    assert await rows(db, Order) == orders_before
    assert await rows(db, OrderItem) == items_before


@pytest.mark.parametrize(
    "payload, error",
    [
        ({"order_type": "pickup"}, "Invalid order_type"),
        ({"items": []}, "Invalid items"),
        ({"items": [{"branch_menu_item_id": 1, "quantity": 0}]}, "Invalid item data"),
        ({"items": [{"branch_menu_item_id": 1, "quantity": 10**20}]}, "Invalid item data"),
        ({"items": [{"branch_menu_item_id": 1, "quantity": "two"}]}, "Invalid items.0.quantity"),
        ({"items": [{"branch_menu_item_id": 1, "quantity": "2"}]}, "Invalid items.0.quantity"),
        ({"items": [{"branch_menu_item_id": 1, "quantity": True}]}, "Invalid items.0.quantity"),
    ],
)
async def test_bad_order_payloads(client, db, rows, payload, error):
    orders_before = await rows(db, Order)
    items_before = await rows(db, OrderItem)

    response = await client.post("/api/orders", json={**SCENARIO_ORDER, **payload})

    assert response.status_code == 400
    assert response.json()["error"].startswith(error)
    assert await rows(db, Order) == orders_before
    assert await rows(db, OrderItem) == items_before


async def test_missing_items_field(client):
    payload = {k: v for k, v in SCENARIO_ORDER.items() if k != "items"}

    response = await client.post("/api/orders", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required field: items"}


async def test_table_of_another_branch(client):
    response = await client.post("/api/orders", json={**SCENARIO_ORDER, "table_id": 9})

    assert response.status_code == 404
    assert response.json() == {"error": "Invalid table for this branch"}


async def test_order_status_after_placement(client):
    placed = (await client.post("/api/orders", json=SCENARIO_ORDER)).json()

    response = await client.get("/api/order_status", params={"order_uid": placed["order_id"]})

    assert response.status_code == 200
    assert response.json() == placed


async def test_order_status_of_seeded_order(client):
    response = await client.get("/api/order_status", params={"order_uid": "ORD987654321"})

    assert response.json()["status"] == "in_kitchen"


async def test_order_status_unknown(client):
    response = await client.get("/api/order_status", params={"order_uid": "ORDNOPE"})

    assert response.status_code == 404
    assert response.json() == {"error": "Order not found"}


# -----------------------------------------------------------------------------
# Promo codes
# -----------------------------------------------------------------------------

async def test_promo_lookup(client):
    response = await client.post("/api/promocode", json={"code": "LUNA10"})

    assert response.status_code == 200
    assert response.json() == {"code": "LUNA10", "type": "percentage", "discount": 10, "min_order_amount": 200}


@pytest.mark.parametrize("code", ["EXPIRED", "luna10", "NOPE"])
async def test_promo_lookup_not_found(client, code):
    response = await client.post("/api/promocode", json={"code": code})

    assert response.status_code == 404
    assert response.json() == {"error": "Invalid or expired promo code"}


# -----------------------------------------------------------------------------
# Feedback and service requests
# -----------------------------------------------------------------------------

async def test_feedback_is_stored(client, db, rows):
    before = await rows(db, Feedback)

    response = await client.post(
        "/api/feedback",
        json={"order_id": "ORD987654321", "ratings": {"overall": 3, "food": 4}, "comment": "Slow pickup"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert await rows(db, Feedback) == before + 1


@pytest.mark.parametrize("overall", [0, 6])
async def test_feedback_rating_out_of_range(client, overall):
    response = await client.post(
        "/api/feedback", json={"order_id": "ORD987654321", "ratings": {"overall": overall}}
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid ratings.overall")


async def test_feedback_for_unknown_order(client):
    response = await client.post("/api/feedback", json={"order_id": "ORDNOPE", "ratings": {"overall": 4}})

    assert response.status_code == 404


async def test_service_request(client, db, rows):
    before = await rows(db, ServiceRequest)

    response = await client.post(
        "/api/service_request", json={"branch_id": 2, "table_id": 10, "request_type": "bill"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert await rows(db, ServiceRequest) == before + 1


async def test_service_request_wrong_table(client):
    response = await client.post(
        "/api/service_request", json={"branch_id": 2, "table_id": 1, "request_type": "bill"}
    )

    assert response.status_code == 404


async def test_service_request_bad_type(client):
    response = await client.post(
        "/api/service_request", json={"branch_id": 1, "table_id": 1, "request_type": "dessert"}
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid request_type")


# -----------------------------------------------------------------------------
# Routing and health
# -----------------------------------------------------------------------------

async def test_wrong_method(client):
    response = await client.get("/api/orders")

    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


async def test_unknown_endpoint(client):
    response = await client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Endpoint not found"}


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"
    assert response.json()["database"] == "healthy"
