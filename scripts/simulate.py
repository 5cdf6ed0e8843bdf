"""
Concurrency Simulation Script

Fires many orders at a running API at once and checks that every successful
placement got its own order id and is visible through /api/order_status.
Run from project root (server started with: python scripts/manage.py serve):

    python scripts/simulate.py --orders 50 --branch 1
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Configuration
API_BASE_URL = "http://localhost:8000"
TOTAL_ORDERS = 50

# Sample data for random orders
FIRST_NAMES = ["Rahim", "Karim", "Nadia", "Farhan", "Ayesha", "Tanvir", "Sadia", "Imran", "Nusrat", "Arif"]
PROMO_CODES = [None, None, "LUNA10", "SAVE20", "WELCOME15", "EXPIRED", "NOPE"]
ORDER_TYPES = ["dine-in", "takeaway", "delivery"]


async def fetch_catalog(client: httpx.AsyncClient, branch_id: int) -> tuple[list[int], list[int]]:
    """Menu item ids and table ids for a branch."""
    menu = (await client.get(f"{API_BASE_URL}/api/menu", params={"branch_id": branch_id})).json()
    tables = (await client.get(f"{API_BASE_URL}/api/tables", params={"branch_id": branch_id})).json()

    item_ids = [
        item["branch_menu_item_id"]
        for category in menu["categories"]
        for item in category["items"]
    ]
    return item_ids, [table["id"] for table in tables]


def generate_order_payload(branch_id: int, item_ids: list[int], table_ids: list[int]) -> dict[str, Any]:
    """Random cart for the given branch."""
    order_type = random.choice(ORDER_TYPES)
    payload: dict[str, Any] = {
        "branch_id": branch_id,
        "order_type": order_type,
        "items": [
            {"branch_menu_item_id": item_id, "quantity": random.randint(1, 3)}
            for item_id in random.sample(item_ids, k=min(len(item_ids), random.randint(1, 4)))
        ],
        "customer_name": random.choice(FIRST_NAMES),
        "customer_phone": f"+8801{random.randint(700000000, 999999999)}",
    }
    promo_code = random.choice(PROMO_CODES)
    if promo_code:
        payload["promo_code"] = promo_code
    if order_type == "dine-in" and table_ids:
        payload["table_id"] = random.choice(table_ids)
    if order_type == "delivery":
        payload["customer_address"] = f"House {random.randint(1, 99)}, Road {random.randint(1, 30)}, Dhaka"
    return payload


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    payload: dict[str, Any],
) -> dict[str, Any]:
    """Place one order and time it."""
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 200:
            return {
                "order_num": order_num,
                "success": True,
                "order_id": response.json().get("order_id"),
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.json().get("error", response.text[:100]),
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(branch_id: int = 1, num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the concurrent placement simulation.

    Args:
        branch_id: Branch to order from
        num_orders: Number of orders fired at once
    """
    print("=" * 70)
    print("🔥 CONCURRENT ORDER SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL} (branch {branch_id})")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        item_ids, table_ids = await fetch_catalog(client, branch_id)
        if not item_ids:
            print("\n❌ Branch has no menu items. Seed first: python scripts/manage.py seed")
            return {"total": num_orders, "successful": 0, "failed": num_orders}

        start_time = time.time()
        results = await asyncio.gather(*[
            send_order(client, i + 1, generate_order_payload(branch_id, item_ids, table_ids))
            for i in range(num_orders)
        ])
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]
        order_ids = [r["order_id"] for r in successful]

        statuses = await asyncio.gather(*[
            client.get(f"{API_BASE_URL}/api/order_status", params={"order_uid": order_id})
            for order_id in order_ids
        ])
        missing = [oid for oid, resp in zip(order_ids, statuses) if resp.status_code != 200]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
    print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")
    print(f"🔑 Distinct Order IDs: {len(set(order_ids))}/{len(order_ids)}")
    print(f"🔍 Not found on status lookup: {len(missing)}")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)

    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "duplicate_ids": len(order_ids) - len(set(order_ids)),
        "missing": len(missing),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent order simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--branch", type=int, default=1, help="Branch id")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    summary = asyncio.run(run_simulation(args.branch, args.orders))
    sys.exit(0 if summary.get("duplicate_ids", 0) == 0 and summary.get("missing", 0) == 0 else 1)
