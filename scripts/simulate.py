"""
Checkout Simulation Script

Runs many customers through the full checkout flow concurrently against a
running server: sign-up, token, cart, payment intent, payment, history.
Run from project root: python scripts/simulate.py [--customers 20] [--url URL]
"""

import asyncio
import sys
import random
import time
import argparse
import uuid
from datetime import datetime
from typing import Any

import httpx
from bson import ObjectId


# Configuration
API_BASE_URL = "http://localhost:5000"
TOTAL_CUSTOMERS = 20

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "Tom", "Emma", "David", "Lisa", "Chris", "Amy"]

# Used when the menu collection is empty
FALLBACK_MENU = [
    {"name": "Escalope de Veau", "price": 14.5},
    {"name": "Chicken and Walnut Salad", "price": 13.5},
    {"name": "Fish Parmentier", "price": 9.5},
    {"name": "Chocolate Fondant", "price": 7.5},
]


def generate_customer() -> dict[str, str]:
    """Generate a unique customer identity."""
    first = random.choice(FIRST_NAMES)
    return {
        "name": first,
        "email": f"{first.lower()}.{uuid.uuid4().hex[:8]}@bistro-sim.com",
    }


async def load_menu(client: httpx.AsyncClient) -> list[dict[str, Any]]:
    """Fetch the menu, or make up items with fresh ids when it is empty."""
    response = await client.get(f"{API_BASE_URL}/menus")
    response.raise_for_status()
    menu = response.json()
    if menu:
        return menu
    return [{**item, "_id": str(ObjectId())} for item in FALLBACK_MENU]


async def run_customer(
    client: httpx.AsyncClient,
    customer_num: int,
    menu: list[dict[str, Any]],
) -> dict[str, Any]:
    """Drive one customer from sign-up to payment history."""
    customer = generate_customer()
    start_time = time.time()
    step = "signup"

    try:
        response = await client.post(f"{API_BASE_URL}/users", json=customer)
        response.raise_for_status()

        step = "token"
        response = await client.post(f"{API_BASE_URL}/jwt", json={"email": customer["email"]})
        response.raise_for_status()
        headers = {"Authorization": f"Bearer {response.json()['token']}"}

        step = "cart"
        picks = random.sample(menu, k=random.randint(1, min(3, len(menu))))
        for item in picks:
            response = await client.post(
                f"{API_BASE_URL}/carts",
                json={
                    "buyer_email": customer["email"],
                    "menuId": item["_id"],
                    "name": item["name"],
                    "image": item.get("image"),
                    "price": item["price"],
                },
            )
            response.raise_for_status()

        response = await client.get(f"{API_BASE_URL}/carts", params={"email": customer["email"]})
        response.raise_for_status()
        cart = response.json()
        total = round(sum(row["price"] for row in cart), 2)

        step = "payment-intent"
        response = await client.post(f"{API_BASE_URL}/create-payment-intent", json={"price": total})
        response.raise_for_status()
        client_secret = response.json()["clientSecret"]

        step = "payment"
        response = await client.post(
            f"{API_BASE_URL}/payment",
            json={
                "email": customer["email"],
                "price": total,
                "transactionId": client_secret.split("_secret_")[0],
                "cartIds": [row["_id"] for row in cart],
                "menuItemIds": [row["menuId"] for row in cart],
                "status": "pending",
            },
        )
        response.raise_for_status()

        step = "history"
        response = await client.get(f"{API_BASE_URL}/payments/{customer['email']}", headers=headers)
        response.raise_for_status()

        return {
            "customer_num": customer_num,
            "success": True,
            "total": total,
            "time": round(time.time() - start_time, 3),
        }

    except (httpx.HTTPError, KeyError) as e:
        detail = e.response.text[:100] if isinstance(e, httpx.HTTPStatusError) else str(e)[:100]
        return {
            "customer_num": customer_num,
            "success": False,
            "error": f"{step}: {detail}",
            "time": round(time.time() - start_time, 3),
        }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_customers: int = TOTAL_CUSTOMERS) -> dict[str, Any]:
    """
    Run the checkout simulation.

    Args:
        num_customers: Number of concurrent customers
    """
    print("=" * 70)
    print("🔥 CHECKOUT SIMULATION")
    print("=" * 70)
    print(f"📋 Customers: {num_customers}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.get(f"{API_BASE_URL}/health")
        print(f"\n🩺 Health: {response.json().get('status')}")

        menu = await load_menu(client)
        print(f"🍽️  Menu items available: {len(menu)}\n")

        tasks = [run_customer(client, i + 1, menu) for i in range(num_customers)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Successful checkouts: {len(successful)}/{num_customers}")
    print(f"❌ Failed checkouts: {len(failed)}/{num_customers}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        total_revenue = sum(r["total"] for r in successful)
        print(f"\n📈 Average checkout: {avg_time}s")
        print(f"💰 Total Revenue: ${total_revenue:.2f}")

    if failed:
        print(f"\n⚠️  Failed checkout details (showing first 5):")
        for f in failed[:5]:
            print(f"   Customer #{f['customer_num']}: {f['error']}")

    print("\n" + "=" * 70)

    return {
        "total": num_customers,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Checkout Simulation Script")
    parser.add_argument("--customers", type=int, default=TOTAL_CUSTOMERS, help="Number of customers")
    parser.add_argument("--url", default=API_BASE_URL, help="Base URL of the running API")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    summary = asyncio.run(run_simulation(args.customers))
    sys.exit(0 if summary["failed"] == 0 else 1)
