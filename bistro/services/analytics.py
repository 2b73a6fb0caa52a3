"""
Admin Dashboard Statistics

Counters and aggregation pipelines behind /admin-stats and /order-stats.
"""

import logging
from typing import Any

from bistro.models import Collection
from bistro.schemas import AdminStats, CategoryStats

logger = logging.getLogger(__name__)


REVENUE_PIPELINE: list[dict[str, Any]] = [
    {
        "$group": {
            "_id": None,
            "totalRevenue": {"$sum": "$price"},
        }
    },
]

# One row per purchased unit, joined to its menu item and grouped by category
ORDER_STATS_PIPELINE: list[dict[str, Any]] = [
    {"$unwind": "$menuItemIds"},
    {
        "$lookup": {
            "from": Collection.MENUS.value,
            "localField": "menuItemIds",
            "foreignField": "_id",
            "as": "menuItems",
        }
    },
    {"$unwind": "$menuItems"},
    {
        "$group": {
            "_id": "$menuItems.category",
            "quantity": {"$sum": 1},
            "revenue": {"$sum": "$menuItems.price"},
        }
    },
    {
        "$project": {
            "_id": 0,
            "category": "$_id",
            "quantity": "$quantity",
            "revenue": "$revenue",
        }
    },
    {"$sort": {"category": 1}},
]


async def get_admin_stats(db) -> AdminStats:
    """
    Count users, menu items and orders and sum the revenue.

    Counts come from collection metadata and may be approximate.
    """
    users = await db[Collection.USERS.value].estimated_document_count()
    menu_items = await db[Collection.MENUS.value].estimated_document_count()
    orders = await db[Collection.PAYMENTS.value].estimated_document_count()

    cursor = await db[Collection.PAYMENTS.value].aggregate(REVENUE_PIPELINE)
    result = await cursor.to_list(length=None)
    revenue = (result[0].get("totalRevenue") or 0) if result else 0

    logger.debug(f"Admin stats: users={users} menu_items={menu_items} orders={orders}")

    return AdminStats(
        users=users,
        menu_items=menu_items,
        orders=orders,
        revenue=round(revenue, 2),
    )


async def get_order_stats(db) -> list[CategoryStats]:
    """Per-category quantity and revenue of everything sold."""
    cursor = await db[Collection.PAYMENTS.value].aggregate(ORDER_STATS_PIPELINE)
    rows = await cursor.to_list(length=None)
    return [CategoryStats.model_validate(row) for row in rows]
