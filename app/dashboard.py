from typing import Optional

from app.auth import Principal, require_admin
from app.catalog import FoodCatalog
from app.config import POPULAR_FOODS_LIMIT
from app.orders import OrderLedger

RECENT_ORDERS = 5


def dashboard_stats(principal: Optional[Principal], ledger: OrderLedger, catalog: FoodCatalog) -> dict:
    principal = require_admin(principal)
    orders = ledger.list_all_orders(principal)

    total_sales = 0.0
    for order in orders:
        try:
            total_sales += float(order.get("total_amount") or 0)
        except (TypeError, ValueError):
            continue

    recent = sorted(orders, key=lambda o: o.get("created_at") or "", reverse=True)[:RECENT_ORDERS]
    return {
        "total_orders": len(orders),
        "total_sales": total_sales,
        "total_customers": len({o["user_id"] for o in orders}),
        "total_food_items": len(catalog.list_foods()),
        "recent_orders": recent,
        "popular_items": catalog.popular_foods(POPULAR_FOODS_LIMIT),
    }
