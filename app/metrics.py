from prometheus_client import Counter

orders_created = Counter(
    "food_orders_created_total",
    "Orders placed by customers",
)
order_status_changes = Counter(
    "food_order_status_changes_total",
    "Order status updates by admins",
    ["status"],
)
review_mutations = Counter(
    "food_review_mutations_total",
    "Review creates, edits, replies and deletes",
    ["action"],
)
rating_recomputes = Counter(
    "food_rating_recomputes_total",
    "Food rating recomputations written to the catalog",
)
