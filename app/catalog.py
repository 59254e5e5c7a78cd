import logging
from datetime import datetime, timezone
from typing import List, Optional

from app.auth import Principal, require_admin
from app.errors import NotFound, ValidationError
from app.rating import EMPTY_RATING
from app.store import FOODS, REVIEWS, RecordStore, collection_lock

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "category", "image", "popular")


class FoodCatalog:
    """Menu items. ``rating`` is derived and written only through
    ``update_food_rating`` by the review aggregator."""

    def __init__(self, store: RecordStore):
        self.store = store

    def list_foods(self) -> List[dict]:
        return self.store.load_all(FOODS)

    def find_food_by_id(self, food_id: str) -> Optional[dict]:
        return self.store.find_by_id(FOODS, food_id)

    def get_food(self, food_id: str) -> dict:
        food = self.find_food_by_id(food_id)
        if food is None:
            raise NotFound("Food not found")
        return food

    def popular_foods(self, limit: int) -> List[dict]:
        foods = [f for f in self.list_foods() if f.get("popular")]
        foods.sort(key=lambda f: float(f.get("rating") or 0), reverse=True)
        return foods[:max(limit, 0)]

    def create_food(self, principal: Optional[Principal], name, description, price, category, image=None) -> dict:
        require_admin(principal)
        if not name or not description or not price or not category:
            raise ValidationError("name, description, price and category are required")

        food = self.store.append(FOODS, {
            "name": name,
            "description": description,
            "price": price,
            "category": category,
            "image": image,
            "rating": EMPTY_RATING,
            "popular": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info("food %s created by admin %s", food["id"], principal.id)
        return food

    def update_food(self, principal: Optional[Principal], food_id: str, changes: dict) -> dict:
        require_admin(principal)
        patch = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        if not patch:
            raise ValidationError("Nothing to update")
        return self.store.replace(FOODS, food_id, patch)

    def delete_food(self, principal: Optional[Principal], food_id: str) -> int:
        """Remove a food and its reviews; returns how many reviews went with it."""
        principal = require_admin(principal)

        # reviews lock first, same order as the review aggregator
        with collection_lock(REVIEWS):
            if self.find_food_by_id(food_id) is None:
                raise NotFound("Food not found")
            self.store.remove_by_id(FOODS, food_id)

            orphans = [r for r in self.store.load_all(REVIEWS) if r["food_id"] == food_id]
            for review in orphans:
                self.store.remove_by_id(REVIEWS, review["id"])

        logger.info("food %s deleted by admin %s with %d reviews", food_id, principal.id, len(orphans))
        return len(orphans)

    def update_food_rating(self, food_id: str, rating: float) -> dict:
        return self.store.replace(FOODS, food_id, {"rating": rating})
