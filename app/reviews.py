import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, List, Optional

from app import metrics
from app.auth import Principal, require_admin, require_authenticated
from app.catalog import FoodCatalog
from app.errors import Forbidden, NotFound, ValidationError
from app.rating import recompute_food_rating
from app.store import REVIEWS, RecordStore, collection_lock

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def parse_rating(value: Any) -> int:
    """Accept 4, "4" or 4.0; reject anything that is not a whole number in 1..5."""
    if isinstance(value, bool):
        raise ValidationError("Rating must be a whole number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError("Rating must be a whole number")
        value = int(value)
    try:
        rating = int(str(value).strip())
    except ValueError:
        raise ValidationError("Rating must be a whole number") from None

    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def _missing(value: Any) -> bool:
    return value is None or value == ""


class ReviewAggregator:
    """Reviews and the food rating derived from them.

    Every mutation that can move a food's average holds the ``reviews``
    collection lock from the read of the review set until the food rating
    is written, so concurrent edits cannot publish a stale average.
    """

    def __init__(self, store: RecordStore, catalog: FoodCatalog):
        self.store = store
        self.catalog = catalog

    def list_reviews_for_food(self, food_id: str) -> List[dict]:
        return [r for r in self.store.load_all(REVIEWS) if r["food_id"] == food_id]

    def list_reviews_for_user(self, principal: Optional[Principal]) -> List[dict]:
        principal = require_authenticated(principal)
        return [r for r in self.store.load_all(REVIEWS) if r["user_id"] == principal.id]

    def list_all_reviews(self, principal: Optional[Principal]) -> List[dict]:
        require_admin(principal)
        return self.store.load_all(REVIEWS)

    def create_review(self, principal: Optional[Principal], food_id: Optional[str], rating: Any, comment: Optional[str]) -> dict:
        principal = require_authenticated(principal)
        if not food_id or _missing(rating) or not comment:
            raise ValidationError("food_id, rating and comment are required")

        if self.catalog.find_food_by_id(food_id) is None:
            raise NotFound("Food not found")
        rating = parse_rating(rating)

        with collection_lock(REVIEWS):
            review = self.store.append(REVIEWS, {
                "user_id": principal.id,
                "food_id": food_id,
                "rating": rating,
                "comment": comment,
                "user_name": principal.name,
                "admin_reply": None,
                "created_at": datetime.now(timezone.utc).isoformat(),
            })
            self._write_rating(food_id, recompute_food_rating(self.list_reviews_for_food(food_id)))

        metrics.review_mutations.labels(action="create").inc()
        logger.info("review %s on food %s created by user %s", review["id"], food_id, principal.id)
        return review

    def edit_review(
        self,
        review_id: str,
        principal: Optional[Principal],
        rating: Any = None,
        comment: Optional[str] = None,
        admin_reply: Optional[str] = None,
    ) -> dict:
        principal = require_authenticated(principal)

        with collection_lock(REVIEWS):
            review = self._owned_review(review_id, principal, "edit")

            # admins only reply; the rating is untouched
            if principal.is_admin:
                updated = self.store.replace(REVIEWS, review_id, {"admin_reply": admin_reply})
                metrics.review_mutations.labels(action="reply").inc()
                logger.info("admin %s replied to review %s", principal.id, review_id)
                return updated

            if _missing(rating) or not comment:
                raise ValidationError("rating and comment are required")
            new_rating = parse_rating(rating)

            food_id = review["food_id"]
            average = recompute_food_rating(
                self.list_reviews_for_food(food_id),
                replacing=(review_id, new_rating),
            )
            updated = self.store.replace(REVIEWS, review_id, {"rating": new_rating, "comment": comment})
            self._write_rating(food_id, average)

        metrics.review_mutations.labels(action="edit").inc()
        logger.info("review %s edited by user %s", review_id, principal.id)
        return updated

    def delete_review(self, review_id: str, principal: Optional[Principal]) -> None:
        principal = require_authenticated(principal)

        with collection_lock(REVIEWS):
            review = self._owned_review(review_id, principal, "delete")
            food_id = review["food_id"]

            self.store.remove_by_id(REVIEWS, review_id)
            # an empty review set yields 0, not an average
            self._write_rating(food_id, recompute_food_rating(self.list_reviews_for_food(food_id)))

        metrics.review_mutations.labels(action="delete").inc()
        logger.info("review %s deleted by %s", review_id, principal.id)

    def reconcile_ratings(self, principal: Optional[Principal]) -> List[dict]:
        """Rewrite every food rating that disagrees with its review set."""
        principal = require_admin(principal)
        changed = []

        with collection_lock(REVIEWS):
            by_food = defaultdict(list)
            for review in self.store.load_all(REVIEWS):
                by_food[review["food_id"]].append(review)

            for food in self.catalog.list_foods():
                expected = recompute_food_rating(by_food.get(food["id"], []))
                if float(food.get("rating") or 0) != expected:
                    changed.append(self._write_rating(food["id"], expected))

        logger.info("rating reconcile by admin %s fixed %d foods", principal.id, len(changed))
        return changed

    def _owned_review(self, review_id: str, principal: Principal, action: str) -> dict:
        review = self.store.find_by_id(REVIEWS, review_id)
        if review is None:
            raise NotFound("Review not found")
        if not principal.is_admin and review["user_id"] != principal.id:
            logger.warning("user %s denied %s on review %s", principal.id, action, review_id)
            raise Forbidden(f"Not allowed to {action} this review")
        return review

    def _write_rating(self, food_id: str, rating: float) -> dict:
        food = self.catalog.update_food_rating(food_id, rating)
        metrics.rating_recomputes.inc()
        logger.debug("food %s rating now %s", food_id, rating)
        return food
