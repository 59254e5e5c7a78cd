"""Food rating recompute.

A food's rating is the mean of the ``rating`` field over its reviews, kept to
one decimal digit. The mean is taken on the exact quotient and rounded half
up, so 3.25 becomes 3.3 and 4.0 stays 4.0.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

ONE_DECIMAL = Decimal("0.1")
EMPTY_RATING = 0.0


def average_rating(ratings: Iterable[int]) -> Decimal:
    values = [int(r) for r in ratings]
    if not values:
        raise ValueError("average_rating() needs at least one rating")
    return (Decimal(sum(values)) / Decimal(len(values))).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def recompute_food_rating(reviews: Iterable[dict], replacing: Optional[tuple[str, int]] = None) -> float:
    """Rating to store on a food given its current reviews.

    ``replacing`` is ``(review_id, new_rating)`` for an edit that is not yet
    persisted; that review is averaged with the new value.
    """
    ratings = []
    for review in reviews:
        if replacing is not None and review["id"] == replacing[0]:
            ratings.append(replacing[1])
        else:
            ratings.append(review["rating"])

    if not ratings:
        return EMPTY_RATING
    return float(average_rating(ratings))


def format_rating(value) -> str:
    return f"{Decimal(str(value)).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)}"
