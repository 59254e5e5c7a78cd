from decimal import Decimal

import pytest

from app.rating import average_rating, format_rating, recompute_food_rating


def test_average_keeps_one_decimal():
    assert average_rating([5, 3, 4]) == Decimal("4.0")
    assert format_rating(average_rating([5, 3, 4])) == "4.0"


def test_average_rounds_half_up():
    # 7/4 = 1.75, 13/4 = 3.25
    assert average_rating([1, 2, 2, 2]) == Decimal("1.8")
    assert average_rating([3, 3, 3, 4]) == Decimal("3.3")


def test_average_rounds_down_below_half():
    assert average_rating([1, 1, 2]) == Decimal("1.3")


def test_average_of_nothing_raises():
    with pytest.raises(ValueError):
        average_rating([])


def test_recompute_empty_is_zero():
    assert recompute_food_rating([]) == 0


def test_recompute_applies_pending_edit():
    reviews = [{"id": "a", "rating": 5}, {"id": "b", "rating": 3}]
    assert recompute_food_rating(reviews) == 4.0
    assert recompute_food_rating(reviews, replacing=("a", 4)) == 3.5


def test_recompute_does_not_mutate_input():
    reviews = [{"id": "a", "rating": 5}]
    recompute_food_rating(reviews, replacing=("a", 1))
    assert reviews == [{"id": "a", "rating": 5}]


def test_format_rating_zero():
    assert format_rating(0) == "0.0"
    assert format_rating(3.5) == "3.5"
