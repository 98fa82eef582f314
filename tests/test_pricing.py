import random
from decimal import Decimal

import pytest

from spree_uploader.services.pricing import (
    MarkupPricingPolicy,
    convert_to_base,
    list_price_for,
    to_decimal,
)


@pytest.mark.parametrize(
    "base, expected",
    [
        ("0.00", "20.00"),
        ("12.34", "32.34"),
        ("19.99", "39.99"),
        ("20.00", "40.00"),
        ("20.01", "40.02"),
        ("55.50", "111.00"),
    ],
)
def test_list_price_markup_rule(base, expected):
    assert list_price_for(Decimal(base)) == Decimal(expected)


def test_markup_branches_split_at_threshold():
    # both branches give 40.00 at exactly 20.00; one cent either side tells them apart
    assert list_price_for(Decimal("19.99")) == Decimal("19.99") + Decimal("20")
    assert list_price_for(Decimal("20.01")) == Decimal("20.01") * 2


def test_convert_to_base_rounds_to_cents():
    assert convert_to_base(Decimal("100"), Decimal("3")) == Decimal("33.33")
    assert convert_to_base(Decimal("650"), Decimal("32.5")) == Decimal("20.00")
    assert convert_to_base(Decimal("1"), Decimal("200")) == Decimal("0.01")


def test_convert_to_base_is_deterministic():
    first = convert_to_base(Decimal("1234.56"), Decimal("31.7"))
    second = convert_to_base(Decimal("1234.56"), Decimal("31.7"))
    assert first == second == Decimal("38.95")


def test_convert_to_base_rejects_bad_input():
    with pytest.raises(ValueError):
        convert_to_base(Decimal("-1"), Decimal("30"))
    with pytest.raises(ValueError):
        convert_to_base(Decimal("10"), Decimal("0"))


def test_policy_derives_all_prices():
    prices = MarkupPricingPolicy().derive(
        Decimal("325"), Decimal("32.5"), random.Random(3)
    )

    assert prices.base_price == Decimal("10.00")
    assert prices.cost_price == Decimal("10.00")
    assert prices.list_price == Decimal("30.00")
    surcharge = prices.compare_at_price - prices.list_price
    assert Decimal("5") <= surcharge <= Decimal("20")
    assert prices.compare_at_price == prices.compare_at_price.quantize(Decimal("0.01"))


def test_policy_is_reproducible_with_same_seed():
    policy = MarkupPricingPolicy()
    first = policy.derive(Decimal("999.90"), Decimal("33"), random.Random(11))
    second = policy.derive(Decimal("999.90"), Decimal("33"), random.Random(11))
    assert first == second


@pytest.mark.parametrize(
    "value, expected",
    [
        (650, Decimal("650")),
        (19.9, Decimal("19.9")),
        ("1 299,90", Decimal("1299.90")),
        (" 42.5 ", Decimal("42.5")),
    ],
)
def test_to_decimal_accepts_feed_formats(value, expected):
    assert to_decimal(value) == expected


@pytest.mark.parametrize("value", ["abc", True, None, [1], "NaN"])
def test_to_decimal_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        to_decimal(value)


class FixedRandom(random.Random):
    """Генератор с заданным значением random()."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


def test_compare_at_rounds_the_sum_half_up():
    # 5 + 0.4971133 * 15 = 12.4566995; 30.00 + 12.4566995 -> 42.46
    prices = MarkupPricingPolicy().derive(
        Decimal("325"), Decimal("32.5"), FixedRandom(0.4971133)
    )

    assert prices.list_price == Decimal("30.00")
    assert prices.compare_at_price == Decimal("42.46")


def test_compare_at_with_lowest_draw():
    prices = MarkupPricingPolicy().derive(
        Decimal("325"), Decimal("32.5"), FixedRandom(0.0)
    )
    assert prices.compare_at_price == Decimal("35.00")
