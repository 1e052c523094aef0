"""Tests for cart totals."""

import pytest

from models import CartLineItem, DiscountSpec, PERCENTAGE, FIXED
from pricing import calculate_totals, calculate_discount, discount_value, format_currency, Totals


@pytest.fixture
def milk_cart():
    return [CartLineItem('prod-1', 'Organic Milk', 2, 60)]


def test_no_discount(milk_cart):
    totals = calculate_totals(milk_cart, None, tax_rate=5)

    assert totals.subtotal == pytest.approx(120)
    assert totals.discount_amount == 0
    assert totals.subtotal_after_discount == pytest.approx(120)
    assert totals.tax_amount == pytest.approx(6)
    assert totals.total == pytest.approx(126)


def test_percentage_discount(milk_cart):
    totals = calculate_totals(milk_cart, DiscountSpec(10, PERCENTAGE), tax_rate=5)

    assert totals.discount_amount == pytest.approx(12)
    assert totals.subtotal_after_discount == pytest.approx(108)
    assert totals.tax_amount == pytest.approx(5.4)
    assert totals.total == pytest.approx(113.4)


def test_fixed_discount_larger_than_subtotal_is_clamped(milk_cart):
    totals = calculate_totals(milk_cart, DiscountSpec(200, FIXED), tax_rate=5)

    assert totals.discount_amount == pytest.approx(120)
    assert totals.subtotal_after_discount == 0
    assert totals.tax_amount == 0
    assert totals.total == 0


def test_huge_fixed_discount_leaves_only_tax():
    lines = [CartLineItem('p', 'Item', 1, 100)]
    totals = calculate_totals(lines, DiscountSpec(9999, FIXED), tax_rate=18)

    assert totals.discount_amount == 100
    assert totals.total == totals.tax_amount == 0


@pytest.mark.parametrize("value", [0, -5, '', None, 'abc'])
def test_non_positive_or_blank_discount_is_ignored(milk_cart, value):
    totals = calculate_totals(milk_cart, DiscountSpec(value, FIXED), tax_rate=0)
    assert totals.discount_amount == 0
    assert totals.total == pytest.approx(120)


def test_percentage_over_hundred_is_clamped(milk_cart):
    assert calculate_discount(120, DiscountSpec(150, PERCENTAGE)) == 120


def test_discount_typed_as_text(milk_cart):
    totals = calculate_totals(milk_cart, DiscountSpec('20', FIXED), tax_rate=0)
    assert totals.discount_amount == 20


def test_totals_invariants_hold():
    lines = [CartLineItem('a', 'A', 3, 19.99), CartLineItem('b', 'B', 7, 0.35)]
    totals = calculate_totals(lines, DiscountSpec(7.5, PERCENTAGE), tax_rate=12.5)

    assert 0 <= totals.discount_amount <= totals.subtotal
    assert totals.total == pytest.approx(
        totals.subtotal - totals.discount_amount + totals.tax_amount)
    assert totals.tax_amount == pytest.approx(
        (totals.subtotal - totals.discount_amount) * 12.5 / 100)


def test_same_inputs_give_same_totals(milk_cart):
    discount = DiscountSpec(10, PERCENTAGE)
    first = calculate_totals(milk_cart, discount, tax_rate=5)
    second = calculate_totals(milk_cart, discount, tax_rate=5)

    assert first == second
    assert milk_cart[0].quantity == 2


def test_empty_cart():
    totals = calculate_totals([], DiscountSpec(50, FIXED), tax_rate=5)
    assert totals == Totals(0.0, 0.0, 0.0, 0.0, 0.0)


def test_no_rounding_until_display():
    lines = [CartLineItem('a', 'A', 1, 10.005)]
    totals = calculate_totals(lines, None, tax_rate=0)

    assert totals.total == 10.005
    assert totals.rounded().total == round(10.005, 2)


def test_discount_value_parsing():
    assert discount_value('12.5') == 12.5
    assert discount_value('') == 0.0
    assert discount_value(None) == 0.0
    assert discount_value('ten') == 0.0
    assert discount_value(float('nan')) == 0.0


def test_format_currency():
    assert format_currency(113.4) == "₹113.40"
    assert format_currency(5, "$") == "$5.00"
