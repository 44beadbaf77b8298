from decimal import Decimal

import pytest

from sandwich_api.adapters.outbound.json_catalog import JsonMenuCatalog
from sandwich_api.core.domain.model.money import Money
from sandwich_api.core.domain.service.pricing import calculate, unknown_item_ids


def test_brisket_and_chips_scenario(catalog):
    summary = calculate(catalog, ["brisket", "chips"])

    assert [i.id for i in summary.items] == ["brisket", "chips"]
    assert summary.subtotal == Money.of("12.50")
    assert summary.tax == Money.of("1.09")
    assert summary.total == Money.of("13.59")
    assert summary.total_minor_units == 1359


def test_unknown_ids_are_dropped(catalog):
    summary = calculate(catalog, ["brisket", "not-a-real-id", "soda"])

    assert [i.id for i in summary.items] == ["brisket", "soda"]
    assert "not-a-real-id" not in {i.id for i in summary.items}
    assert unknown_item_ids(catalog, ["brisket", "not-a-real-id"]) == ("not-a-real-id",)


def test_all_unknown_yields_empty_summary(catalog):
    summary = calculate(catalog, ["nope", "also-nope"])

    assert summary.is_empty
    assert summary.subtotal == Money.zero()
    assert summary.total == Money.zero()
    assert summary.total_minor_units == 0


def test_duplicates_are_priced_per_occurrence(catalog):
    summary = calculate(catalog, ["chips", "brisket", "chips"])

    assert [i.id for i in summary.items] == ["chips", "brisket", "chips"]
    assert summary.subtotal == Money.of("14.50")


def test_calculate_is_deterministic(catalog):
    ids = ["porchetta", "pickles", "cold-brew", "porchetta"]
    assert calculate(catalog, ids) == calculate(catalog, ids)


@pytest.mark.parametrize(
    "ids",
    [
        ["brisket"],
        ["veggie", "water"],
        ["turkey", "turkey", "potato-salad"],
        ["roast-beef", "pickles", "soda", "chips", "cold-brew"],
        ["porchetta", "unknown", "porchetta"],
    ],
)
def test_total_is_subtotal_plus_rounded_tax(catalog, ids):
    summary = calculate(catalog, ids)
    rate = catalog.tax.rate

    assert summary.tax == Money.of(summary.subtotal.amount * rate)
    assert summary.total == Money.of(summary.subtotal.amount + summary.tax.amount)
    assert summary.total_minor_units == int(summary.total.amount * 100)


def test_tax_rounds_half_up():
    catalog = JsonMenuCatalog.from_document(
        {
            "sides": [{"id": "x", "name": "X", "price": "1.00"}],
            "tax": {"rate": "0.125", "description": "test"},
        }
    )
    # 1.00 * 0.125 = 0.125 -> 0.13
    summary = calculate(catalog, ["x"])
    assert summary.tax.amount == Decimal("0.13")
    assert summary.total.amount == Decimal("1.13")
