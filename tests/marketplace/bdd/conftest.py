"""Shared BDD fixtures and step definitions for settlement scenarios."""

import pytest
from pytest_bdd import given, parsers


@pytest.fixture()
def world():
    """Names of suppliers and products created by Background steps, mapped to ids."""
    return {"suppliers": {}, "products": {}}


@given(parsers.cfparse('supplier "{name}" with a commission rate of {rate:d}'))
def _supplier(world, market, name, rate):
    world["suppliers"][name] = market.supplier(name, commission_rate=float(rate))


@given(parsers.cfparse('product "{name}" from "{supplier}" priced {price:d} with {stock:d} in stock'))
def _product(world, market, name, supplier, price, stock):
    world["products"][name] = market.product(
        name, price=float(price), stock=stock, supplier_id=world["suppliers"][supplier]
    )
