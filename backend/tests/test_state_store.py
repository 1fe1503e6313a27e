"""Snapshot cache behaviour and record immutability."""

import dataclasses

import pytest

from factories import debt_log, sale
from pharmapos.services.state_store import PRODUCTS, SALES, StateStore, get_state_store


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


@pytest.fixture
def counting_store():
    calls = {"sales": 0}

    def load_sales():
        calls["sales"] += 1
        return [sale(calls["sales"])]

    clock = FakeClock()
    store = StateStore(ttl_seconds=30, loaders={SALES: load_sales, PRODUCTS: lambda: []}, now=clock)
    return store, clock, calls


def test_reads_are_cached_until_ttl(counting_store):
    store, clock, calls = counting_store
    first = store.get(SALES)
    clock.now += 29
    assert store.get(SALES) is first
    assert calls["sales"] == 1

    clock.now += 2
    refreshed = store.get(SALES)
    assert calls["sales"] == 2
    assert refreshed[0].id == 2


def test_invalidate_forces_reload(counting_store):
    store, _, calls = counting_store
    store.get(SALES)
    store.invalidate(SALES)
    store.get(SALES)
    assert calls["sales"] == 2


def test_clear_drops_everything(counting_store):
    store, _, calls = counting_store
    store.get(SALES)
    store.clear()
    store.get(SALES)
    assert calls["sales"] == 2


def test_values_are_tuples(counting_store):
    store, _, _ = counting_store
    assert isinstance(store.get(SALES), tuple)
    assert store.get(PRODUCTS) == ()


def test_unknown_collection(counting_store):
    store, _, _ = counting_store
    with pytest.raises(KeyError):
        store.get("invoices")
    with pytest.raises(KeyError):
        store.invalidate("invoices")


def test_records_are_frozen():
    record = sale(1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.total_amount_cents = 0

    log = debt_log(1, payment=100)
    with pytest.raises(TypeError):
        log.metadata["paymentAmountCents"] = 5


def test_app_store_sees_committed_writes(app, make_product):
    store = get_state_store()
    assert store.products() == ()
    make_product("Zinc")
    store.invalidate(PRODUCTS)
    assert [p.name for p in store.products()] == ["Zinc"]
