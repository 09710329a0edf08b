from dataclasses import replace
from datetime import date, datetime

import pytest

from controle_estoque.domain.errors import NotFoundError
from controle_estoque.domain.models import Product, ProductGroup, Snapshot, StockMovement
from controle_estoque.usecases.consultas import (
    dashboard_stats,
    daily_movements,
    filter_movements,
    group_rollup,
    group_rollups,
    in_interval,
    low_stock_count,
    low_stock_deficits,
    movements_by_product,
    period_totals,
    recent_movements,
    search_products,
    sort_by_status,
    stock_by_group,
    top_products,
    total_stock,
)


T0 = datetime(2025, 1, 1, 12, 0)


def _group(id_, name, color):
    return ProductGroup(id=id_, name=name, color=color, created_at=T0)


def _product(id_, group_id, code, name, stock, minimo=None):
    return Product(
        id=id_, group_id=group_id, code=code, name=name, unit="unidade",
        current_stock=stock, min_stock=minimo, created_at=T0,
    )


def _mov(id_, product_id, tipo, qtd, when):
    return StockMovement(
        id=id_, product_id=product_id, type=tipo, quantity=qtd,
        previous_stock=0, new_stock=0, created_at=when,
    )


@pytest.fixture
def snap():
    groups = (
        _group("g1", "Ensacados", "#22c55e"),
        _group("g2", "Bags", "#eab308"),
        _group("g3", "Vazio", "#3b82f6"),
    )
    products = (
        _product("p1", "g1", "A1", "Alpha", 10, 5),
        _product("p2", "g1", "B2", "Beta", 3, 5),
        _product("p3", "g1", "C3", "Gamma", 0, 4),
        _product("p4", "g2", "D4", "Delta", 100),
        _product("p5", "g2", "E5", "Echo", 5, 5),
    )
    movements = (
        _mov("m5", "p5", "saida", 1, datetime(2025, 2, 1, 8, 0)),
        _mov("m4", "p1", "saida", 3, datetime(2025, 1, 7, 23, 59, 59)),
        _mov("m3", "p4", "entrada", 50, datetime(2025, 1, 7, 18, 0)),
        _mov("m2", "p2", "saida", 2, datetime(2025, 1, 6, 9, 0)),
        _mov("m1", "p1", "entrada", 10, datetime(2025, 1, 5, 10, 0)),
    )
    return Snapshot(groups, products, movements)


def _ids(items):
    return [i.id for i in items]


# -------------------------
# agregados básicos
# -------------------------

def test_total_stock(snap):
    assert total_stock(snap.products) == 118
    assert total_stock(snap.products, "g1") == 13
    assert total_stock(snap.products, "g3") == 0


def test_low_stock_count_is_strict(snap):
    # p5 está exatamente no mínimo e não conta
    assert low_stock_count(snap.products) == 2
    assert low_stock_count(snap.products, "g2") == 0


def test_period_totals(snap):
    assert period_totals(snap.movements) == (60, 6)
    assert period_totals(snap.movements, product_ids={"p1"}) == (10, 3)


def test_period_with_dates_covers_whole_day(snap):
    day = date(2025, 1, 7)
    assert period_totals(snap.movements, day, day) == (50, 3)


def test_in_interval_with_datetimes():
    moment = datetime(2025, 1, 7, 12, 0)
    assert in_interval(moment)
    assert in_interval(moment, datetime(2025, 1, 7, 12, 0), datetime(2025, 1, 7, 12, 0))
    assert not in_interval(moment, end=datetime(2025, 1, 7, 11, 59))
    assert not in_interval(moment, start=date(2025, 1, 8))


def test_top_products_keeps_order_on_ties(snap):
    p1, p2 = snap.products[0], snap.products[1]
    tie = replace(p2, id="px", current_stock=10)
    assert _ids(top_products([p2, p1, tie], 2)) == ["p1", "px"]
    assert _ids(top_products(snap.products, 2)) == ["p4", "p1"]
    assert _ids(top_products(snap.products, 10, group_id="g1")) == ["p1", "p2", "p3"]


def test_sort_by_status(snap):
    assert _ids(sort_by_status(snap.products)) == ["p3", "p2", "p1", "p4", "p5"]
    assert _ids(sort_by_status(snap.products, descending=True))[:3] == ["p1", "p4", "p5"]


# -------------------------
# painéis
# -------------------------

def test_group_rollup(snap):
    r = group_rollup(snap, "g1")
    assert r.group.name == "Ensacados"
    assert _ids(r.products) == ["p1", "p2", "p3"]
    assert r.total_stock == 13
    assert r.low_stock_count == 2
    assert (r.entries, r.exits) == (10, 5)
    assert _ids(r.chart_data) == ["p1", "p2", "p3"]
    assert _ids(group_rollup(snap, "g1", chart_top=2).chart_data) == ["p1", "p2"]


def test_group_rollup_with_period(snap):
    r = group_rollup(snap, "g1", start=date(2025, 1, 6), end=date(2025, 1, 31))
    assert (r.entries, r.exits) == (0, 5)


def test_group_rollup_empty_and_unknown(snap):
    r = group_rollup(snap, "g3")
    assert r.products == []
    assert r.total_stock == 0
    assert (r.entries, r.exits) == (0, 0)
    with pytest.raises(NotFoundError):
        group_rollup(snap, "nao-existe")
    assert [r.group.id for r in group_rollups(snap)] == ["g1", "g2", "g3"]


def test_dashboard_stats(snap):
    s = dashboard_stats(snap)
    assert s.total_products == 5
    assert s.total_groups == 3
    assert s.total_stock == 118
    assert (s.total_entries, s.total_exits) == (60, 6)
    assert s.low_stock_products == 2
    assert _ids(s.recent_movements) == ["m5", "m4", "m3", "m2", "m1"]


def test_dashboard_stats_for_group(snap):
    s = dashboard_stats(snap, "g2")
    assert s.total_products == 2
    assert s.total_stock == 105
    assert (s.total_entries, s.total_exits) == (50, 1)
    assert s.low_stock_products == 0
    assert _ids(s.recent_movements) == ["m5", "m3"]


def test_dashboard_stats_empty():
    s = dashboard_stats(Snapshot())
    assert (s.total_products, s.total_groups, s.total_stock) == (0, 0, 0)
    assert s.recent_movements == []


def test_recent_movements_limit(snap):
    assert _ids(recent_movements(reversed(snap.movements), 2)) == ["m5", "m4"]
    assert len(recent_movements(snap.movements, None)) == 5


# -------------------------
# listas filtradas
# -------------------------

def test_search_products_by_name_or_code(snap):
    assert _ids(search_products(snap.products, snap.groups, "a")) == ["p1", "p2", "p4", "p3"]
    assert _ids(search_products(snap.products, snap.groups, "b2")) == ["p2"]
    assert _ids(search_products(snap.products, snap.groups, "  ")) == ["p1", "p2", "p4", "p5", "p3"]


def test_search_products_group_and_sort(snap):
    res = search_products(snap.products, snap.groups, group_id="g1",
                          sort_field="current_stock", descending=True)
    assert _ids(res) == ["p1", "p2", "p3"]
    res = search_products(snap.products, snap.groups, sort_field="group")
    assert _ids(res) == ["p4", "p5", "p1", "p2", "p3"]
    res = search_products(snap.products, snap.groups, sort_field="status")
    assert _ids(res)[:2] == ["p3", "p2"]


def test_search_products_invalid_sort(snap):
    with pytest.raises(ValueError):
        search_products(snap.products, snap.groups, sort_field="preco")


def test_filter_movements(snap):
    assert _ids(filter_movements(snap.movements, snap.products, "ALPHA")) == ["m4", "m1"]
    assert _ids(filter_movements(snap.movements, snap.products, type="saida")) == ["m5", "m4", "m2"]
    assert filter_movements(snap.movements, snap.products, "zzz") == []


# -------------------------
# séries
# -------------------------

def test_stock_by_group_skips_empty(snap):
    rows = stock_by_group(snap)
    assert [(r["name"], r["value"]) for r in rows] == [("Ensacados", 13), ("Bags", 105)]
    assert rows[0]["color"] == "#22c55e"


def test_movements_by_product(snap):
    rows = movements_by_product(snap.movements, snap.products)
    assert [(r["name"], r["total"]) for r in rows] == [
        ("Delta", 50), ("Alpha", 13), ("Beta", 2), ("Echo", 1),
    ]
    assert rows[1]["entradas"] == 10
    assert rows[1]["saidas"] == 3
    assert len(movements_by_product(snap.movements, snap.products, limit=2)) == 2


def test_daily_movements(snap):
    rows = daily_movements(snap.movements, date(2025, 1, 5), date(2025, 1, 8))
    assert [r["data"] for r in rows] == [date(2025, 1, d) for d in (5, 6, 7, 8)]
    assert [(r["entradas"], r["saidas"]) for r in rows] == [(10, 0), (0, 2), (50, 3), (0, 0)]


def test_low_stock_deficits(snap):
    rows = low_stock_deficits(snap.products)
    assert [(r["product"].id, r["deficit"]) for r in rows] == [("p3", 4), ("p2", 2)]
