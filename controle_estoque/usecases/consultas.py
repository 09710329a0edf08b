# controle_estoque/usecases/consultas.py
"""
Consultas e agregados sobre o snapshot do ledger.

Funções puras: recebem coleções (ou um `Snapshot`) e devolvem números,
listas ou dataclasses. Nada aqui muda estado nem guarda cache; cada chamada
é uma nova passada sobre as coleções recebidas.

Principais:
- total_stock / low_stock_count / period_totals
- top_products / group_rollup / dashboard_stats
- search_products / filter_movements (telas de produtos e movimentações)
- stock_by_group / movements_by_product / daily_movements / low_stock_deficits
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from controle_estoque.config import DEFAULTS
from controle_estoque.domain.errors import NotFoundError
from controle_estoque.domain.models import (
    ENTRADA,
    SAIDA,
    Product,
    ProductGroup,
    Snapshot,
    StockMovement,
)
from controle_estoque.domain.policies import (
    STATUS_ORDER,
    is_below_minimum,
    stock_status,
)


DateLike = Union[date, datetime]


@dataclass
class GroupRollup:
    group: ProductGroup
    products: List[Product]
    total_stock: float
    low_stock_count: int
    entries: float
    exits: float
    chart_data: List[Product] = field(default_factory=list)


@dataclass
class DashboardStats:
    total_products: int
    total_groups: int
    total_stock: float
    total_entries: float
    total_exits: float
    low_stock_products: int
    recent_movements: List[StockMovement] = field(default_factory=list)


# ----------------------
# util
# ----------------------

def _as_start(d: Optional[DateLike]) -> Optional[datetime]:
    if d is None or isinstance(d, datetime):
        return d
    return datetime.combine(d, time.min)


def _as_end(d: Optional[DateLike]) -> Optional[datetime]:
    # data sem hora cobre o dia inteiro
    if d is None or isinstance(d, datetime):
        return d
    return datetime.combine(d, time.max)


def in_interval(moment: datetime, start: Optional[DateLike] = None,
                end: Optional[DateLike] = None) -> bool:
    """Intervalo fechado nas duas pontas; ``None`` deixa a ponta em aberto."""
    s, e = _as_start(start), _as_end(end)
    if s is not None and moment < s:
        return False
    if e is not None and moment > e:
        return False
    return True


def _in_group(products: Iterable[Product], group_id: Optional[str]) -> List[Product]:
    if group_id is None:
        return list(products)
    return [p for p in products if p.group_id == group_id]


def product_ids_of_group(products: Iterable[Product], group_id: str) -> Set[str]:
    return {p.id for p in products if p.group_id == group_id}


# ----------------------
# agregados básicos
# ----------------------

def total_stock(products: Iterable[Product], group_id: Optional[str] = None) -> float:
    return sum(p.current_stock for p in _in_group(products, group_id))


def low_stock_count(products: Iterable[Product], group_id: Optional[str] = None) -> int:
    """Produtos com mínimo definido e saldo estritamente abaixo dele."""
    return sum(1 for p in _in_group(products, group_id) if is_below_minimum(p.current_stock, p.min_stock))


def filter_movements_by(
    movements: Iterable[StockMovement],
    type: Optional[str] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    product_ids: Optional[Iterable[str]] = None,
) -> List[StockMovement]:
    ids = set(product_ids) if product_ids is not None else None
    out = []
    for m in movements:
        if type is not None and m.type != type:
            continue
        if ids is not None and m.product_id not in ids:
            continue
        if not in_interval(m.created_at, start, end):
            continue
        out.append(m)
    return out


def sum_quantity(movements: Iterable[StockMovement], type: str, start: Optional[DateLike] = None,
                 end: Optional[DateLike] = None, product_ids: Optional[Iterable[str]] = None) -> float:
    return sum(m.quantity for m in filter_movements_by(movements, type, start, end, product_ids))


def period_totals(movements: Sequence[StockMovement], start: Optional[DateLike] = None,
                  end: Optional[DateLike] = None,
                  product_ids: Optional[Iterable[str]] = None) -> Tuple[float, float]:
    """Retorna ``(entradas, saidas)`` somando as quantidades no período/conjunto."""
    ids = set(product_ids) if product_ids is not None else None
    return (
        sum_quantity(movements, ENTRADA, start, end, ids),
        sum_quantity(movements, SAIDA, start, end, ids),
    )


def top_products(products: Iterable[Product], n: int,
                 group_id: Optional[str] = None) -> List[Product]:
    """Os ``n`` produtos de maior saldo; empates mantêm a ordem da coleção."""
    ranked = sorted(_in_group(products, group_id), key=lambda p: p.current_stock, reverse=True)
    return ranked[:n]


def sort_by_status(products: Iterable[Product], descending: bool = False) -> List[Product]:
    return sorted(
        products,
        key=lambda p: STATUS_ORDER[stock_status(p.current_stock, p.min_stock)],
        reverse=descending,
    )


# ----------------------
# painéis
# ----------------------

def group_rollup(snapshot: Snapshot, group_id: str, start: Optional[DateLike] = None,
                 end: Optional[DateLike] = None,
                 chart_top: int = DEFAULTS.group_chart_top) -> GroupRollup:
    group = next((g for g in snapshot.groups if g.id == group_id), None)
    if group is None:
        raise NotFoundError("Grupo", group_id)
    products = _in_group(snapshot.products, group_id)
    ids = {p.id for p in products}
    entries, exits = period_totals(snapshot.movements, start, end, ids)
    return GroupRollup(
        group=group,
        products=products,
        total_stock=total_stock(products),
        low_stock_count=low_stock_count(products),
        entries=entries,
        exits=exits,
        chart_data=top_products(products, chart_top),
    )


def group_rollups(snapshot: Snapshot, **kwargs) -> List[GroupRollup]:
    return [group_rollup(snapshot, g.id, **kwargs) for g in snapshot.groups]


def recent_movements(movements: Iterable[StockMovement],
                     limit: Optional[int] = DEFAULTS.recent_movements) -> List[StockMovement]:
    return sorted(movements, key=lambda m: m.created_at, reverse=True)[:limit]


def dashboard_stats(snapshot: Snapshot, group_id: Optional[str] = None) -> DashboardStats:
    products = _in_group(snapshot.products, group_id)
    movements = list(snapshot.movements)
    if group_id is not None:
        movements = filter_movements_by(movements, product_ids={p.id for p in products})
    entries, exits = period_totals(movements)
    return DashboardStats(
        total_products=len(products),
        total_groups=len(snapshot.groups),
        total_stock=total_stock(products),
        total_entries=entries,
        total_exits=exits,
        low_stock_products=low_stock_count(products),
        recent_movements=recent_movements(movements),
    )


# ----------------------
# listas filtradas
# ----------------------

SORT_FIELDS = ("code", "name", "group", "current_stock", "min_stock", "status")


def search_products(products: Iterable[Product], groups: Iterable[ProductGroup], term: str = "",
                    group_id: Optional[str] = None, sort_field: str = "name",
                    descending: bool = False) -> List[Product]:
    """Busca por nome ou código (sem diferenciar maiúsculas), filtra por grupo e ordena."""
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"campo de ordenação inválido: {sort_field!r}")
    group_names = {g.id: g.name for g in groups}
    needle = (term or "").strip().lower()

    result = [
        p for p in _in_group(products, group_id)
        if not needle or needle in p.name.lower() or needle in p.code.lower()
    ]

    keys = {
        "code": lambda p: p.code.lower(),
        "name": lambda p: p.name.lower(),
        "group": lambda p: group_names.get(p.group_id, "").lower(),
        "current_stock": lambda p: p.current_stock,
        "min_stock": lambda p: p.min_stock or 0,
        "status": lambda p: STATUS_ORDER[stock_status(p.current_stock, p.min_stock)],
    }
    result.sort(key=keys[sort_field], reverse=descending)
    return result


def filter_movements(movements: Iterable[StockMovement], products: Iterable[Product],
                     term: str = "", type: Optional[str] = None) -> List[StockMovement]:
    """Movimentações mais recentes primeiro, filtradas por nome do produto e tipo."""
    names = {p.id: p.name.lower() for p in products}
    needle = (term or "").strip().lower()
    out = []
    for m in recent_movements(movements, limit=None):
        if type is not None and m.type != type:
            continue
        if needle and needle not in names.get(m.product_id, ""):
            continue
        out.append(m)
    return out


# ----------------------
# séries para gráficos e relatórios
# ----------------------

def stock_by_group(snapshot: Snapshot) -> List[Dict[str, object]]:
    """Saldo total por grupo, só grupos com saldo positivo."""
    out = []
    for g in snapshot.groups:
        value = total_stock(snapshot.products, g.id)
        if value > 0:
            out.append({"group_id": g.id, "name": g.name, "color": g.color, "value": value})
    return out


def movements_by_product(movements: Iterable[StockMovement], products: Iterable[Product],
                         limit: int = 6) -> List[Dict[str, object]]:
    """Produtos com maior volume movimentado (entradas + saídas)."""
    names = {p.id: p.name for p in products}
    agg: Dict[str, Dict[str, float]] = defaultdict(lambda: {ENTRADA: 0, SAIDA: 0})
    for m in movements:
        agg[m.product_id][m.type] += m.quantity
    rows = [
        {
            "product_id": pid,
            "name": names.get(pid, "N/A"),
            "entradas": v[ENTRADA],
            "saidas": v[SAIDA],
            "total": v[ENTRADA] + v[SAIDA],
        }
        for pid, v in agg.items()
    ]
    rows.sort(key=lambda r: r["total"], reverse=True)
    return rows[:limit]


def daily_movements(movements: Iterable[StockMovement], start: date,
                    end: date) -> List[Dict[str, object]]:
    """Série diária de entradas e saídas entre ``start`` e ``end`` (inclusive)."""
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    per_day: Dict[date, Dict[str, float]] = defaultdict(lambda: {ENTRADA: 0, SAIDA: 0})
    for m in movements:
        per_day[m.created_at.date()][m.type] += m.quantity
    out = []
    day = start
    while day <= end:
        v = per_day.get(day, {ENTRADA: 0, SAIDA: 0})
        out.append({"data": day, "entradas": v[ENTRADA], "saidas": v[SAIDA]})
        day += timedelta(days=1)
    return out


def low_stock_deficits(products: Iterable[Product]) -> List[Dict[str, object]]:
    """Produtos abaixo do mínimo com o déficit (mínimo - saldo), maior déficit primeiro."""
    rows = [
        {"product": p, "deficit": p.min_stock - p.current_stock}
        for p in products
        if is_below_minimum(p.current_stock, p.min_stock)
    ]
    rows.sort(key=lambda r: r["deficit"], reverse=True)
    return rows
