# controle_estoque/usecases/relatorios.py
"""
Relatórios de estoque (dados tabulares; a renderização fica a cargo de quem chama):
- estoque atual (por grupo ou geral)
- movimentações no período
- estoque baixo (com déficit)

Cada relatório devolve um dict com ``colunas``, ``linhas`` (lista de dicts)
e ``resumo``.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any, Dict, Optional, Tuple

from controle_estoque.config import DEFAULTS
from controle_estoque.domain.models import ENTRADA, Snapshot
from controle_estoque.domain.policies import is_below_minimum
from controle_estoque.usecases.consultas import (
    daily_movements,
    filter_movements_by,
    low_stock_deficits,
    movements_by_product,
    period_totals,
    stock_by_group,
    top_products,
)
from controle_estoque.infra.logger import log_system_event


# ----------------------
# util
# ----------------------

def current_month(today: Optional[date] = None) -> Tuple[date, date]:
    """Primeiro e último dia do mês de `today` (período padrão dos relatórios)."""
    today = today or date.today()
    last = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last)


def _scope(snapshot: Snapshot, group_id: Optional[str]):
    products = [p for p in snapshot.products if group_id is None or p.group_id == group_id]
    groups = {g.id: g for g in snapshot.groups}
    return products, groups


# ----------------------
# 1) Estoque atual
# ----------------------

def relatorio_estoque(snapshot: Snapshot, group_id: Optional[str] = None) -> Dict[str, Any]:
    products, groups = _scope(snapshot, group_id)
    linhas = []
    for p in products:
        g = groups.get(p.group_id)
        linhas.append({
            "codigo": p.code,
            "produto": p.name,
            "grupo": g.name if g else "N/A",
            "estoque": p.current_stock,
            "unidade": p.unit,
            "minimo": p.min_stock,
            "status": "BAIXO" if is_below_minimum(p.current_stock, p.min_stock) else "OK",
        })
    resumo = {
        "total_produtos": len(products),
        "estoque_baixo": sum(1 for r in linhas if r["status"] == "BAIXO"),
    }
    log_system_event("relatorio_estoque", {"group_id": group_id, **resumo})
    return {
        "colunas": ["codigo", "produto", "grupo", "estoque", "unidade", "minimo", "status"],
        "linhas": linhas,
        "resumo": resumo,
        "por_grupo": [
            g for g in stock_by_group(snapshot)
            if group_id is None or g["group_id"] == group_id
        ],
        "top_produtos": top_products(products, DEFAULTS.report_top),
    }


# ----------------------
# 2) Movimentações no período
# ----------------------

def relatorio_movimentacoes(snapshot: Snapshot, inicio: Optional[date] = None,
                            fim: Optional[date] = None,
                            group_id: Optional[str] = None) -> Dict[str, Any]:
    if inicio is None or fim is None:
        d_ini, d_fim = current_month()
        inicio = inicio or d_ini
        fim = fim or d_fim
    products, groups = _scope(snapshot, group_id)
    by_id = {p.id: p for p in products}
    movements = filter_movements_by(snapshot.movements, start=inicio, end=fim, product_ids=by_id)

    linhas = []
    for m in movements:
        p = by_id[m.product_id]
        g = groups.get(p.group_id)
        linhas.append({
            "data": m.created_at,
            "tipo": "Entrada" if m.type == ENTRADA else "Saída",
            "produto": p.name,
            "grupo": g.name if g else "N/A",
            "quantidade": m.quantity,
            "anterior": m.previous_stock,
            "novo": m.new_stock,
            "empresa": m.company or "-",
        })
    entradas, saidas = period_totals(movements)
    resumo = {
        "total_movimentacoes": len(movements),
        "total_entradas": entradas,
        "total_saidas": saidas,
    }
    log_system_event("relatorio_movimentacoes", {
        "inicio": inicio.isoformat(), "fim": fim.isoformat(), "group_id": group_id, **resumo,
    })
    return {
        "periodo": (inicio, fim),
        "colunas": ["data", "tipo", "produto", "grupo", "quantidade", "anterior", "novo", "empresa"],
        "linhas": linhas,
        "resumo": resumo,
        "diario": daily_movements(movements, inicio, fim),
        "por_produto": movements_by_product(movements, products),
    }


# ----------------------
# 3) Estoque baixo
# ----------------------

def relatorio_estoque_baixo(snapshot: Snapshot, group_id: Optional[str] = None) -> Dict[str, Any]:
    products, groups = _scope(snapshot, group_id)
    linhas = []
    for row in low_stock_deficits(products):
        p = row["product"]
        g = groups.get(p.group_id)
        linhas.append({
            "codigo": p.code,
            "produto": p.name,
            "grupo": g.name if g else "N/A",
            "estoque": p.current_stock,
            "minimo": p.min_stock,
            "deficit": row["deficit"],
        })
    resumo = {"total_produtos": len(linhas)}
    log_system_event("relatorio_estoque_baixo", {"group_id": group_id, **resumo})
    return {
        "colunas": ["codigo", "produto", "grupo", "estoque", "minimo", "deficit"],
        "linhas": linhas,
        "resumo": resumo,
    }
