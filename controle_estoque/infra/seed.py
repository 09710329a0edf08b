# controle_estoque/infra/seed.py
"""
Dados de demonstração para o modo offline.

Fica fora do ledger: `demo_snapshot()` monta as coleções iniciais e
`seed_database()` grava essas coleções num banco vazio (comando `seed`).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Optional

from .db import connect
from .logger import log_database_operation, log_system_event, print_system
from .migrations import apply_migrations
from .repositories import _to_row
from controle_estoque.domain.models import (
    ENTRADA,
    SAIDA,
    Product,
    ProductGroup,
    Snapshot,
    StockMovement,
)


GROUPS = [
    # id, nome, descrição, cor
    ("1", "Produtos Ensacados", "Produtos em sacos", "#22c55e"),
    ("2", "Produtos em Bags", "Produtos em bags/big bags", "#eab308"),
    ("3", "Matéria Prima", "Matérias primas para produção", "#3b82f6"),
]

PRODUCTS = [
    # id, grupo, código, nome, unidade, estoque, mínimo
    ("1", "1", "NF-F28", "N-Form F28", "unidade", 313, 50),
    ("2", "1", "NF-D48", "N-Form D48", "unidade", 0, 20),
    ("3", "1", "NTG-PRO", "Nutrigel Pro", "unidade", 480, 100),
    ("4", "1", "FPC-MST", "Fubá Pre Cozido Master", "unidade", 20685, 5000),
    ("5", "1", "HR-MZ", "Harina Maiz", "unidade", 6, 10),
    ("6", "1", "HR-FRT", "Harina Fortificada", "unidade", 77, 20),
    ("7", "1", "FB-BR", "Fubá Branco", "unidade", 78, 30),
    ("8", "2", "NF-F28-BG", "N-Form F28 (Bag)", "bag", 203, 50),
    ("9", "2", "NF-D48-BG", "N-Form D48 (Bag)", "bag", 42, 20),
    ("10", "2", "GRT-1000", "Grits Nutriflot (1000)", "bag", 6, 5),
    ("11", "2", "FF-1400", "Farinha Fina (1400)", "bag", 9, 10),
    ("12", "2", "NTG-800", "Nutrigel Pro (800)", "bag", 30, 15),
    ("13", "2", "NTG-1000", "Nutrigel Pro (1000)", "bag", 7, 10),
    ("14", "2", "NTG-1400", "Nutrigel Pro (1400)", "bag", 54, 20),
    ("15", "3", "MLH-GR", "Milho em Grão", "ton", 1250, 500),
]

MOVEMENTS = [
    # id, produto, tipo, qtd, anterior, novo, empresa, obs, dias atrás
    ("1", "4", SAIDA, 5151, 25836, 20685, None, "31 avaria", 0),
    ("2", "1", ENTRADA, 100, 213, 313, "Fornecedor ABC", None, 1),
    ("3", "3", ENTRADA, 200, 280, 480, "Distribuidora XYZ", None, 2),
]


def demo_snapshot(now: Optional[datetime] = None) -> Snapshot:
    """Monta o snapshot de demonstração (mais recentes primeiro)."""
    now = now or datetime.now()
    groups = [
        ProductGroup(id=i, name=n, description=d, color=c, created_at=now)
        for i, n, d, c in GROUPS
    ]
    products = [
        Product(
            id=i, group_id=g, code=code, name=n, unit=u,
            current_stock=stock, min_stock=minimo, created_at=now,
        )
        for i, g, code, n, u, stock, minimo in PRODUCTS
    ]
    movements = [
        StockMovement(
            id=i, product_id=p, type=t, quantity=q,
            previous_stock=ant, new_stock=novo, company=emp, notes=obs,
            created_at=now - timedelta(days=dias),
        )
        for i, p, t, q, ant, novo, emp, obs, dias in MOVEMENTS
    ]
    return Snapshot(tuple(groups), tuple(products), tuple(movements))


def seed_database(db_path: str, force: bool = False) -> Dict[str, int]:
    """Grava os dados de demonstração em `db_path`.

    Recusa bancos que já têm grupos, a menos que `force=True` (que apaga tudo
    antes de semear).
    """
    apply_migrations(db_path)
    snap = demo_snapshot()
    with connect(db_path) as c:
        existing = c.execute("SELECT COUNT(*) FROM product_groups").fetchone()[0]
        if existing and not force:
            raise RuntimeError("Banco já possui dados; use force=True para sobrescrever.")
        c.execute("DELETE FROM stock_movements")
        c.execute("DELETE FROM products")
        c.execute("DELETE FROM product_groups")
        c.executemany(
            """INSERT INTO product_groups (id, name, description, color, created_at)
               VALUES (:id, :name, :description, :color, :created_at)""",
            [_to_row(g) for g in snap.groups],
        )
        c.executemany(
            """INSERT INTO products
                   (id, group_id, code, name, unit, current_stock, min_stock, created_at)
               VALUES
                   (:id, :group_id, :code, :name, :unit, :current_stock, :min_stock, :created_at)""",
            [_to_row(p) for p in snap.products],
        )
        c.executemany(
            """INSERT INTO stock_movements
                   (id, product_id, type, quantity, previous_stock, new_stock,
                    company, notes, created_at)
               VALUES
                   (:id, :product_id, :type, :quantity, :previous_stock, :new_stock,
                    :company, :notes, :created_at)""",
            [_to_row(m) for m in snap.movements],
        )
    counts = {
        "grupos": len(snap.groups),
        "produtos": len(snap.products),
        "movimentacoes": len(snap.movements),
    }
    log_database_operation("*", "SEED", sum(counts.values()), db_path=db_path)
    log_system_event("seed_database", counts)
    print_system(f">> Demonstração gravada em {db_path}")
    return counts
