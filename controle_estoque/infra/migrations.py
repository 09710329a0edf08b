# controle_estoque/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas product_groups, products, stock_movements
V2: índices (código case-insensitive único, datas e chaves estrangeiras)
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Grupos de produtos
    """
    CREATE TABLE IF NOT EXISTS product_groups (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        color TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    # Produtos
    """
    CREATE TABLE IF NOT EXISTS products (
        id TEXT PRIMARY KEY,
        group_id TEXT NOT NULL,
        code TEXT NOT NULL,
        name TEXT NOT NULL,
        unit TEXT NOT NULL,
        current_stock NUMERIC NOT NULL DEFAULT 0 CHECK (current_stock >= 0),
        min_stock NUMERIC,
        created_at TEXT NOT NULL,
        FOREIGN KEY (group_id) REFERENCES product_groups(id) ON DELETE CASCADE
    );
    """,
    # Movimentações (ledger)
    """
    CREATE TABLE IF NOT EXISTS stock_movements (
        id TEXT PRIMARY KEY,
        product_id TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('entrada', 'saida')),
        quantity NUMERIC NOT NULL CHECK (quantity > 0),
        previous_stock NUMERIC NOT NULL,
        new_stock NUMERIC NOT NULL CHECK (new_stock >= 0),
        company TEXT,
        notes TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
    );
    """,
]

SCHEMA_V2: List[str] = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_products_code_nocase ON products(lower(code));",
    "CREATE INDEX IF NOT EXISTS idx_products_group ON products(group_id);",
    "CREATE INDEX IF NOT EXISTS idx_movements_product ON stock_movements(product_id);",
    "CREATE INDEX IF NOT EXISTS idx_movements_created ON stock_movements(created_at);",
]


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.execute(sql)


def _apply_v2(conn) -> None:
    for sql in SCHEMA_V2:
        conn.execute(sql)


def schema_version(db_path: str) -> int:
    with connect(db_path) as conn:
        return conn.execute("PRAGMA user_version;").fetchone()[0] or 0


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
