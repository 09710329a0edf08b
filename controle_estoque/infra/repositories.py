# controle_estoque/infra/repositories.py
"""
Backends de persistência do ledger.

Classes:
- SqliteBackend: grava em SQLite (tabelas product_groups, products, stock_movements)
- MemoryBackend: mantém as linhas em memória (modo demo/offline e testes)

Contrato comum (usado por `LedgerStore`):
- load_groups() / load_products() / load_movements(): todas as linhas, mais recentes primeiro
- insert_group / update_group / delete_group
- insert_product / update_product / delete_product
- record_movement: grava a movimentação e o novo saldo do produto juntos

Qualquer exceção levantada aqui é tratada pelo ledger como falha do backend.
As cascatas de exclusão são feitas explicitamente, na mesma transação,
sem depender do ON DELETE CASCADE do schema.
"""

from __future__ import annotations

from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from .db import connect
from .logger import log_database_operation
from controle_estoque.domain.models import Product, ProductGroup, StockMovement


# -------------------------
# Helpers
# -------------------------

def _to_row(obj: Any) -> Dict[str, Any]:
    row = asdict(obj)
    row["created_at"] = obj.created_at.isoformat()
    return row


def _parse_dt(val: Any) -> datetime:
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(str(val))


def _fetch(conn, sql: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
    cur = conn.execute(sql, tuple(params))
    cols = [d[0] for d in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def _group_from_row(r: Dict[str, Any]) -> ProductGroup:
    return ProductGroup(
        id=r["id"],
        name=r["name"],
        description=r.get("description"),
        color=r["color"],
        created_at=_parse_dt(r["created_at"]),
    )


def _product_from_row(r: Dict[str, Any]) -> Product:
    return Product(
        id=r["id"],
        group_id=r["group_id"],
        code=r["code"],
        name=r["name"],
        unit=r["unit"],
        current_stock=r["current_stock"],
        min_stock=r.get("min_stock"),
        created_at=_parse_dt(r["created_at"]),
    )


def _movement_from_row(r: Dict[str, Any]) -> StockMovement:
    return StockMovement(
        id=r["id"],
        product_id=r["product_id"],
        type=r["type"],
        quantity=r["quantity"],
        previous_stock=r["previous_stock"],
        new_stock=r["new_stock"],
        company=r.get("company"),
        notes=r.get("notes"),
        created_at=_parse_dt(r["created_at"]),
    )


class StaleStockError(RuntimeError):
    """O saldo gravado no banco não é o saldo que o ledger leu."""


class MissingRowError(RuntimeError):
    """A linha a atualizar não existe mais no banco."""


# -------------------------
# SQLite
# -------------------------

class SqliteBackend:
    def __init__(self, db_path: str):
        self.db_path = db_path

    # ---- leitura ----

    def load_groups(self) -> List[ProductGroup]:
        with connect(self.db_path) as c:
            rows = _fetch(
                c,
                """SELECT id, name, description, color, created_at
                   FROM product_groups
                   ORDER BY created_at DESC, rowid DESC""",
            )
        return [_group_from_row(r) for r in rows]

    def load_products(self) -> List[Product]:
        with connect(self.db_path) as c:
            rows = _fetch(
                c,
                """SELECT id, group_id, code, name, unit, current_stock, min_stock, created_at
                   FROM products
                   ORDER BY created_at DESC, rowid DESC""",
            )
        return [_product_from_row(r) for r in rows]

    def load_movements(self) -> List[StockMovement]:
        with connect(self.db_path) as c:
            rows = _fetch(
                c,
                """SELECT id, product_id, type, quantity, previous_stock, new_stock,
                          company, notes, created_at
                   FROM stock_movements
                   ORDER BY created_at DESC, rowid DESC""",
            )
        return [_movement_from_row(r) for r in rows]

    # ---- grupos ----

    def insert_group(self, group: ProductGroup) -> None:
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO product_groups (id, name, description, color, created_at)
                VALUES (:id, :name, :description, :color, :created_at)
                """,
                _to_row(group),
            )
        log_database_operation("product_groups", "INSERT", 1, id=group.id)

    def update_group(self, group: ProductGroup) -> None:
        with connect(self.db_path) as c:
            updated = c.execute(
                """
                UPDATE product_groups
                   SET name=:name, description=:description, color=:color
                 WHERE id=:id
                """,
                _to_row(group),
            ).rowcount
            if updated != 1:
                raise MissingRowError(f"grupo {group.id} não existe mais")
        log_database_operation("product_groups", "UPDATE", 1, id=group.id)

    def delete_group(self, group_id: str) -> None:
        with connect(self.db_path) as c:
            mov = c.execute(
                """
                DELETE FROM stock_movements
                 WHERE product_id IN (SELECT id FROM products WHERE group_id = ?)
                """,
                (group_id,),
            ).rowcount
            prod = c.execute("DELETE FROM products WHERE group_id = ?", (group_id,)).rowcount
            c.execute("DELETE FROM product_groups WHERE id = ?", (group_id,))
        log_database_operation(
            "product_groups", "DELETE_CASCADE", 1,
            id=group_id, products=prod, movements=mov,
        )

    # ---- produtos ----

    def insert_product(self, product: Product) -> None:
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO products
                    (id, group_id, code, name, unit, current_stock, min_stock, created_at)
                VALUES
                    (:id, :group_id, :code, :name, :unit, :current_stock, :min_stock, :created_at)
                """,
                _to_row(product),
            )
        log_database_operation("products", "INSERT", 1, id=product.id, code=product.code)

    def update_product(self, product: Product) -> None:
        with connect(self.db_path) as c:
            updated = c.execute(
                """
                UPDATE products
                   SET group_id=:group_id, code=:code, name=:name, unit=:unit,
                       current_stock=:current_stock, min_stock=:min_stock
                 WHERE id=:id
                """,
                _to_row(product),
            ).rowcount
            if updated != 1:
                raise MissingRowError(f"produto {product.id} não existe mais")
        log_database_operation("products", "UPDATE", 1, id=product.id)

    def delete_product(self, product_id: str) -> None:
        with connect(self.db_path) as c:
            mov = c.execute(
                "DELETE FROM stock_movements WHERE product_id = ?", (product_id,)
            ).rowcount
            c.execute("DELETE FROM products WHERE id = ?", (product_id,))
        log_database_operation("products", "DELETE_CASCADE", 1, id=product_id, movements=mov)

    # ---- movimentações ----

    def record_movement(self, movement: StockMovement) -> None:
        with connect(self.db_path) as c:
            updated = c.execute(
                """
                UPDATE products
                   SET current_stock = ?
                 WHERE id = ? AND current_stock = ?
                """,
                (movement.new_stock, movement.product_id, movement.previous_stock),
            ).rowcount
            if updated != 1:
                raise StaleStockError(
                    f"saldo do produto {movement.product_id} difere de {movement.previous_stock}"
                )
            c.execute(
                """
                INSERT INTO stock_movements
                    (id, product_id, type, quantity, previous_stock, new_stock,
                     company, notes, created_at)
                VALUES
                    (:id, :product_id, :type, :quantity, :previous_stock, :new_stock,
                     :company, :notes, :created_at)
                """,
                _to_row(movement),
            )
        log_database_operation(
            "stock_movements", "INSERT", 1,
            id=movement.id, product_id=movement.product_id, new_stock=movement.new_stock,
        )


# -------------------------
# Memória
# -------------------------

class MemoryBackend:
    """Backend sem arquivo: as linhas vivem em dicionários.

    ``fail_on`` recebe nomes de métodos de escrita (ex.: ``{"record_movement"}``)
    que passam a levantar ``RuntimeError``; útil para simular um backend
    remoto indisponível no modo offline.
    """

    def __init__(
        self,
        groups: Iterable[ProductGroup] = (),
        products: Iterable[Product] = (),
        movements: Iterable[StockMovement] = (),
    ):
        self._groups: Dict[str, ProductGroup] = {g.id: g for g in groups}
        self._products: Dict[str, Product] = {p.id: p for p in products}
        self._movements: Dict[str, StockMovement] = {m.id: m for m in movements}
        self.fail_on: Set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RuntimeError(f"backend indisponível ({operation})")

    @staticmethod
    def _recent_first(items) -> list:
        # dict preserva a ordem de inserção; empate em created_at favorece o mais novo
        indexed = list(enumerate(items))
        indexed.sort(key=lambda t: (t[1].created_at, t[0]), reverse=True)
        return [item for _, item in indexed]

    def load_groups(self) -> List[ProductGroup]:
        return self._recent_first(self._groups.values())

    def load_products(self) -> List[Product]:
        return self._recent_first(self._products.values())

    def load_movements(self) -> List[StockMovement]:
        return self._recent_first(self._movements.values())

    def insert_group(self, group: ProductGroup) -> None:
        self._check("insert_group")
        self._groups[group.id] = group

    def update_group(self, group: ProductGroup) -> None:
        self._check("update_group")
        if group.id not in self._groups:
            raise MissingRowError(f"grupo {group.id} não existe mais")
        self._groups[group.id] = group

    def delete_group(self, group_id: str) -> None:
        self._check("delete_group")
        product_ids = {p.id for p in self._products.values() if p.group_id == group_id}
        self._movements = {
            k: m for k, m in self._movements.items() if m.product_id not in product_ids
        }
        self._products = {k: p for k, p in self._products.items() if k not in product_ids}
        self._groups.pop(group_id, None)

    def insert_product(self, product: Product) -> None:
        self._check("insert_product")
        self._products[product.id] = product

    def update_product(self, product: Product) -> None:
        self._check("update_product")
        if product.id not in self._products:
            raise MissingRowError(f"produto {product.id} não existe mais")
        self._products[product.id] = product

    def delete_product(self, product_id: str) -> None:
        self._check("delete_product")
        self._movements = {
            k: m for k, m in self._movements.items() if m.product_id != product_id
        }
        self._products.pop(product_id, None)

    def record_movement(self, movement: StockMovement) -> None:
        self._check("record_movement")
        product: Optional[Product] = self._products.get(movement.product_id)
        if product is None or product.current_stock != movement.previous_stock:
            raise StaleStockError(
                f"saldo do produto {movement.product_id} difere de {movement.previous_stock}"
            )
        self._products[product.id] = replace(product, current_stock=movement.new_stock)
        self._movements[movement.id] = movement
