# controle_estoque/usecases/ledger.py
"""
UC: Ledger de estoque (grupos, produtos e movimentações).

`LedgerStore` guarda as três coleções em memória e é a única porta de
escrita. Toda operação segue o mesmo roteiro:

1) valida contra o estado atual (sob a trava do ledger);
2) grava no backend;
3) só então aplica a mudança em memória.

Se o backend falhar, a exceção vira `BackendError` e o estado em memória não
é tocado. Leitores recebem `Snapshot`s imutáveis e nunca veem uma
movimentação sem o saldo correspondente (nem o contrário).
"""

from __future__ import annotations

import math
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from controle_estoque.config import DEFAULTS
from controle_estoque.domain.errors import (
    BackendError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from controle_estoque.domain.models import (
    MOVEMENT_TYPES,
    SAIDA,
    Product,
    ProductGroup,
    Snapshot,
    StockMovement,
)
from controle_estoque.domain.policies import compute_new_stock
from controle_estoque.infra.logger import (
    log_movimentacao,
    log_system_event,
    log_transaction,
)


PRODUCT_FIELDS = ("group_id", "code", "name", "unit", "current_stock", "min_stock")
GROUP_FIELDS = ("name", "description", "color")


def _new_id() -> str:
    return uuid.uuid4().hex


def _clean(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def _require(val: Optional[str], label: str) -> str:
    s = _clean(val)
    if s is None:
        raise ValidationError(f"{label} é obrigatório")
    return s


def _number(val: Any, label: str) -> float:
    if isinstance(val, bool):
        raise ValidationError(f"{label} deve ser numérico")
    if isinstance(val, (int, float)):
        n = val
    else:
        try:
            n = float(str(val).replace(",", "."))
        except (TypeError, ValueError):
            raise ValidationError(f"{label} deve ser numérico") from None
    if not math.isfinite(n):
        raise ValidationError(f"{label} deve ser um número finito")
    return n


def _non_negative(val: Any, label: str) -> float:
    n = _number(val, label)
    if n < 0:
        raise ValidationError(f"{label} não pode ser negativo")
    return n


class LedgerStore:
    """Ledger de estoque com backend injetado.

    Args:
        backend: objeto com o contrato de `controle_estoque.infra.repositories`.
        clock: fonte de `created_at` (padrão: ``datetime.now``).
        load: se True, carrega as coleções do backend na construção.
    """

    def __init__(self, backend, clock: Callable[[], datetime] = datetime.now, load: bool = True):
        self.backend = backend
        self._clock = clock
        self._lock = threading.RLock()
        self._listeners: List[Callable[[], None]] = []
        self._groups: List[ProductGroup] = []
        self._products: List[Product] = []
        self._movements: List[StockMovement] = []
        if load:
            self.reload()

    # -----------------------
    # composição
    # -----------------------

    @classmethod
    def open(cls, db_path: str, **kwargs) -> "LedgerStore":
        """Ledger sobre SQLite (aplica as migrações antes de carregar)."""
        from controle_estoque.infra.migrations import apply_migrations
        from controle_estoque.infra.repositories import SqliteBackend

        apply_migrations(db_path)
        return cls(SqliteBackend(db_path), **kwargs)

    @classmethod
    def demo(cls, **kwargs) -> "LedgerStore":
        """Ledger offline em memória, já com os dados de demonstração."""
        from controle_estoque.infra.repositories import MemoryBackend
        from controle_estoque.infra.seed import demo_snapshot

        seed = demo_snapshot()
        return cls(MemoryBackend(seed.groups, seed.products, seed.movements), **kwargs)

    def reload(self) -> None:
        """Relê as três coleções do backend."""
        with self._lock:
            try:
                groups = list(self.backend.load_groups())
                products = list(self.backend.load_products())
                movements = list(self.backend.load_movements())
            except Exception as e:
                log_system_event("ledger_reload_error", {"error": str(e)}, level="error")
                raise BackendError("reload", e) from e
            self._groups, self._products, self._movements = groups, products, movements
        log_system_event("ledger_reload", {
            "groups": len(groups), "products": len(products), "movements": len(movements),
        })

    # -----------------------
    # leitura
    # -----------------------

    @property
    def groups(self):
        return tuple(self._groups)

    @property
    def products(self):
        return tuple(self._products)

    @property
    def movements(self):
        return tuple(self._movements)

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(tuple(self._groups), tuple(self._products), tuple(self._movements))

    def get_group(self, group_id: str) -> ProductGroup:
        for g in self._groups:
            if g.id == group_id:
                return g
        raise NotFoundError("Grupo", group_id)

    def get_product(self, product_id: str) -> Product:
        for p in self._products:
            if p.id == product_id:
                return p
        raise NotFoundError("Produto", product_id)

    def find_product_by_code(self, code: str) -> Optional[Product]:
        key = (code or "").strip().lower()
        for p in self._products:
            if p.code.lower() == key:
                return p
        return None

    # -----------------------
    # sinal de mudança
    # -----------------------

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Registra um ouvinte de "produtos mudaram". Retorna a função de cancelamento."""
        with self._lock:
            self._listeners.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return _unsubscribe

    def _notify_products_changed(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for cb in listeners:
            try:
                cb()
            except Exception as e:
                # ouvintes nunca desfazem uma operação já gravada
                log_system_event("listener_error", {"error": str(e)}, level="error")

    def _write(self, operation: str, fn: Callable[..., None], *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            raise BackendError(operation, e) from e

    # -----------------------
    # grupos
    # -----------------------

    def add_group(self, name: str, description: Optional[str] = None,
                  color: Optional[str] = None) -> ProductGroup:
        data = {"name": name, "description": description, "color": color}
        try:
            with self._lock:
                group = ProductGroup(
                    id=_new_id(),
                    name=_require(name, "Nome do grupo"),
                    description=_clean(description),
                    color=_clean(color) or DEFAULTS.default_group_color,
                    created_at=self._clock(),
                )
                self._write("add_group", self.backend.insert_group, group)
                self._groups.insert(0, group)
        except Exception as e:
            log_transaction("add_group", data, error=str(e))
            raise
        log_transaction("add_group", data, result=group.id)
        return group

    def update_group(self, group_id: str, **fields: Any) -> ProductGroup:
        unknown = set(fields) - set(GROUP_FIELDS)
        try:
            if unknown:
                raise ValidationError(f"Campos não editáveis: {', '.join(sorted(unknown))}")
            with self._lock:
                current = self.get_group(group_id)
                changes: Dict[str, Any] = {}
                if "name" in fields:
                    changes["name"] = _require(fields["name"], "Nome do grupo")
                if "description" in fields:
                    changes["description"] = _clean(fields["description"])
                if "color" in fields:
                    changes["color"] = _require(fields["color"], "Cor do grupo")
                group = replace(current, **changes)
                self._write("update_group", self.backend.update_group, group)
                self._groups = [group if g.id == group_id else g for g in self._groups]
        except Exception as e:
            log_transaction("update_group", {"id": group_id, **fields}, error=str(e))
            raise
        log_transaction("update_group", {"id": group_id, **fields}, result=group.id)
        return group

    def delete_group(self, group_id: str) -> None:
        """Exclui o grupo, seus produtos e as movimentações desses produtos."""
        try:
            with self._lock:
                self.get_group(group_id)
                self._write("delete_group", self.backend.delete_group, group_id)
                self._cascade_delete_group(group_id)
        except Exception as e:
            log_transaction("delete_group", {"id": group_id}, error=str(e))
            raise
        log_transaction("delete_group", {"id": group_id}, result="deleted")
        self._notify_products_changed()

    def _cascade_delete_group(self, group_id: str) -> None:
        product_ids = {p.id for p in self._products if p.group_id == group_id}
        movements = [m for m in self._movements if m.product_id not in product_ids]
        products = [p for p in self._products if p.id not in product_ids]
        groups = [g for g in self._groups if g.id != group_id]
        # troca das três listas só depois de todas calculadas
        self._groups, self._products, self._movements = groups, products, movements

    # -----------------------
    # produtos
    # -----------------------

    def _check_code_free(self, code: str, exclude_id: Optional[str] = None) -> None:
        key = code.lower()
        for p in self._products:
            if p.id != exclude_id and p.code.lower() == key:
                raise ValidationError(f"Já existe um produto com o código '{p.code}'")

    def _check_group_exists(self, group_id: Optional[str]) -> None:
        if not group_id or not any(g.id == group_id for g in self._groups):
            raise ValidationError(f"Grupo inexistente: {group_id}")

    def add_product(self, group_id: str, code: str, name: str, unit: str = "unidade",
                    current_stock: float = 0, min_stock: Optional[float] = None) -> Product:
        data = {
            "group_id": group_id, "code": code, "name": name, "unit": unit,
            "current_stock": current_stock, "min_stock": min_stock,
        }
        try:
            with self._lock:
                code_ = _require(code, "Código")
                name_ = _require(name, "Nome do produto")
                unit_ = _require(unit, "Unidade")
                self._check_group_exists(group_id)
                self._check_code_free(code_)
                product = Product(
                    id=_new_id(),
                    group_id=group_id,
                    code=code_,
                    name=name_,
                    unit=unit_,
                    current_stock=_non_negative(current_stock, "Estoque atual"),
                    min_stock=None if min_stock is None else _non_negative(min_stock, "Estoque mínimo"),
                    created_at=self._clock(),
                )
                self._write("add_product", self.backend.insert_product, product)
                self._products.insert(0, product)
        except Exception as e:
            log_transaction("add_product", data, error=str(e))
            raise
        log_transaction("add_product", data, result=product.id)
        self._notify_products_changed()
        return product

    def update_product(self, product_id: str, **fields: Any) -> Product:
        """Atualiza campos do produto.

        Pode sobrescrever ``current_stock`` diretamente, sem passar pelo ledger:
        serve para corrigir erros de cadastro. Ajustes de estoque auditáveis
        devem usar `record_movement`.
        """
        unknown = set(fields) - set(PRODUCT_FIELDS)
        try:
            if unknown:
                raise ValidationError(f"Campos não editáveis: {', '.join(sorted(unknown))}")
            with self._lock:
                current = self.get_product(product_id)
                changes: Dict[str, Any] = {}
                if "code" in fields:
                    changes["code"] = _require(fields["code"], "Código")
                    self._check_code_free(changes["code"], exclude_id=product_id)
                if "name" in fields:
                    changes["name"] = _require(fields["name"], "Nome do produto")
                if "unit" in fields:
                    changes["unit"] = _require(fields["unit"], "Unidade")
                if "group_id" in fields:
                    self._check_group_exists(fields["group_id"])
                    changes["group_id"] = fields["group_id"]
                if "current_stock" in fields:
                    changes["current_stock"] = _non_negative(fields["current_stock"], "Estoque atual")
                if "min_stock" in fields:
                    ms = fields["min_stock"]
                    changes["min_stock"] = None if ms is None else _non_negative(ms, "Estoque mínimo")
                product = replace(current, **changes)
                self._write("update_product", self.backend.update_product, product)
                self._products = [product if p.id == product_id else p for p in self._products]
        except Exception as e:
            log_transaction("update_product", {"id": product_id, **fields}, error=str(e))
            raise
        log_transaction("update_product", {"id": product_id, **fields}, result=product.id)
        self._notify_products_changed()
        return product

    def delete_product(self, product_id: str) -> None:
        """Exclui o produto e todas as suas movimentações."""
        try:
            with self._lock:
                self.get_product(product_id)
                self._write("delete_product", self.backend.delete_product, product_id)
                movements = [m for m in self._movements if m.product_id != product_id]
                products = [p for p in self._products if p.id != product_id]
                self._products, self._movements = products, movements
        except Exception as e:
            log_transaction("delete_product", {"id": product_id}, error=str(e))
            raise
        log_transaction("delete_product", {"id": product_id}, result="deleted")
        self._notify_products_changed()

    # -----------------------
    # movimentações
    # -----------------------

    def record_movement(self, product_id: str, type: str, quantity: float,
                        company: Optional[str] = None, notes: Optional[str] = None) -> StockMovement:
        """Registra uma entrada/saída e atualiza o saldo do produto.

        Saída que deixaria o saldo negativo falha com `InsufficientStockError`
        e nada é gravado.
        """
        data = {
            "product_id": product_id, "type": type, "quantity": quantity,
            "company": company, "notes": notes,
        }
        try:
            if type not in MOVEMENT_TYPES:
                raise ValidationError(f"Tipo de movimentação inválido: {type!r}")
            qty = _number(quantity, "Quantidade")
            if qty <= 0:
                raise ValidationError("Quantidade deve ser maior que zero")
            with self._lock:
                product = self.get_product(product_id)
                previous_stock = product.current_stock
                new_stock = compute_new_stock(previous_stock, type, qty)
                if type == SAIDA and new_stock < 0:
                    log_movimentacao("reject", product_id, type, qty, current_stock=previous_stock)
                    raise InsufficientStockError(product_id, previous_stock, qty)
                movement = StockMovement(
                    id=_new_id(),
                    product_id=product_id,
                    type=type,
                    quantity=qty,
                    previous_stock=previous_stock,
                    new_stock=new_stock,
                    company=_clean(company),
                    notes=_clean(notes),
                    created_at=self._clock(),
                )
                self._write("record_movement", self.backend.record_movement, movement)
                updated = replace(product, current_stock=new_stock)
                products = [updated if p.id == product_id else p for p in self._products]
                movements = [movement] + self._movements
                self._products, self._movements = products, movements
        except Exception as e:
            log_transaction("record_movement", data, error=str(e))
            raise
        log_movimentacao(
            "record", product_id, type, qty,
            previous_stock=previous_stock, new_stock=new_stock, company=movement.company,
        )
        log_transaction("record_movement", data, result=movement.id)
        self._notify_products_changed()
        return movement
