# controle_estoque/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- Grupos, produtos e movimentações são imutáveis (frozen). O ledger troca a
  instância inteira a cada alteração, de modo que um `Snapshot` já entregue
  nunca muda por baixo de quem o está lendo.
- `LowStockAlert` é derivado e não persistido; apenas `is_read` sobrevive
  entre recálculos.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


ENTRADA = "entrada"
SAIDA = "saida"
MOVEMENT_TYPES = (ENTRADA, SAIDA)


@dataclass(frozen=True)
class ProductGroup:
    """Grupo (categoria) de produtos."""
    id: str
    name: str
    color: str
    created_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class Product:
    """Cadastro de produto com o saldo atual."""
    id: str
    group_id: str
    code: str
    name: str
    unit: str
    current_stock: float
    created_at: datetime
    min_stock: Optional[float] = None   # limiar de alerta, não é teto


@dataclass(frozen=True)
class StockMovement:
    """Lançamento do ledger: entrada ou saída com o saldo antes/depois."""
    id: str
    product_id: str
    type: str                           # 'entrada' | 'saida'
    quantity: float
    previous_stock: float
    new_stock: float
    created_at: datetime
    company: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class LowStockAlert:
    """Alerta de estoque baixo (derivado do snapshot de produtos)."""
    id: str
    product_id: str
    product_name: str
    product_code: str
    current_stock: float
    min_stock: float
    group_name: str
    group_color: str
    created_at: datetime
    is_read: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Estado completo do ledger em um instante (mais recentes primeiro)."""
    groups: Tuple[ProductGroup, ...] = field(default_factory=tuple)
    products: Tuple[Product, ...] = field(default_factory=tuple)
    movements: Tuple[StockMovement, ...] = field(default_factory=tuple)
