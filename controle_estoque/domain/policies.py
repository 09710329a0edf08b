"""
Políticas de estoque.

Este módulo contém as regras de negócio puras usadas pelo ledger, pelo
dashboard e pelo avaliador de alertas: a regra de sinal das movimentações,
a classificação de status do produto e os dois critérios de estoque baixo.

Os dois critérios são propositalmente distintos:

- o dashboard e os relatórios contam como "baixo" o produto com
  ``current_stock < min_stock`` (estrito);
- o avaliador de alertas dispara com ``current_stock <= min_stock``.
"""

from __future__ import annotations

from typing import Optional

from controle_estoque.domain.models import ENTRADA, SAIDA


STATUS_ZERO = "zero"
STATUS_LOW = "low"
STATUS_OK = "ok"

# Ordem usada ao ordenar por status
STATUS_ORDER = {STATUS_ZERO: 0, STATUS_LOW: 1, STATUS_OK: 2}

# Casas decimais mantidas no saldo (quantidades fracionárias: ton, kg)
STOCK_DECIMALS = 6


def compute_new_stock(previous_stock: float, movement_type: str, quantity: float) -> float:
    """Aplica a regra de sinal de uma movimentação.

    Args:
        previous_stock: Saldo antes da movimentação.
        movement_type: ``'entrada'`` ou ``'saida'``.
        quantity: Quantidade movimentada (positiva).

    Returns:
        ``previous_stock + quantity`` para entrada,
        ``previous_stock - quantity`` para saída, arredondado a
        ``STOCK_DECIMALS`` casas para que resíduos de ponto flutuante não
        impeçam zerar o saldo. O resultado pode ser negativo; cabe ao
        chamador rejeitá-lo.

    Raises:
        ValueError: se ``movement_type`` não for reconhecido.
    """
    if movement_type == ENTRADA:
        return round(previous_stock + quantity, STOCK_DECIMALS)
    if movement_type == SAIDA:
        return round(previous_stock - quantity, STOCK_DECIMALS)
    raise ValueError(f"tipo de movimentação desconhecido: {movement_type!r}")


def is_below_minimum(current_stock: float, min_stock: Optional[float]) -> bool:
    """Critério do dashboard: ``min_stock`` definido e ``current_stock < min_stock``."""
    if min_stock is None:
        return False
    return current_stock < min_stock


def is_alert_candidate(current_stock: float, min_stock: Optional[float]) -> bool:
    """Critério do alerta: ``min_stock`` definido e ``current_stock <= min_stock``."""
    if min_stock is None:
        return False
    return current_stock <= min_stock


def stock_status(current_stock: float, min_stock: Optional[float]) -> str:
    """Classifica o saldo de um produto.

    Regras:
        - ``current_stock == 0`` → ``'zero'``
        - abaixo do mínimo (estrito) → ``'low'``
        - caso contrário → ``'ok'``
    """
    if current_stock == 0:
        return STATUS_ZERO
    if is_below_minimum(current_stock, min_stock):
        return STATUS_LOW
    return STATUS_OK


def alert_id_for(product_id: str) -> str:
    """Id determinístico do alerta de um produto."""
    return f"alert-{product_id}"
