# controle_estoque/domain/errors.py
"""
Tipos de erro do domínio.

Toda operação do ledger produz o resultado descrito ou falha com exatamente
um destes tipos, sem mutação parcial.
"""

from __future__ import annotations

from typing import Optional


class EstoqueError(Exception):
    """Base de todos os erros do controle de estoque."""


class ValidationError(EstoqueError):
    """Campo obrigatório vazio, código duplicado, quantidade inválida etc."""


class NotFoundError(EstoqueError):
    """Id referenciado não existe."""

    def __init__(self, entity: str, id: str):
        super().__init__(f"{entity} não encontrado: {id}")
        self.entity = entity
        self.id = id


class InsufficientStockError(EstoqueError):
    """Uma saída deixaria o estoque negativo."""

    def __init__(self, product_id: str, current_stock: float, quantity: float):
        super().__init__(
            f"Estoque insuficiente para esta saída "
            f"(atual: {current_stock}, solicitado: {quantity})"
        )
        self.product_id = product_id
        self.current_stock = current_stock
        self.quantity = quantity


class BackendError(EstoqueError):
    """Falha na chamada ao backend de persistência."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        msg = f"Falha no backend durante '{operation}'"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)
        self.operation = operation
        self.cause = cause
