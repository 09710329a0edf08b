# controle_estoque/adapters/notificacoes.py
"""
Notificadores de estoque baixo.

Qualquer objeto com ``notify(product_name, current_stock, min_stock)`` serve
ao `AlertEvaluator`. Aqui ficam:
- ConsoleNotifier: painel Rich no terminal
- LogNotifier: grava no log de alertas
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel

from controle_estoque.infra.logger import log_alert


TITULO = "⚠️ Estoque Baixo"


def mensagem_estoque_baixo(product_name: str, current_stock: float, min_stock: float) -> str:
    return f"{product_name} está com {current_stock:g} unidades (mínimo: {min_stock:g})"


class ConsoleNotifier:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def notify(self, product_name: str, current_stock: float, min_stock: float) -> None:
        self.console.print(
            Panel(
                mensagem_estoque_baixo(product_name, current_stock, min_stock),
                title=TITULO,
                border_style="red",
            )
        )


class LogNotifier:
    def notify(self, product_name: str, current_stock: float, min_stock: float) -> None:
        log_alert(
            "notify", product_name,
            message=mensagem_estoque_baixo(product_name, current_stock, min_stock),
        )
