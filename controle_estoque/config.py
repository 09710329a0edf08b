# controle_estoque/config.py
"""
Configurações globais e valores padrão do controle de estoque.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite
DB_PATH = os.environ.get("CONTROLE_ESTOQUE_DB") or os.path.join(os.getcwd(), "estoque.db")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    alert_refresh_seconds: float = 300.0  # 5 minutos entre verificações de alerta
    recent_movements: int = 5             # movimentações recentes no dashboard
    group_chart_top: int = 6              # produtos no gráfico do painel de grupo
    report_top: int = 8                   # produtos no gráfico do relatório de estoque
    default_group_color: str = "#888888"
    default_group_name: str = "Sem grupo"


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
