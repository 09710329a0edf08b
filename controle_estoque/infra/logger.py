# controle_estoque/infra/logger.py
"""
Sistema de logging das operações do controle de estoque.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: alterações no ledger, movimentações, alertas de
estoque baixo e operações no banco de dados.

Os loggers gravam em arquivos sob ``LOGS_DIR`` e só são criados no primeiro
uso, de modo que importar o pacote nunca toca o sistema de arquivos.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "sim", "yes"}


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = _env_flag("CONTROLE_ESTOQUE_LOG")
# Flag global para habilitar/desabilitar prints/output
ENABLE_OUTPUT = _env_flag("CONTROLE_ESTOQUE_OUTPUT")

def print_system(*args, **kwargs):
    """Print controlado pelo ENABLE_OUTPUT."""
    if ENABLE_OUTPUT:
        print(*args, **kwargs)

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Diretório base para logs
LOGS_DIR = Path(os.environ.get("CONTROLE_ESTOQUE_LOGS_DIR") or Path.cwd() / "logs")

# nome curto -> (nome do logger, arquivo)
LOG_FILES = {
    "ledger": ("controle_estoque.ledger", "ledger.log"),
    "movimentacoes": ("controle_estoque.movimentacoes", "movimentacoes.log"),
    "alertas": ("controle_estoque.alertas", "alertas.log"),
    "database": ("controle_estoque.database", "database.log"),
    "system": ("controle_estoque.system", "system.log"),
}

_loggers: Dict[str, logging.Logger] = {}


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


def get_logger(kind: str) -> logging.Logger:
    """Retorna (criando no primeiro uso) o logger de um dos tipos de LOG_FILES."""
    if kind not in _loggers:
        name, filename = LOG_FILES[kind]
        _loggers[kind] = setup_logger(name, str(LOGS_DIR / filename))
    return _loggers[kind]


def _enabled() -> bool:
    return ENABLE_LOGGING or ENABLE_OUTPUT


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma operação do ledger no log.

    Args:
        operation: Nome da operação (add_group, record_movement, ...)
        data: Dados de entrada da operação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    logger = get_logger("ledger")
    if error:
        logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_movimentacao(action: str, product_id: str, tipo: str, quantidade: Any, **kwargs) -> None:
    """
    Log específico para movimentações de estoque.

    Args:
        action: Ação realizada (record, reject, batch_row)
        product_id: Id do produto
        tipo: 'entrada' ou 'saida'
        quantidade: Quantidade movimentada
        **kwargs: Dados adicionais (saldo anterior/novo, empresa...)
    """
    if not _enabled():
        return
    log_data = {
        "action": action,
        "product_id": product_id,
        "tipo": tipo,
        "quantidade": quantidade,
        **kwargs
    }
    get_logger("movimentacoes").info(f"{tipo.upper()}_{action.upper()}: {log_data}")


def log_alert(event: str, alert_id: str, **kwargs) -> None:
    """Log de eventos do avaliador de alertas (novo alerta, lido, notificação)."""
    if not _enabled():
        return
    log_data = {"alert_id": alert_id, **kwargs}
    get_logger("alertas").info(f"ALERT_{event.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    get_logger("database").info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    system_logger = get_logger("system")
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação de planilhas).

    Args:
        operation: Tipo de operação (import)
        file_path: Caminho do arquivo
        rows_processed: Número de linhas processadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        **kwargs
    }
    get_logger("system").info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "ledger", lines: int = 100) -> str:
    """
    Obtém as linhas mais recentes de um dos arquivos de log.

    Args:
        log_type: Tipo de log (chave de LOG_FILES)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string
    """
    entry = LOG_FILES.get(log_type)
    if entry is None:
        return f"Log {log_type} não encontrado."
    log_file = LOGS_DIR / entry[1]
    if not log_file.exists():
        return f"Log {log_type} não encontrado."

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
