import pytest

from controle_estoque.domain.errors import InsufficientStockError
from controle_estoque.infra import logger as log_mod
from controle_estoque.infra.repositories import MemoryBackend
from controle_estoque.usecases.ledger import LedgerStore


@pytest.fixture
def logs_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", True)
    monkeypatch.setattr(log_mod, "LOGS_DIR", tmp_path / "logs")
    monkeypatch.setattr(log_mod, "_loggers", {})
    return tmp_path / "logs"


def test_logging_disabled_writes_nothing(tmp_path, monkeypatch):
    monkeypatch.setattr(log_mod, "ENABLE_LOGGING", False)
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", False)
    monkeypatch.setattr(log_mod, "LOGS_DIR", tmp_path / "logs")
    log_mod.log_system_event("nada")
    assert not (tmp_path / "logs").exists()


def test_ledger_operations_are_logged(logs_dir, clock):
    store = LedgerStore(MemoryBackend(), clock=clock)
    g = store.add_group("G", color="#111111")
    p = store.add_product(g.id, "A1", "Produto", "unidade", 1)
    store.record_movement(p.id, "saida", 1)
    with pytest.raises(InsufficientStockError):
        store.record_movement(p.id, "saida", 1)

    ledger = log_mod.get_log_summary("ledger")
    assert "TRANSACTION_SUCCESS: add_group" in ledger
    assert "TRANSACTION_FAILED: record_movement" in ledger
    assert "SAIDA_RECORD" in log_mod.get_log_summary("movimentacoes")
    assert (logs_dir / "ledger.log").exists()


def test_get_log_summary_limits_lines(logs_dir):
    for i in range(5):
        log_mod.log_system_event("evento", {"i": i})
    summary = log_mod.get_log_summary("system", lines=2)
    assert summary.count("SYSTEM_EVENT") == 2
    assert "'i': 4" in summary


def test_get_log_summary_unknown():
    assert log_mod.get_log_summary("inexistente") == "Log inexistente não encontrado."


def test_print_system_respects_flag(monkeypatch, capsys):
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", False)
    log_mod.print_system("silencioso")
    monkeypatch.setattr(log_mod, "ENABLE_OUTPUT", True)
    log_mod.print_system("visível")
    assert capsys.readouterr().out == "visível\n"
