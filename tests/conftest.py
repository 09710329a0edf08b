from datetime import datetime, timedelta

import pytest

from controle_estoque.infra.repositories import MemoryBackend
from controle_estoque.usecases.ledger import LedgerStore


class FakeClock:
    """Relógio que avança um minuto a cada leitura."""

    def __init__(self, start=datetime(2025, 1, 10, 8, 0)):
        self.now = start

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "estoque_test.sqlite")


@pytest.fixture(params=["memory", "sqlite"])
def store(request, clock, tmp_path):
    if request.param == "memory":
        return LedgerStore(MemoryBackend(), clock=clock)
    return LedgerStore.open(str(tmp_path / "ledger.sqlite"), clock=clock)


@pytest.fixture
def memory_store(clock):
    return LedgerStore(MemoryBackend(), clock=clock)


@pytest.fixture
def populated(store):
    """Dois grupos, três produtos e algumas movimentações."""
    ensacados = store.add_group("Produtos Ensacados", "Produtos em sacos", "#22c55e")
    bags = store.add_group("Produtos em Bags", None, "#eab308")
    a1 = store.add_product(ensacados.id, "A1", "Produto A1", "unidade", 10, 5)
    nf = store.add_product(ensacados.id, "NF-F28", "N-Form F28", "unidade", 213, 50)
    bg = store.add_product(bags.id, "GRT-1000", "Grits Nutriflot", "bag", 6, 5)
    store.record_movement(nf.id, "entrada", 100, company="ABC")
    store.record_movement(bg.id, "saida", 2)
    return {"store": store, "ensacados": ensacados, "bags": bags, "a1": a1, "nf": nf, "bg": bg}
