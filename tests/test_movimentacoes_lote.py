import pandas as pd
import pytest

from controle_estoque.adapters.planilhas import load_movimentacoes_from_xlsx
from controle_estoque.usecases.movimentacoes_lote import run_movimentacoes_lote


def _write_xlsx(path, rows):
    df = pd.DataFrame(rows, columns=["Código", "Tipo de Movimentação", "Qtde", "Fornecedor", "Obs."])
    df.to_excel(path, index=False)
    return str(path)


@pytest.fixture
def planilha(tmp_path):
    return _write_xlsx(tmp_path / "movimentacoes.xlsx", [
        ["NF-F28", "Entrada", "1.250 un", "Fornecedor X", None],
        ["a1", "saída", "4", None, "balcão"],
        ["XYZ", "entrada", "1", None, None],
        ["GRT-1000", "S", "10", None, None],
        ["A1", "ajuste", "1", None, None],
        ["A1", "e", "abc", None, None],
    ])


def test_loader_normalizes_headers(planilha):
    rows = load_movimentacoes_from_xlsx(planilha)
    assert len(rows) == 6
    assert rows[0] == {
        "linha": 2,
        "codigo": "NF-F28",
        "tipo_raw": "Entrada",
        "quantidade_raw": "1.250 un",
        "empresa": "Fornecedor X",
        "observacao": None,
    }
    assert rows[1]["observacao"] == "balcão"


def test_run_movimentacoes_lote(populated, planilha):
    store = populated["store"]
    res = run_movimentacoes_lote(store, planilha)

    assert res["tipo"] == "Movimentações"
    assert res["total"] == 6
    assert res["sucessos"] == 2
    assert [e["linha"] for e in res["erros"]] == [4, 5, 6, 7]
    assert "XYZ" in res["erros"][0]["mensagem"]

    assert store.get_product(populated["nf"].id).current_stock == 1563
    assert store.get_product(populated["a1"].id).current_stock == 6
    # a saída maior que o saldo não mexe no produto
    assert store.get_product(populated["bg"].id).current_stock == 4
    assert store.movements[0].notes == "balcão"
    assert store.movements[1].company == "Fornecedor X"


def test_run_movimentacoes_lote_missing_file(memory_store, tmp_path):
    with pytest.raises(FileNotFoundError):
        run_movimentacoes_lote(memory_store, str(tmp_path / "nao_existe.xlsx"))
