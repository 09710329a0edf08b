from datetime import date

from controle_estoque.usecases.relatorios import (
    current_month,
    relatorio_estoque,
    relatorio_estoque_baixo,
    relatorio_movimentacoes,
)

DIA = date(2025, 1, 10)


def test_current_month():
    assert current_month(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert current_month(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_relatorio_estoque(populated):
    rel = relatorio_estoque(populated["store"].snapshot())
    assert rel["colunas"][0] == "codigo"
    assert [r["codigo"] for r in rel["linhas"]] == ["GRT-1000", "NF-F28", "A1"]
    status = {r["codigo"]: r["status"] for r in rel["linhas"]}
    assert status == {"GRT-1000": "BAIXO", "NF-F28": "OK", "A1": "OK"}
    assert rel["resumo"] == {"total_produtos": 3, "estoque_baixo": 1}
    assert [(g["name"], g["value"]) for g in rel["por_grupo"]] == [
        ("Produtos em Bags", 4), ("Produtos Ensacados", 323),
    ]
    assert [p.code for p in rel["top_produtos"]] == ["NF-F28", "A1", "GRT-1000"]


def test_relatorio_estoque_por_grupo(populated):
    store = populated["store"]
    rel = relatorio_estoque(store.snapshot(), populated["ensacados"].id)
    assert {r["grupo"] for r in rel["linhas"]} == {"Produtos Ensacados"}
    assert rel["resumo"]["total_produtos"] == 2
    assert [g["name"] for g in rel["por_grupo"]] == ["Produtos Ensacados"]


def test_relatorio_movimentacoes(populated):
    rel = relatorio_movimentacoes(populated["store"].snapshot(), DIA, DIA)
    assert rel["periodo"] == (DIA, DIA)
    saida, entrada = rel["linhas"]
    assert (saida["tipo"], saida["produto"], saida["empresa"]) == ("Saída", "Grits Nutriflot", "-")
    assert (entrada["tipo"], entrada["anterior"], entrada["novo"]) == ("Entrada", 213, 313)
    assert entrada["empresa"] == "ABC"
    assert rel["resumo"] == {"total_movimentacoes": 2, "total_entradas": 100, "total_saidas": 2}
    assert rel["diario"] == [{"data": DIA, "entradas": 100, "saidas": 2}]
    assert rel["por_produto"][0]["name"] == "N-Form F28"


def test_relatorio_movimentacoes_filters(populated):
    store = populated["store"]
    fora = relatorio_movimentacoes(store.snapshot(), date(2025, 2, 1), date(2025, 2, 28))
    assert fora["linhas"] == []
    assert fora["resumo"]["total_movimentacoes"] == 0

    bags = relatorio_movimentacoes(store.snapshot(), DIA, DIA, populated["bags"].id)
    assert [r["produto"] for r in bags["linhas"]] == ["Grits Nutriflot"]
    assert bags["resumo"]["total_entradas"] == 0


def test_relatorio_movimentacoes_default_period(populated):
    rel = relatorio_movimentacoes(populated["store"].snapshot())
    assert rel["periodo"] == current_month()


def test_relatorio_estoque_baixo(populated):
    rel = relatorio_estoque_baixo(populated["store"].snapshot())
    assert rel["linhas"] == [{
        "codigo": "GRT-1000",
        "produto": "Grits Nutriflot",
        "grupo": "Produtos em Bags",
        "estoque": 4,
        "minimo": 5,
        "deficit": 1,
    }]
    assert rel["resumo"] == {"total_produtos": 1}
