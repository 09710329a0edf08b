import pytest

from controle_estoque.domain.policies import (
    alert_id_for,
    compute_new_stock,
    is_alert_candidate,
    is_below_minimum,
    stock_status,
)


@pytest.mark.parametrize(
    "prev,tipo,qtd,esperado",
    [
        (213, "entrada", 100, 313),
        (10, "saida", 10, 0),
        (0, "saida", 1, -1),
        (1.5, "entrada", 0.25, 1.75),
        (0.3, "saida", 0.1, 0.2),
        (0.1, "entrada", 0.2, 0.3),
    ],
)
def test_compute_new_stock(prev, tipo, qtd, esperado):
    assert compute_new_stock(prev, tipo, qtd) == esperado


def test_compute_new_stock_unknown_type():
    with pytest.raises(ValueError):
        compute_new_stock(10, "ajuste", 1)


@pytest.mark.parametrize(
    "cur,minimo,abaixo,alerta",
    [
        (4, 5, True, True),
        (5, 5, False, True),
        (6, 5, False, False),
        (0, None, False, False),
        (0, 0, False, True),
    ],
)
def test_low_stock_thresholds(cur, minimo, abaixo, alerta):
    assert is_below_minimum(cur, minimo) is abaixo
    assert is_alert_candidate(cur, minimo) is alerta


@pytest.mark.parametrize(
    "cur,minimo,status",
    [
        (0, 5, "zero"),
        (0, None, "zero"),
        (3, 5, "low"),
        (5, 5, "ok"),
        (100, None, "ok"),
    ],
)
def test_stock_status(cur, minimo, status):
    assert stock_status(cur, minimo) == status


def test_alert_id_for():
    assert alert_id_for("abc") == "alert-abc"
