# controle_estoque/usecases/movimentacoes_lote.py
"""
UC: Registrar movimentações em lote a partir de um XLSX.

- Lê a planilha com o adapter (`load_movimentacoes_from_xlsx`).
- Cada linha vira um `record_movement` no ledger, localizando o produto pelo
  código (sem diferenciar maiúsculas).
- Uma linha com erro não desfaz as demais; o erro é devolvido no resultado.
"""

from __future__ import annotations

from typing import Any, Dict, List

from controle_estoque.adapters.parsers import parse_quantidade, parse_tipo
from controle_estoque.adapters.planilhas import load_movimentacoes_from_xlsx
from controle_estoque.domain.errors import EstoqueError, ValidationError
from controle_estoque.infra.logger import (
    log_file_operation,
    log_movimentacao,
    log_system_event,
    log_transaction,
    print_system,
)


def _registrar_linha(store, row: Dict[str, Any]):
    codigo = row.get("codigo")
    if not codigo:
        raise ValidationError("Código é obrigatório")
    product = store.find_product_by_code(codigo)
    if product is None:
        raise ValidationError(f"Produto não encontrado para o código '{codigo}'")
    tipo = parse_tipo(row.get("tipo_raw"))
    if tipo is None:
        raise ValidationError(f"Tipo de movimentação inválido: {row.get('tipo_raw')!r}")
    quantidade, _unidade = parse_quantidade(row.get("quantidade_raw"))
    if quantidade is None:
        raise ValidationError(f"Quantidade inválida: {row.get('quantidade_raw')!r}")
    return store.record_movement(
        product.id, tipo, quantidade,
        company=row.get("empresa"), notes=row.get("observacao"),
    )


def run_movimentacoes_lote(store, path: str) -> Dict[str, Any]:
    """Registra todas as linhas de um XLSX de movimentações no ledger."""
    log_system_event("movimentacoes_lote_start", {"file_path": path})
    print_system(f"=== Movimentações em lote: {path} ===")
    log_file_operation("import", path)

    try:
        rows: List[Dict[str, Any]] = load_movimentacoes_from_xlsx(path)
    except Exception as e:
        log_transaction("movimentacoes_lote", {"file": path}, error=str(e))
        raise
    log_file_operation("import", path, rows_processed=len(rows))

    sucessos = 0
    erros: List[Dict[str, Any]] = []
    for row in rows:
        try:
            mov = _registrar_linha(store, row)
        except EstoqueError as e:
            erros.append({"linha": row["linha"], "mensagem": str(e)})
            print_system(f"Linha {row['linha']}: {e}")
            log_movimentacao("batch_row_error", row.get("codigo") or "?", row.get("tipo_raw") or "?",
                             row.get("quantidade_raw"), linha=row["linha"], error=str(e))
            continue
        sucessos += 1
        log_movimentacao("batch_row", mov.product_id, mov.type, mov.quantity, linha=row["linha"])

    result = {
        "tipo": "Movimentações",
        "arquivo": path,
        "total": len(rows),
        "sucessos": sucessos,
        "erros": erros,
    }
    log_transaction("movimentacoes_lote", {"file": path, "rows_count": len(rows)},
                    result={"sucessos": sucessos, "erros": len(erros)})
    log_system_event("movimentacoes_lote_success", {"file_path": path, "sucessos": sucessos})
    return result
