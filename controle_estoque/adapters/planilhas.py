# controle_estoque/adapters/planilhas.py
"""
Loader de planilhas (XLSX) de MOVIMENTAÇÕES.

A função pública:
- lê a planilha usando pandas;
- normaliza cabeçalhos (acentos, variações, sinônimos);
- devolve uma lista de dicionários com as chaves esperadas por
  `run_movimentacoes_lote`.

Observações:
- Não faz parsing de quantidade nem de tipo; os campos são preservados
  como texto (`quantidade_raw`, `tipo_raw`).
- Linhas totalmente vazias são descartadas.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

import pandas as pd


# ---------------------------
# utilitários de normalização
# ---------------------------

def _slug(s: str) -> str:
    """Normaliza cabeçalhos: minúsculas, sem acentos, sem não-alfanumérico."""
    if s is None:
        return ""
    s = str(s).strip().lower()
    acentos = dict(zip("áàâãäéèêëíìîïóòôõöúùûüç", "aaaaaeeeeiiiiooooouuuuc"))
    s = "".join(acentos.get(ch, ch) for ch in s)
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s


def _safe_get(row, key):
    """Lê um valor da linha do pandas tratando NA como None."""
    val = row.get(key)
    if val is None or pd.isna(val):
        return None
    s = str(val).strip()
    return s or None


ALIASES = {
    "codigo": "codigo",
    "cod": "codigo",
    "codigo do produto": "codigo",
    "sku": "codigo",

    "tipo": "tipo_raw",
    "movimentacao": "tipo_raw",
    "tipo de movimentacao": "tipo_raw",
    "operacao": "tipo_raw",

    "quantidade": "quantidade_raw",
    "qtde": "quantidade_raw",
    "qtd": "quantidade_raw",

    "empresa": "empresa",
    "fornecedor": "empresa",
    "cliente": "empresa",

    "observacao": "observacao",
    "observacoes": "observacao",
    "obs": "observacao",
    "notas": "observacao",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Renomeia colunas com base em sinônimos/variações."""
    new_cols = {}
    for col in df.columns:
        key = _slug(col)
        new_cols[col] = ALIASES.get(key, key)  # se não houver alias, mantém slug
    return df.rename(columns=new_cols)


# ---------------------------
# loader público (XLSX)
# ---------------------------

def load_movimentacoes_from_xlsx(path: str) -> List[Dict[str, Any]]:
    """Lê XLSX de movimentações.

    Campos de saída (chaves do dict por linha):
      - linha: número da linha na planilha (cabeçalho = 1)
      - codigo: str | None
      - tipo_raw: str | None
      - quantidade_raw: str | None
      - empresa: str | None
      - observacao: str | None
    """
    df = pd.read_excel(path, dtype="string")
    df = _normalize_columns(df)
    out: List[Dict[str, Any]] = []
    for idx, row in df.iterrows():
        rec = {
            "linha": int(idx) + 2,
            "codigo": _safe_get(row, "codigo"),
            "tipo_raw": _safe_get(row, "tipo_raw"),
            "quantidade_raw": _safe_get(row, "quantidade_raw"),
            "empresa": _safe_get(row, "empresa"),
            "observacao": _safe_get(row, "observacao"),
        }
        if all(v is None for k, v in rec.items() if k != "linha"):
            continue
        out.append(rec)
    return out
