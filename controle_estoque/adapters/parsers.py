"""
Utilidades de parsing para planilhas e entrada de usuário.

Este módulo interpreta os textos tipicamente encontrados nas planilhas de
movimentação: quantidades com unidade opcional (por exemplo, "1.250 bag"
ou "12,5 ton") e o tipo da movimentação escrito de formas variadas
("Entrada", "SAÍDA", "s", "+").
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Optional, Tuple

from controle_estoque.domain.models import ENTRADA, SAIDA

_NUM_RE = re.compile(r"[-+]?\d[\d.,]*")

_TIPOS = {
    "entrada": ENTRADA,
    "e": ENTRADA,
    "in": ENTRADA,
    "+": ENTRADA,
    "saida": SAIDA,
    "s": SAIDA,
    "out": SAIDA,
    "-": SAIDA,
}


def _sem_acento(s: str) -> str:
    return "".join(
        ch for ch in unicodedata.normalize("NFKD", s) if not unicodedata.combining(ch)
    )


def parse_numero(txt: str) -> Optional[float]:
    """Converte um número escrito em pt-BR ou en-US.

    Exemplos:
        "1.250"    → 1250.0   (ponto como milhar)
        "1.234,5"  → 1234.5
        "12,5"     → 12.5
        "12.5"     → 12.5
    """
    s = str(txt).strip()
    if "," in s and "." in s:
        # o último separador é o decimal
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")
    elif s.count(".") > 1 or re.fullmatch(r"[-+]?\d{1,3}\.\d{3}", s):
        s = s.replace(".", "")
    try:
        n = float(s)
    except ValueError:
        return None
    # "nan" e "inf" passam pelo float()
    return n if math.isfinite(n) else None


def parse_quantidade(txt: str) -> Tuple[Optional[float], Optional[str]]:
    """Interpreta uma quantidade com unidade opcional.

    A string segue o padrão "<valor> [<unidade>]". A unidade é a palavra
    seguinte ao número, em minúsculas.

    Exemplos:
        "100"        → (100.0, None)
        "1.250 bag"  → (1250.0, "bag")
        "12,5 TON"   → (12.5, "ton")

    Args:
        txt: Texto a ser interpretado.

    Returns:
        Uma tupla (numero, unidade). Valores não determinados voltam como None.
    """
    if txt is None:
        return None, None
    s = str(txt).strip()
    if not s:
        return None, None
    m = _NUM_RE.match(s)
    if not m:
        return None, None
    num = parse_numero(m.group(0).rstrip(".,"))
    rest = s[m.end():].strip().split()
    unidade = rest[0].lower() if rest else None
    return num, unidade


def parse_tipo(txt: str) -> Optional[str]:
    """Normaliza o tipo da movimentação para ``'entrada'`` / ``'saida'`` (ou None)."""
    if txt is None:
        return None
    s = _sem_acento(str(txt)).strip().lower()
    return _TIPOS.get(s)
