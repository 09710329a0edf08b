# controle_estoque/infra/db.py
"""
Utilidades de conexão SQLite.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Context manager que abre uma conexão SQLite e a usa como uma transação:
    - foreign_keys ON (cascatas do schema ficam ativas)
    - row_factory = sqlite3.Row
    - BEGIN IMMEDIATE: trava de escrita adquirida já na abertura, para que
      movimentação + saldo (ou uma cascata) sejam gravados juntos
    - commit ao sair (rollback em caso de exceção)
    """
    conn = sqlite3.connect(db_path, timeout=10.0, isolation_level=None)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute("BEGIN IMMEDIATE;")
        yield conn
        conn.execute("COMMIT;")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK;")
        raise
    finally:
        conn.close()
