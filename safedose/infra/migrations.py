# safedose/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabela chave/valor ``storage`` (equivalente ao localStorage do navegador)
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS storage (
        chave TEXT PRIMARY KEY,
        valor TEXT
    );
    """,
]


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        # versões futuras: if ver < 2: _apply_v2(...)
