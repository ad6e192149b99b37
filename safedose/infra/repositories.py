# safedose/infra/repositories.py
"""
Repositórios para acesso e persistência de dados no SQLite.

Classes:
- StorageRepo     -> armazenamento chave/valor (texto)
- HistoricoRepo   -> histórico de cálculos, persistido como array JSON
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from .db import connect
from .logger import log_database_operation, log_historico, log_system_event
from safedose.config import HISTORICO_KEY, HISTORICO_LEGACY_KEY
from safedose.domain.models import RegistroHistorico


class HistoricoCorrompidoError(ValueError):
    """O conteúdo persistido do histórico não é um array JSON válido."""


# -------------------------
# Storage chave/valor
# -------------------------

class StorageRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def get_item(self, chave: str) -> Optional[str]:
        with connect(self.db_path) as c:
            row = c.execute("SELECT valor FROM storage WHERE chave = ?", (chave,)).fetchone()
            return row[0] if row else None

    def set_item(self, chave: str, valor: str) -> None:
        with connect(self.db_path) as c:
            c.execute(
                """
                INSERT INTO storage (chave, valor)
                VALUES (?, ?)
                ON CONFLICT(chave) DO UPDATE SET valor=excluded.valor
                """,
                (chave, valor),
            )
        log_database_operation("storage", "UPSERT", 1, chave=chave)


# -------------------------
# Histórico
# -------------------------

class HistoricoRepo:
    """
    Histórico de cálculos, do mais recente para o mais antigo.

    O conteúdo é lido do storage no primeiro acesso (chave atual, com
    fallback para a chave antiga) e regravado inteiro, sempre na chave
    atual, após cada ``adicionar``/``remover``.
    """

    def __init__(self, db_path: str, relogio: Optional[Callable[[], float]] = None):
        self.storage = StorageRepo(db_path)
        self._relogio = relogio or time.time
        self._registros: Optional[List[RegistroHistorico]] = None

    # leitura

    def load(self) -> Tuple[RegistroHistorico, ...]:
        """Relê o histórico do storage, descartando o estado em memória."""
        bruto = self.storage.get_item(HISTORICO_KEY)
        origem = HISTORICO_KEY
        if not bruto:
            # valor vazio conta como ausente
            bruto = self.storage.get_item(HISTORICO_LEGACY_KEY)
            origem = HISTORICO_LEGACY_KEY

        self._registros = _decodificar(bruto, origem) if bruto else []
        if origem == HISTORICO_LEGACY_KEY and bruto:
            log_historico("migrate", total=len(self._registros), origem=origem)
        log_historico("load", total=len(self._registros), origem=origem)
        return tuple(self._registros)

    def _carregados(self) -> List[RegistroHistorico]:
        if self._registros is None:
            self.load()
        return self._registros

    def listar(self) -> Tuple[RegistroHistorico, ...]:
        return tuple(self._carregados())

    # escrita

    def adicionar(
        self,
        medicamento: Optional[str],
        prescricao_valor: Optional[float],
        prescricao_unidade: Optional[str],
        disponivel_massa: Optional[float],
        disponivel_massa_unidade: Optional[str],
        disponivel_volume: Optional[float],
        disponivel_volume_unidade: Optional[str],
        forma: Optional[str],
        resultado: Optional[str],
        alerta: Optional[str],
    ) -> RegistroHistorico:
        registros = self._carregados()
        registro = RegistroHistorico(
            id=self._novo_id(),
            medicamento=medicamento,
            prescricao_valor=prescricao_valor,
            prescricao_unidade=prescricao_unidade,
            disponivel_massa=disponivel_massa,
            disponivel_massa_unidade=disponivel_massa_unidade,
            disponivel_volume=disponivel_volume,
            disponivel_volume_unidade=disponivel_volume_unidade,
            forma=forma,
            resultado=resultado,
            alerta=alerta,
        )
        novos = [registro] + registros
        self._gravar(novos)
        self._registros = novos
        log_historico("add", registro.id, medicamento=medicamento)
        return registro

    def remover(self, registro_id: int) -> int:
        """Remove todos os registros com o id informado; retorna quantos saíram."""
        registros = self._carregados()
        restantes = [r for r in registros if r.id != registro_id]
        removidos = len(registros) - len(restantes)
        self._gravar(restantes)
        self._registros = restantes
        log_historico("remove", registro_id, removidos=removidos)
        return removidos

    def salvar(self) -> None:
        self._gravar(self._carregados())

    def _gravar(self, registros: List[RegistroHistorico]) -> None:
        # o estado em memória só muda depois que a gravação dá certo
        payload = json.dumps([r.to_dict() for r in registros], ensure_ascii=False)
        self.storage.set_item(HISTORICO_KEY, payload)

    def _novo_id(self) -> int:
        # timestamp em ms; avança 1 ms se colidir com um id existente
        novo = int(self._relogio() * 1000)
        registros = self._registros or []
        if registros:
            maior = max(r.id for r in registros)
            if novo <= maior:
                novo = maior + 1
        return novo


def _decodificar(bruto: str, origem: str) -> List[RegistroHistorico]:
    try:
        dados: Any = json.loads(bruto)
    except json.JSONDecodeError as e:
        log_system_event("historico_corrompido", {"chave": origem, "error": str(e)}, level="error")
        raise HistoricoCorrompidoError(f"Histórico em '{origem}' não é JSON válido: {e}") from e

    if not isinstance(dados, list):
        log_system_event("historico_corrompido", {"chave": origem, "tipo": type(dados).__name__}, level="error")
        raise HistoricoCorrompidoError(f"Histórico em '{origem}' deve ser um array JSON.")

    registros: List[RegistroHistorico] = []
    for pos, item in enumerate(dados):
        try:
            registros.append(RegistroHistorico.from_dict(item))
        except (TypeError, KeyError, ValueError) as e:
            log_system_event("historico_corrompido", {"chave": origem, "posicao": pos, "error": str(e)}, level="error")
            raise HistoricoCorrompidoError(f"Registro {pos} inválido em '{origem}': {e}") from e
    return registros


def registros_como_dicts(registros) -> List[Dict[str, Any]]:
    """Converte registros para o formato JSON persistido."""
    return [r.to_dict() for r in registros]
