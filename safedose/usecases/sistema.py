# safedose/usecases/sistema.py
"""
UC: Calcular dosagem e manter o histórico.

``SistemaSafeDose`` é construído uma vez por processo/sessão e repassado
explicitamente a quem trata os eventos do usuário (comando da CLI, menu
da TUI). Ele encadeia cálculo → verificação de segurança → registro no
histórico.

Obs.:
- Falhas de cálculo voltam como ``ResultadoCalculo(sucesso=False)`` e não
  geram registro no histórico.
- Apenas falhas de armazenamento (ex.: histórico corrompido) propagam.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from safedose.config import DB_PATH
from safedose.domain.formulas import calcular_dosagem
from safedose.domain.models import AlertaSeguranca, RegistroHistorico, ResultadoCalculo
from safedose.domain.policies import verificar_seguranca
from safedose.infra.migrations import apply_migrations
from safedose.infra.repositories import HistoricoRepo
from safedose.infra.logger import (
    log_transaction, log_calculo, log_system_event,
)


class SistemaSafeDose:
    """Serviço de cálculo de dosagem com histórico persistido."""

    def __init__(self, db_path: str = DB_PATH, relogio: Optional[Callable[[], float]] = None):
        self.db_path = db_path
        apply_migrations(db_path)
        self.historico = HistoricoRepo(db_path, relogio=relogio)
        log_system_event("sistema_init", {"db_path": db_path})

    def calcular(
        self,
        medicamento: Optional[str],
        prescricao_valor: float,
        prescricao_unidade: Optional[str],
        disponivel_massa: float,
        disponivel_massa_unidade: Optional[str],
        disponivel_volume: float,
        disponivel_volume_unidade: Optional[str],
        forma: Optional[str],
        registrar: bool = True,
    ) -> Tuple[ResultadoCalculo, Optional[AlertaSeguranca]]:
        """Calcula, verifica a segurança e (se ``registrar``) grava no histórico.

        Returns:
            ``(resultado, alerta)``; ``alerta`` é ``None`` quando o cálculo falha.
        """
        resultado = calcular_dosagem(
            prescricao_valor,
            prescricao_unidade,
            disponivel_massa,
            disponivel_massa_unidade,
            disponivel_volume,
            disponivel_volume_unidade,
            forma,
            medicamento,
        )
        if not resultado.sucesso:
            log_calculo(medicamento, False, resultado.texto)
            return resultado, None

        alerta = verificar_seguranca(resultado.prescricao_mg, medicamento)
        log_calculo(
            medicamento, True, resultado.texto,
            prescricao_mg=resultado.prescricao_mg, alerta=alerta.tipo,
        )

        if registrar:
            dados = {"medicamento": medicamento, "texto": resultado.texto}
            try:
                registro = self.historico.adicionar(
                    medicamento,
                    prescricao_valor,
                    prescricao_unidade,
                    disponivel_massa,
                    disponivel_massa_unidade,
                    disponivel_volume,
                    disponivel_volume_unidade,
                    forma,
                    resultado.texto,
                    alerta.mensagem,
                )
            except Exception as e:
                log_transaction("calculo", dados, error=str(e))
                raise
            log_transaction("calculo", dados, result={"id": registro.id, "alerta": alerta.tipo})

        return resultado, alerta

    def obter_historico(self) -> Tuple[RegistroHistorico, ...]:
        return self.historico.listar()

    def remover_historico(self, registro_id: int) -> int:
        try:
            removidos = self.historico.remover(registro_id)
        except Exception as e:
            log_transaction("remover_historico", {"id": registro_id}, error=str(e))
            raise
        log_transaction("remover_historico", {"id": registro_id}, result={"removidos": removidos})
        return removidos
