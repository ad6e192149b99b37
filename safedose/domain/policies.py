"""
Políticas de classificação para o cálculo de dosagem.

Este módulo contém as regras de negócio que não são fórmulas: a
classificação da forma farmacêutica (que decide como a quantidade é
apresentada) e a verificação da dose normalizada contra os limites de
segurança estáticos de cada medicamento.

Os limites abaixo são exemplos ilustrativos e devem ser validados por
profissional de saúde; este não é um sistema clínico validado.
"""

from __future__ import annotations

from typing import Dict, Optional

from safedose.domain.models import AlertaSeguranca, LimiteSeguranca


FORMAS_SOLIDAS = frozenset({
    "comprimido", "comprimidos", "capsula", "cápsula",
    "tablet", "tablets", "capsule",
})

FORMAS_LIQUIDAS = frozenset({
    "líquido", "liquido", "injeção", "injecao", "injeccao", "solução", "solucao",
    "liquid", "injection", "solution",
})

LIMITES_SEGURANCA: Dict[str, LimiteSeguranca] = {
    "dipirona": LimiteSeguranca(max_dose=4000, min_dose=500, unidade="mg"),
    "paracetamol": LimiteSeguranca(max_dose=4000, min_dose=500, unidade="mg"),
    "morfina": LimiteSeguranca(max_dose=30, unidade="mg"),
}

# Nomes alternativos (em inglês) para as mesmas entradas
ALIASES: Dict[str, str] = {
    "dipyrone": "dipirona",
    "metamizole": "dipirona",
    "acetaminophen": "paracetamol",
    "morphine": "morfina",
}

MSG_SEM_MEDICAMENTO = "Nenhum medicamento selecionado."
MSG_DENTRO_LIMITES = "Dosagem dentro dos limites seguros."


def classificar_forma(forma: Optional[str]) -> str:
    """Classifica a forma farmacêutica.

    Returns:
        ``'solida'`` para comprimidos/cápsulas, ``'liquida'`` para
        líquidos/injeções/soluções e ``'outra'`` para qualquer outro valor
        (inclusive vazio).
    """
    chave = str(forma).lower() if forma else ""
    if chave in FORMAS_SOLIDAS:
        return "solida"
    if chave in FORMAS_LIQUIDAS:
        return "liquida"
    return "outra"


def obter_limite(medicamento: Optional[str]) -> Optional[LimiteSeguranca]:
    """Busca o limite do medicamento (sem diferenciar maiúsculas)."""
    if not medicamento:
        return None
    chave = str(medicamento).lower()
    return LIMITES_SEGURANCA.get(ALIASES.get(chave, chave))


def verificar_seguranca(prescricao_mg: float, medicamento: Optional[str]) -> AlertaSeguranca:
    """Verifica a dose normalizada contra os limites do medicamento.

    Regras (apenas uma condição é reportada):
        - Sem medicamento → ``'info'``.
        - Dose acima de ``max_dose`` → ``'warning'`` (tem prioridade).
        - Dose abaixo de ``min_dose`` → ``'warning'``.
        - Caso contrário, inclusive sem limite cadastrado → ``'success'``.

    Args:
        prescricao_mg: Dose prescrita já convertida para mg.
        medicamento: Identificador do medicamento.

    Returns:
        ``AlertaSeguranca`` com a mensagem e o tipo.
    """
    if not medicamento:
        return AlertaSeguranca(mensagem=MSG_SEM_MEDICAMENTO, tipo="info")

    limite = obter_limite(medicamento)
    if limite:
        if limite.max_dose is not None and prescricao_mg > limite.max_dose:
            return AlertaSeguranca(
                mensagem=f"ALERTA: A dosagem prescrita excede {_fmt(limite.max_dose)} {limite.unidade}.",
                tipo="warning",
            )
        if limite.min_dose is not None and prescricao_mg < limite.min_dose:
            return AlertaSeguranca(
                mensagem=f"ATENÇÃO: A dosagem prescrita está abaixo de {_fmt(limite.min_dose)} {limite.unidade}.",
                tipo="warning",
            )
    return AlertaSeguranca(mensagem=MSG_DENTRO_LIMITES, tipo="success")


def _fmt(valor: float) -> str:
    # 4000.0 -> "4000"
    return f"{valor:g}"
