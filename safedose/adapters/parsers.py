"""
Utilidades de parsing e validação dos campos do formulário.

Os valores digitados podem usar vírgula ou ponto como separador decimal
(por exemplo, "2,5" ou "2.5"). A validação reproduz as regras do envio
do formulário: o cálculo só é chamado quando não há erros.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

_NAO_NUMERICO_RE = re.compile(r"[^0-9.,]")
_NUM_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")

ERRO_MEDICAMENTO = "Selecione o medicamento."
ERRO_DOSAGEM = "Insira um valor numérico válido para a dosagem (maior que 0)."
ERRO_CONCENTRACAO = "Insira valores numéricos válidos para a concentração (maiores que 0)."
ERRO_FORMA = "Selecione a forma farmacêutica."


def parse_numero(txt: Optional[str]) -> Optional[float]:
    """Interpreta um número digitado no formulário.

    Mantém apenas dígitos, ponto e vírgula; a primeira vírgula vira ponto
    e o maior prefixo numérico é lido.

    Exemplos:
        "2,5"     → 2.5
        "500 mg"  → 500.0
        "abc"     → None

    Returns:
        O valor como float, ou None se nada numérico for encontrado.
    """
    if txt is None:
        return None
    s = _NAO_NUMERICO_RE.sub("", str(txt)).replace(",", ".", 1)
    m = _NUM_RE.match(s)
    if not m:
        return None
    return float(m.group(0))


def validar_formulario(
    medicamento: Optional[str],
    dosagem: Optional[float],
    massa: Optional[float],
    volume: Optional[float],
    forma: Optional[str],
) -> Dict[str, str]:
    """Valida os campos antes do cálculo.

    Returns:
        Dicionário campo → mensagem; vazio quando tudo é válido.
    """
    erros: Dict[str, str] = {}
    if not medicamento:
        erros["medicamento"] = ERRO_MEDICAMENTO
    if dosagem is None or dosagem <= 0:
        erros["dosagem"] = ERRO_DOSAGEM
    if massa is None or massa <= 0 or volume is None or volume <= 0:
        erros["concentracao"] = ERRO_CONCENTRACAO
    if not forma:
        erros["forma"] = ERRO_FORMA
    return erros
