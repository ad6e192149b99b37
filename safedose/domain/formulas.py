"""
Unit conversion and dosage formulas.

These functions convert heterogeneous units to a common base (milligram
for mass, millilitre for volume) and compute the quantity of a drug to
administer given the prescribed dose and the available concentration.

All functions are pure: they depend solely on their inputs and do not
modify any external state. Failures are returned as data
(``ResultadoCalculo(sucesso=False)``), never raised.
"""

from __future__ import annotations

from math import isfinite
from typing import Dict, Optional, Union

from safedose.config import DEFAULTS
from safedose.domain.models import ResultadoCalculo
from safedose.domain.policies import classificar_forma


Numero = Union[int, float]

# Fator multiplicativo para a unidade base (mg para massa, mL para volume)
CONVERSOES: Dict[str, float] = {
    "g": 1000,
    "mg": 1,
    "mcg": 0.001,
    "ml": 1,
    "l": 1000,
}

MSG_MASSA_VOLUME_INVALIDO = "Erro: Massa ou volume inválido (deve ser maior que zero)."


def converter_para_mg(valor: Numero, unidade: Optional[str]) -> float:
    """Convert ``valor`` expressed in ``unidade`` to the base unit.

    Parameters
    ----------
    valor: int | float
        Quantity to convert.
    unidade: str | None
        Unit symbol, case-insensitive. When empty the value is assumed to
        already be in the base unit.

    Returns
    -------
    float
        ``valor`` times the factor of ``unidade``. Unknown units use a
        factor of 1, so the value passes through unconverted.
    """
    if not unidade:
        return valor
    return valor * CONVERSOES.get(str(unidade).lower(), 1)


def converter_volume_para_ml(valor: Numero, unidade: Optional[str]) -> float:
    """Convert a volume to mL; an unrecognized unit leaves the raw value."""
    chave = str(unidade).lower() if unidade else "ml"
    fator = CONVERSOES.get(chave)
    return valor * fator if fator else valor


def formatar_quantidade(quantidade: float) -> str:
    return f"{quantidade:.{DEFAULTS.casas_decimais}f}"


def calcular_dosagem(
    prescricao_valor: Numero,
    prescricao_unidade: Optional[str],
    disponivel_massa: Numero,
    disponivel_massa_unidade: Optional[str],
    disponivel_volume: Numero,
    disponivel_volume_unidade: Optional[str],
    forma: Optional[str],
    medicamento: Optional[str],
) -> ResultadoCalculo:
    """Compute the quantity to administer.

    The available concentration is ``massa_mg / volume_ml`` (mg per mL) and
    the quantity is the prescribed dose in mg divided by it. Solid forms
    are phrased as a count of the form itself; every other form is phrased
    in mL of the drug.

    Non-positive or non-finite mass/volume and any unexpected fault yield a
    failed result instead of an exception.
    """
    try:
        prescricao_mg = converter_para_mg(prescricao_valor, prescricao_unidade)
        massa_mg = converter_para_mg(disponivel_massa, disponivel_massa_unidade)
        volume_ml = converter_volume_para_ml(disponivel_volume, disponivel_volume_unidade)

        if not isfinite(massa_mg) or not isfinite(volume_ml) or massa_mg <= 0 or volume_ml <= 0:
            return ResultadoCalculo(texto=MSG_MASSA_VOLUME_INVALIDO, sucesso=False)

        concentracao = massa_mg / volume_ml
        quantidade = prescricao_mg / concentracao

        qtd = formatar_quantidade(quantidade)
        if classificar_forma(forma) == "solida":
            texto = f"Administrar {qtd} {forma}"
        else:
            # liquida e formas desconhecidas usam mL
            texto = f"Administrar {qtd} mL de {medicamento}"

        return ResultadoCalculo(
            texto=texto,
            sucesso=True,
            quantidade=quantidade,
            prescricao_mg=prescricao_mg,
        )
    except Exception as e:
        return ResultadoCalculo(texto=f"Erro no cálculo: {e}", sucesso=False)
