# safedose/domain/models.py
"""
Modelos (dataclasses) do domínio.

Observação importante:
- ``RegistroHistorico`` é serializado com os nomes de campo usados pela
  versão web (camelCase), para que históricos antigos continuem legíveis.
- Os demais modelos são resultados transitórios e nunca são persistidos.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LimiteSeguranca:
    """Limites de dose (na unidade ``unidade``) de um medicamento."""
    max_dose: Optional[float] = None
    min_dose: Optional[float] = None
    unidade: str = "mg"


@dataclass(frozen=True)
class ResultadoCalculo:
    """Resultado de um cálculo de dosagem.

    ``quantidade`` está em mL (ou número de comprimidos) e ``prescricao_mg``
    é a dose prescrita normalizada. Ambos ficam ``None`` quando ``sucesso``
    é falso.
    """
    texto: str
    sucesso: bool
    quantidade: Optional[float] = None
    prescricao_mg: Optional[float] = None


@dataclass(frozen=True)
class AlertaSeguranca:
    """Classificação da dose: tipo é 'warning', 'success' ou 'info'."""
    mensagem: str
    tipo: str


# nome do atributo -> nome do campo no JSON persistido
_CAMPOS_JSON = {
    "id": "id",
    "medicamento": "medicamento",
    "prescricao_valor": "prescricaoValor",
    "prescricao_unidade": "prescricaoUnidade",
    "disponivel_massa": "disponivelMassa",
    "disponivel_massa_unidade": "disponivelMassaUnidade",
    "disponivel_volume": "disponivelVolume",
    "disponivel_volume_unidade": "disponivelVolumeUnidade",
    "forma": "forma",
    "resultado": "resultado",
    "alerta": "alerta",
}


@dataclass(frozen=True)
class RegistroHistorico:
    """Item do histórico de cálculos (imutável; só pode ser removido)."""
    id: int
    medicamento: Optional[str]
    prescricao_valor: Optional[float]
    prescricao_unidade: Optional[str]
    disponivel_massa: Optional[float]
    disponivel_massa_unidade: Optional[str]
    disponivel_volume: Optional[float]
    disponivel_volume_unidade: Optional[str]
    forma: Optional[str]
    resultado: Optional[str]
    alerta: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {_CAMPOS_JSON[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistroHistorico":
        """Constrói a partir do JSON persistido.

        Apenas ``id`` é obrigatório; campos ausentes viram ``None``.
        """
        if not isinstance(data, dict):
            raise TypeError("registro deve ser um objeto JSON")
        if "id" not in data:
            raise KeyError("registro sem 'id'")
        kwargs = {attr: data.get(chave) for attr, chave in _CAMPOS_JSON.items()}
        kwargs["id"] = int(data["id"])
        return cls(**kwargs)
