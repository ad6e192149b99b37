# safedose/config.py
"""
Configurações globais e valores padrão do SafeDose.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite (armazenamento chave/valor)
DB_PATH = os.path.join(os.getcwd(), "safedose.db")

# Chave atual do histórico e chave antiga (lida apenas para migração)
HISTORICO_KEY = "historicoDosagens"
HISTORICO_LEGACY_KEY = "dosageHistory"


@dataclass
class DefaultConfig:
    """Valores padrão para os campos do formulário de cálculo."""
    unidade_prescrita: str = "mg"
    unidade_massa: str = "mg"
    unidade_volume: str = "ml"
    casas_decimais: int = 2  # casas exibidas na quantidade a administrar


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
