"""
SQLAlchemy database models.
"""

from servicedesk.models.ordem_servico import (
    STATUS_COLORS,
    STATUS_LABELS,
    NumeracaoOrdemServico,
    OrdemServico,
    StatusOrdem,
)

__all__ = [
    "NumeracaoOrdemServico",
    "OrdemServico",
    "StatusOrdem",
    "STATUS_LABELS",
    "STATUS_COLORS",
]
