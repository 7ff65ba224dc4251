"""
Service order (ordem de serviço) model.
"""

import enum

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from servicedesk.core.database import Base


class StatusOrdem(str, enum.Enum):
    """Service order lifecycle status."""

    ABERTO = "aberto"
    EM_ANDAMENTO = "em_andamento"
    FINALIZADO = "finalizado"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @property
    def color(self) -> str:
        return STATUS_COLORS[self]


STATUS_LABELS = {
    StatusOrdem.ABERTO: "Aberto",
    StatusOrdem.EM_ANDAMENTO: "Em Andamento",
    StatusOrdem.FINALIZADO: "Finalizado",
}

STATUS_COLORS = {
    StatusOrdem.ABERTO: "#dc3545",
    StatusOrdem.EM_ANDAMENTO: "#ffc107",
    StatusOrdem.FINALIZADO: "#28a745",
}


class OrdemServico(Base):
    """
    A help-desk ticket.

    ``numero_os`` is the human-facing sequential number and is distinct from
    the surrogate ``id``. Dates are stored at 12:00 UTC of the calendar day.
    """

    __tablename__ = "ordens_servico"

    id = Column(Integer, primary_key=True, autoincrement=True)
    numero_os = Column(Integer, unique=True, nullable=False, index=True)

    # Requester
    solicitante = Column(String(255), nullable=False)
    ubs = Column(String(255), nullable=False)
    setor = Column(String(255), nullable=False)

    # Ticket
    descricao_problema = Column(Text, nullable=False)
    data_abertura = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(
        String(20),
        nullable=False,
        default=StatusOrdem.ABERTO.value,
        server_default=StatusOrdem.ABERTO.value,
        index=True,
    )
    servico_realizado = Column(Text)
    data_fechamento = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<OrdemServico(numero_os={self.numero_os}, status={self.status})>"


class NumeracaoOrdemServico(Base):
    """
    Single-row high-water mark of issued ``numero_os`` values.

    Survives deletions so a number handed out once is never issued again.
    """

    __tablename__ = "numeracao_ordens_servico"

    ROW_ID = 1

    id = Column(Integer, primary_key=True)
    ultimo_numero = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<NumeracaoOrdemServico(ultimo_numero={self.ultimo_numero})>"
