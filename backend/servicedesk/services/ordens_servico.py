"""
Service order persistence rules: numbering, status transitions and report
filtering on top of an async SQLAlchemy session.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import String, and_, cast, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from servicedesk.core.config import settings
from servicedesk.core.errors import (
    NothingToUpdate,
    RequestValidationFailed,
    ServiceOrderNotFound,
)
from servicedesk.core.metrics import record_order_created, record_order_number_conflict
from servicedesk.models.ordem_servico import NumeracaoOrdemServico, OrdemServico, StatusOrdem
from servicedesk.schemas.ordem_servico import (
    OrdemServicoCreate,
    OrdemServicoUpdate,
    RelatorioFilters,
)
from servicedesk.utils.dates import end_of_day, start_of_day, utc_now

logger = logging.getLogger(__name__)

# Fields copied verbatim from an update payload when present.
PLAIN_UPDATE_FIELDS = (
    "solicitante",
    "ubs",
    "setor",
    "descricao_problema",
    "servico_realizado",
)


class OrderNumberConflict(Exception):
    """Another request claimed the same ``numero_os`` first."""

    def __init__(self, numero_os: int):
        super().__init__(f"numero_os {numero_os} já está em uso")
        self.numero_os = numero_os


def assign_order_number(current_max: Optional[int], floor: int) -> int:
    """Next business number given the highest one in use."""
    if not current_max:
        return floor
    return max(int(current_max) + 1, floor)


def apply_closing_date_rule(
    changes: Dict[str, Any],
    explicit_closing_date: bool,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Derive ``data_fechamento`` from a status change.

    Closing a ticket stamps it with ``now``; any other status clears the
    closing date. A closing date sent by the caller (including ``null``)
    always wins.
    """
    if "status" not in changes or explicit_closing_date:
        return changes

    if changes["status"] == StatusOrdem.FINALIZADO.value:
        changes["data_fechamento"] = now or utc_now()
    else:
        changes["data_fechamento"] = None
    return changes


def report_date_bounds(filters: RelatorioFilters) -> Optional[tuple]:
    """
    Opening-date window selected by the report filters, or ``None``.

    A start/end range takes precedence over the day/month/year filters. The
    granular filters narrow year, then month, then day; a month without a
    year or a day without a month is ignored.
    """
    if filters.has_range:
        start = start_of_day(filters.start_date) if filters.dataInicio else None
        end = end_of_day(filters.end_date) if filters.dataFim else None
        return start, end

    if not filters.ano:
        return None

    year = int(filters.ano)
    if not filters.mes:
        return start_of_day(date(year, 1, 1)), end_of_day(date(year, 12, 31))

    month = int(filters.mes)
    first = date(year, month, 1)
    last = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    last = date.fromordinal(last.toordinal() - 1)
    if not filters.dia:
        return start_of_day(first), end_of_day(last)

    try:
        day = date(year, month, int(filters.dia))
    except ValueError:
        raise RequestValidationFailed.for_field(
            "query.dia", "Dia inválido para o mês informado"
        ) from None
    return start_of_day(day), end_of_day(day)


class OrdemServicoService:
    """CRUD and reporting operations for service orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> List[OrdemServico]:
        stmt = select(OrdemServico).order_by(OrdemServico.numero_os.asc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_status(self, status: StatusOrdem) -> List[OrdemServico]:
        stmt = (
            select(OrdemServico)
            .where(OrdemServico.status == status.value)
            .order_by(OrdemServico.numero_os.asc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, ordem_id: int) -> OrdemServico:
        ordem = await self.db.get(OrdemServico, ordem_id)
        if ordem is None:
            logger.info("Service order id=%s not found", ordem_id)
            raise ServiceOrderNotFound()
        return ordem

    async def get_by_numero(self, numero_os: int) -> OrdemServico:
        stmt = select(OrdemServico).where(OrdemServico.numero_os == numero_os)
        result = await self.db.execute(stmt)
        ordem = result.scalar_one_or_none()
        if ordem is None:
            logger.info("Service order numero_os=%s not found", numero_os)
            raise ServiceOrderNotFound()
        return ordem

    async def next_order_number(self) -> int:
        """
        One past the highest ``numero_os`` ever issued.

        The live maximum covers rows written before the high-water mark
        existed; the mark covers numbers whose orders were deleted.
        """
        stmt = (
            select(OrdemServico.numero_os)
            .order_by(OrdemServico.numero_os.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        highest = result.scalar_one_or_none() or 0

        counter = await self._numbering_counter()
        if counter is not None:
            highest = max(highest, counter.ultimo_numero)
        return assign_order_number(highest, settings.ORDER_NUMBER_FLOOR)

    async def _numbering_counter(self) -> Optional[NumeracaoOrdemServico]:
        return await self.db.get(
            NumeracaoOrdemServico,
            NumeracaoOrdemServico.ROW_ID,
            populate_existing=True,
            with_for_update=True,
        )

    async def _record_issued_number(self, numero_os: int) -> None:
        counter = await self._numbering_counter()
        if counter is None:
            self.db.add(
                NumeracaoOrdemServico(id=NumeracaoOrdemServico.ROW_ID, ultimo_numero=numero_os)
            )
        elif numero_os > counter.ultimo_numero:
            counter.ultimo_numero = numero_os

    async def create(self, payload: OrdemServicoCreate) -> OrdemServico:
        """
        Insert a new service order with the next free ``numero_os``.

        The number is read and written in separate statements; the unique
        constraints on ``numero_os`` and on the high-water mark row turn a
        concurrent collision into an ``IntegrityError`` and the whole
        read-then-insert is retried.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.ORDER_NUMBER_MAX_ATTEMPTS),
            retry=retry_if_exception_type(OrderNumberConflict),
            before_sleep=record_order_number_conflict,
            reraise=True,
        ):
            with attempt:
                return await self._insert(payload)

    async def _insert(self, payload: OrdemServicoCreate) -> OrdemServico:
        numero_os = await self.next_order_number()

        changes: Dict[str, Any] = {
            "status": payload.status.value,
            "data_fechamento": payload.data_fechamento,
        }
        apply_closing_date_rule(
            changes, explicit_closing_date="data_fechamento" in payload.model_fields_set
        )

        ordem = OrdemServico(
            numero_os=numero_os,
            solicitante=payload.solicitante,
            ubs=payload.ubs,
            setor=payload.setor,
            descricao_problema=payload.descricao_problema,
            data_abertura=payload.data_abertura,
            servico_realizado=payload.servico_realizado,
            **changes,
        )
        self.db.add(ordem)
        await self._record_issued_number(numero_os)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.warning("numero_os %s collided, retrying", numero_os)
            raise OrderNumberConflict(numero_os) from exc

        await self.db.refresh(ordem)
        record_order_created()
        logger.info("Created service order numero_os=%s id=%s", ordem.numero_os, ordem.id)
        return ordem

    async def update(self, ordem_id: int, payload: OrdemServicoUpdate) -> OrdemServico:
        """Apply the fields present in ``payload``; raises when nothing changes."""
        provided = payload.provided_fields()
        ordem = await self.get(ordem_id)

        changes: Dict[str, Any] = {}
        for field in PLAIN_UPDATE_FIELDS:
            if field in provided:
                changes[field] = getattr(payload, field)

        if "data_abertura" in provided:
            changes["data_abertura"] = payload.data_abertura

        if "data_fechamento" in provided:
            changes["data_fechamento"] = payload.data_fechamento

        if "status" in provided and payload.status is not None:
            changes["status"] = payload.status.value

        apply_closing_date_rule(changes, explicit_closing_date="data_fechamento" in provided)

        if not changes:
            raise NothingToUpdate()

        for field, value in changes.items():
            setattr(ordem, field, value)

        await self.db.commit()
        await self.db.refresh(ordem)
        logger.info(
            "Updated service order numero_os=%s fields=%s",
            ordem.numero_os,
            sorted(changes),
        )
        return ordem

    async def delete(self, ordem_id: int) -> None:
        result = await self.db.execute(
            delete(OrdemServico).where(OrdemServico.id == ordem_id)
        )
        if not result.rowcount:
            await self.db.rollback()
            logger.info("Service order id=%s not found for deletion", ordem_id)
            raise ServiceOrderNotFound()
        await self.db.commit()
        logger.info("Deleted service order id=%s", ordem_id)

    async def find_for_report(self, filters: RelatorioFilters) -> List[OrdemServico]:
        """Orders matching the report filters, oldest opening date first."""
        conditions = []

        status = filters.status_filter
        if status is not None:
            conditions.append(OrdemServico.status == status.value)

        if filters.search:
            term = filters.search
            conditions.append(
                or_(
                    cast(OrdemServico.numero_os, String).contains(term, autoescape=True),
                    OrdemServico.solicitante.icontains(term, autoescape=True),
                    OrdemServico.ubs.icontains(term, autoescape=True),
                    OrdemServico.setor.icontains(term, autoescape=True),
                    OrdemServico.descricao_problema.icontains(term, autoescape=True),
                )
            )

        bounds = report_date_bounds(filters)
        if bounds is not None:
            start, end = bounds
            if start is not None:
                conditions.append(OrdemServico.data_abertura >= start)
            if end is not None:
                conditions.append(OrdemServico.data_abertura <= end)

        stmt = select(OrdemServico)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(OrdemServico.data_abertura.asc(), OrdemServico.numero_os.asc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())
