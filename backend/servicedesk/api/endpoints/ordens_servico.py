"""
Service order endpoints: CRUD, status and number lookups, PDF downloads.

Fixed paths are declared before ``/{ordem_id}`` so ``/pdf/...``,
``/status/...`` and ``/numero/...`` are never captured as an id.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, Query, Request, Response, status
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from servicedesk.core.database import get_db
from servicedesk.core.errors import RequestValidationFailed, ServiceOrderNotFound, store_errors
from servicedesk.core.metrics import record_pdf_rendered
from servicedesk.core.rate_limiter import limiter
from servicedesk.models.ordem_servico import StatusOrdem
from servicedesk.schemas.ordem_servico import (
    STATUS_MESSAGE,
    DeleteResponse,
    OrdemServicoCreate,
    OrdemServicoResponse,
    OrdemServicoUpdate,
    RelatorioFilters,
)
from servicedesk.services.ordens_servico import OrdemServicoService
from servicedesk.services.pdf_reports import (
    ServiceOrderPdfRenderer,
    order_filename,
    report_filename,
)

router = APIRouter()

OrdemId = Annotated[int, Path(ge=0)]


def get_service(db: AsyncSession = Depends(get_db)) -> OrdemServicoService:
    return OrdemServicoService(db)


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def serialize(ordens) -> List[OrdemServicoResponse]:
    return [OrdemServicoResponse.model_validate(ordem) for ordem in ordens]


@router.get("/pdf/relatorio/geral", summary="Download a PDF report of filtered orders")
@limiter.limit("30/minute", key_func=get_remote_address)
async def download_report_pdf(
    request: Request,
    filters: Annotated[RelatorioFilters, Query()],
    service: OrdemServicoService = Depends(get_service),
) -> Response:
    """
    Render every order matching the query filters into a single PDF.

    ``dataInicio``/``dataFim`` take precedence over ``dia``/``mes``/``ano``.
    Responds 404 when nothing matches.
    """
    with store_errors("Erro ao gerar relatório PDF"):
        ordens = serialize(await service.find_for_report(filters))
        if not ordens:
            raise ServiceOrderNotFound("Nenhuma ordem de serviço encontrada para o relatório")

        renderer = ServiceOrderPdfRenderer()
        content = await run_in_threadpool(renderer.render_report, ordens, filters)
        record_pdf_rendered("report")

    return pdf_response(content, report_filename(renderer.generated_at))


@router.get("/pdf/{ordem_id}", summary="Download a single order as PDF")
async def download_order_pdf(
    ordem_id: OrdemId,
    service: OrdemServicoService = Depends(get_service),
) -> Response:
    with store_errors("Erro ao gerar PDF"):
        ordem = OrdemServicoResponse.model_validate(await service.get(ordem_id))
        content = await run_in_threadpool(ServiceOrderPdfRenderer().render_order, ordem)
        record_pdf_rendered("order")

    return pdf_response(content, order_filename(ordem.numero_os))


@router.get("", response_model=List[OrdemServicoResponse])
async def list_ordens_servico(
    service: OrdemServicoService = Depends(get_service),
) -> List[OrdemServicoResponse]:
    """All service orders, ascending by ``numero_os``."""
    with store_errors("Erro ao buscar ordens de serviço"):
        return serialize(await service.list_all())


@router.get("/status/{status_ordem}", response_model=List[OrdemServicoResponse])
async def list_ordens_servico_by_status(
    status_ordem: str,
    service: OrdemServicoService = Depends(get_service),
) -> List[OrdemServicoResponse]:
    try:
        wanted = StatusOrdem(status_ordem)
    except ValueError:
        raise RequestValidationFailed.for_field(
            "params.status", STATUS_MESSAGE, message="Status inválido"
        ) from None

    with store_errors("Erro ao buscar ordens de serviço"):
        return serialize(await service.list_by_status(wanted))


@router.get("/numero/{numero}", response_model=OrdemServicoResponse)
async def get_ordem_servico_by_numero(
    numero: Annotated[int, Path(ge=0)],
    service: OrdemServicoService = Depends(get_service),
) -> OrdemServicoResponse:
    with store_errors("Erro ao buscar ordem de serviço"):
        return OrdemServicoResponse.model_validate(await service.get_by_numero(numero))


@router.get("/{ordem_id}", response_model=OrdemServicoResponse)
async def get_ordem_servico(
    ordem_id: OrdemId,
    service: OrdemServicoService = Depends(get_service),
) -> OrdemServicoResponse:
    with store_errors("Erro ao buscar ordem de serviço"):
        return OrdemServicoResponse.model_validate(await service.get(ordem_id))


@router.post(
    "",
    response_model=OrdemServicoResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_ordem_servico(
    payload: OrdemServicoCreate,
    service: OrdemServicoService = Depends(get_service),
) -> OrdemServicoResponse:
    """
    Open a new service order.

    ``numero_os`` is assigned by the server. ``status`` defaults to
    ``aberto``; an order created as ``finalizado`` without a closing date is
    closed today.
    """
    with store_errors("Erro ao criar ordem de serviço"):
        return OrdemServicoResponse.model_validate(await service.create(payload))


@router.put("/{ordem_id}", response_model=OrdemServicoResponse)
async def update_ordem_servico(
    ordem_id: OrdemId,
    payload: OrdemServicoUpdate,
    service: OrdemServicoService = Depends(get_service),
) -> OrdemServicoResponse:
    """
    Partially update an order; only the keys present in the body change.

    Sending ``status`` without ``data_fechamento`` stamps today when the
    status is ``finalizado`` and clears the closing date otherwise.
    """
    with store_errors("Erro ao atualizar ordem de serviço"):
        return OrdemServicoResponse.model_validate(await service.update(ordem_id, payload))


@router.delete("/{ordem_id}", response_model=DeleteResponse)
async def delete_ordem_servico(
    ordem_id: OrdemId,
    service: OrdemServicoService = Depends(get_service),
) -> DeleteResponse:
    with store_errors("Erro ao deletar ordem de serviço"):
        await service.delete(ordem_id)
    return DeleteResponse(message="Ordem de serviço deletada com sucesso")
