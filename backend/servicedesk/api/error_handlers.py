"""
Global exception handlers.

Domain errors carry their own status and body, request validation failures
are reported field by field in Portuguese, unknown routes get a JSON 404 and
anything else becomes a 500 with the exception text.
"""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from servicedesk.core.errors import ServiceOrderError
from servicedesk.schemas.ordem_servico import field_label

logger = logging.getLogger(__name__)

# FastAPI location names as the frontend knows them.
LOCATION_NAMES = {"path": "params"}
PARAMETER_NAMES = {"ordem_id": "id", "status_ordem": "status"}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    @app.exception_handler(ServiceOrderError)
    async def service_order_error_handler(request: Request, exc: ServiceOrderError):
        log = logger.error if exc.http_status >= 500 else logger.info
        log("%s %s -> %s: %s", request.method, request.url.path, exc.http_status, exc.message)
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def _register_validation_error_handler(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        detalhes = build_validation_details(exc.errors())
        logger.warning("Validation error on %s: %s", request.url.path, detalhes)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Erro de validação", "detalhes": detalhes},
        )


def _register_http_error_handler(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            content = {"error": "Rota não encontrada"}
        elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            content = {"error": "Método não permitido"}
        else:
            content = {"error": exc.detail}
        return JSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Erro interno do servidor",
                "message": str(exc) or type(exc).__name__,
            },
        )


def _field_path(loc) -> str:
    parts = []
    for index, part in enumerate(loc):
        if index == 0:
            part = LOCATION_NAMES.get(part, part)
        elif isinstance(part, str):
            part = PARAMETER_NAMES.get(part, part)
        parts.append(str(part))
    return ".".join(parts)


def _field_name(loc) -> str:
    names = [part for part in loc if isinstance(part, str)]
    return names[-1] if names else "body"


def translate_error(error: Dict[str, Any]) -> str:
    """Portuguese message for one pydantic error entry."""
    kind = error.get("type", "")
    label = field_label(_field_name(error.get("loc", ())))

    if kind == "missing":
        if tuple(error.get("loc", ())) == ("body",):
            return "Corpo da requisição é obrigatório"
        return f"Campo obrigatório: {label.lower()}"
    if kind == "string_type":
        return f"{label} deve ser um texto"
    if kind in ("int_parsing", "int_type", "int_from_float", "greater_than_equal"):
        return f"{label} deve ser um número"
    if kind == "json_invalid":
        return "JSON inválido"
    if kind in ("model_attributes_type", "dict_type", "model_type"):
        return "Corpo da requisição deve ser um objeto JSON"
    return error.get("msg", "Valor inválido")


def build_validation_details(errors) -> List[Dict[str, str]]:
    return [
        {"campo": _field_path(error.get("loc", ())), "mensagem": translate_error(error)}
        for error in errors
    ]
