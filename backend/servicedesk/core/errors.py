"""
Exception hierarchy for service order operations.

Every error knows its HTTP status and renders the JSON body the frontend
expects (``{"error": ..., ...}``).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class ServiceOrderError(Exception):
    """Base exception for all service order failures."""

    http_status: int = 500

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class RequestValidationFailed(ServiceOrderError):
    """Malformed or missing input, reported field by field."""

    http_status = 400

    def __init__(self, detalhes: List[Dict[str, str]], message: str = "Erro de validação"):
        super().__init__(message)
        self.detalhes = detalhes

    @classmethod
    def for_field(cls, campo: str, mensagem: str, message: str = "Erro de validação"):
        return cls([{"campo": campo, "mensagem": mensagem}], message=message)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message, "detalhes": self.detalhes}


class ServiceOrderNotFound(ServiceOrderError):
    http_status = 404

    def __init__(self, message: str = "Ordem de serviço não encontrada"):
        super().__init__(message)


class NothingToUpdate(ServiceOrderError):
    http_status = 400

    def __init__(self, message: str = "Nenhum campo para atualizar"):
        super().__init__(message)


class StoreOperationFailed(ServiceOrderError):
    """Unexpected failure while talking to the store or rendering a document."""

    http_status = 500

    def __init__(self, message: str, cause: BaseException):
        super().__init__(message)
        self.cause = cause

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message, "message": str(self.cause) or type(self.cause).__name__}


@contextmanager
def store_errors(message: str) -> Iterator[None]:
    """
    Wrap unexpected failures in ``StoreOperationFailed`` carrying ``message``.

    Errors that already belong to the hierarchy pass through unchanged.
    """
    try:
        yield
    except ServiceOrderError:
        raise
    except Exception as exc:
        logger.error("%s: %s", message, exc, exc_info=True)
        raise StoreOperationFailed(message, exc) from exc


__all__ = [
    "ServiceOrderError",
    "RequestValidationFailed",
    "ServiceOrderNotFound",
    "NothingToUpdate",
    "StoreOperationFailed",
    "store_errors",
]
