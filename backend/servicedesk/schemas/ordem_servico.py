"""
Pydantic schemas for the service order API.

Request schemas accept dates as ``DD/MM/YYYY`` or ``YYYY-MM-DD`` and hand the
service layer aware datetimes fixed at noon UTC. Response schemas render those
instants back to ``DD/MM/YYYY``. Validation messages are user facing and kept
in Portuguese, matching what the frontend shows in its toasts.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from servicedesk.models.ordem_servico import StatusOrdem
from servicedesk.utils.dates import (
    InvalidDateFormat,
    format_date_br,
    parse_calendar_date,
    parse_input_date,
)

TEXT_MAX_LENGTH = 255

FIELD_LABELS: Dict[str, str] = {
    "solicitante": "Solicitante",
    "ubs": "Unidade",
    "unidade": "Unidade",
    "setor": "Setor",
    "descricao_problema": "Descrição do problema",
    "data_abertura": "Data de abertura",
    "servico_realizado": "Serviço realizado",
    "status": "Status",
    "data_fechamento": "Data de fechamento",
    "id": "ID",
    "ordem_id": "ID",
    "body": "Corpo da requisição",
    "numero": "Número da OS",
    "search": "Busca",
    "dia": "Dia",
    "mes": "Mês",
    "ano": "Ano",
    "dataInicio": "Data de início",
    "dataFim": "Data de fim",
}

STATUS_MESSAGE = "Status deve ser: aberto, em_andamento ou finalizado"


def field_label(name: str) -> str:
    return FIELD_LABELS.get(name, name)


def _coerce_status(value: Any) -> StatusOrdem:
    try:
        return StatusOrdem(value)
    except ValueError:
        raise PydanticCustomError("status_invalido", STATUS_MESSAGE) from None


def _coerce_date(value: Any, name: str) -> datetime:
    label = field_label(name)
    if not isinstance(value, str):
        raise PydanticCustomError("string_type", "{label} deve ser um texto", {"label": label})
    if not value.strip():
        raise PydanticCustomError(
            "campo_obrigatorio", "Campo obrigatório: {label}", {"label": label.lower()}
        )
    try:
        return parse_input_date(value)
    except InvalidDateFormat:
        raise PydanticCustomError(
            "data_invalida",
            "{label} deve estar no formato DD/MM/YYYY ou YYYY-MM-DD",
            {"label": label},
        ) from None


def _check_text(value: str, name: str, limit: Optional[int]) -> str:
    label = field_label(name)
    value = value.strip()
    if not value:
        raise PydanticCustomError(
            "campo_obrigatorio", "Campo obrigatório: {label}", {"label": label.lower()}
        )
    if limit is not None and len(value) > limit:
        raise PydanticCustomError(
            "texto_longo",
            "{label} deve ter no máximo {limit} caracteres",
            {"label": label, "limit": limit},
        )
    return value


def _empty_field_error(name: str) -> PydanticCustomError:
    return PydanticCustomError(
        "campo_vazio", "{label} não pode estar vazio", {"label": field_label(name)}
    )


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class _OrdemServicoInput(BaseModel):
    """Validators shared by the create and update payloads."""

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("solicitante", "ubs", "setor", check_fields=False)
    @classmethod
    def check_bounded_text(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            return value
        return _check_text(value, info.field_name, TEXT_MAX_LENGTH)

    @field_validator("descricao_problema", check_fields=False)
    @classmethod
    def check_free_text(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            return value
        return _check_text(value, info.field_name, None)

    @field_validator("servico_realizado", mode="before", check_fields=False)
    @classmethod
    def check_optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("status", mode="before", check_fields=False)
    @classmethod
    def check_status(cls, value: Any) -> Any:
        if value is None:
            return value
        return _coerce_status(value)

    @field_validator("data_fechamento", mode="before", check_fields=False)
    @classmethod
    def check_closing_date(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        value = _blank_to_none(value)
        if value is None:
            return None
        return _coerce_date(value, info.field_name)


class OrdemServicoCreate(_OrdemServicoInput):
    """Payload for ``POST /ordens-servico``."""

    solicitante: str
    ubs: str = Field(validation_alias=AliasChoices("ubs", "unidade"))
    setor: str
    descricao_problema: str
    data_abertura: datetime
    servico_realizado: Optional[str] = None
    status: StatusOrdem = StatusOrdem.ABERTO
    data_fechamento: Optional[datetime] = None

    @field_validator("data_abertura", mode="before")
    @classmethod
    def check_opening_date(cls, value: Any, info: ValidationInfo) -> datetime:
        return _coerce_date(value, info.field_name)

    @field_validator("status", mode="before")
    @classmethod
    def check_default_status(cls, value: Any) -> Any:
        # An explicit null keeps the default.
        if value is None:
            return StatusOrdem.ABERTO
        return value


class OrdemServicoUpdate(_OrdemServicoInput):
    """
    Payload for ``PUT /ordens-servico/{id}``.

    Every field is optional; only the keys present in the request are applied,
    which the service reads from ``model_fields_set``. Required columns cannot
    be cleared with an explicit ``null``.
    """

    solicitante: Optional[str] = None
    ubs: Optional[str] = Field(None, validation_alias=AliasChoices("ubs", "unidade"))
    setor: Optional[str] = None
    descricao_problema: Optional[str] = None
    data_abertura: Optional[datetime] = None
    servico_realizado: Optional[str] = None
    status: Optional[StatusOrdem] = None
    data_fechamento: Optional[datetime] = None

    @field_validator("solicitante", "ubs", "setor", "descricao_problema", "status", mode="before")
    @classmethod
    def check_not_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise _empty_field_error(info.field_name)
        return value

    @field_validator("data_abertura", mode="before")
    @classmethod
    def check_opening_date(cls, value: Any, info: ValidationInfo) -> datetime:
        # Present means replace; blank and null are rejected like on create.
        if value is None:
            raise _empty_field_error(info.field_name)
        return _coerce_date(value, info.field_name)

    def provided_fields(self) -> set:
        return set(self.model_fields_set)


class OrdemServicoResponse(BaseModel):
    """Service order as returned to clients, dates as ``DD/MM/YYYY``."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    numero_os: int
    solicitante: str
    ubs: str
    setor: str
    descricao_problema: str
    data_abertura: Optional[str] = None
    servico_realizado: Optional[str] = None
    status: str
    data_fechamento: Optional[str] = None

    @field_validator("data_abertura", "data_fechamento", mode="before")
    @classmethod
    def check_render_date(cls, value: Any) -> Optional[str]:
        return format_date_br(value)

    @field_validator("status", mode="before")
    @classmethod
    def check_render_status(cls, value: Any) -> str:
        if isinstance(value, StatusOrdem):
            return value.value
        return value


class DeleteResponse(BaseModel):
    message: str


class RelatorioFilters(BaseModel):
    """Query string accepted by the report endpoint."""

    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    search: Optional[str] = None
    dia: Optional[str] = None
    mes: Optional[str] = None
    ano: Optional[str] = None
    dataInicio: Optional[str] = None
    dataFim: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, value: Any) -> Optional[str]:
        value = _blank_to_none(value)
        if value is None or value == "todos":
            return value
        return _coerce_status(value).value

    @field_validator("search", mode="before")
    @classmethod
    def check_search(cls, value: Any) -> Optional[str]:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("dia", "mes", mode="before")
    @classmethod
    def check_day_or_month(cls, value: Any, info: ValidationInfo) -> Optional[str]:
        value = _blank_to_none(value)
        if value is None:
            return None
        upper = 31 if info.field_name == "dia" else 12
        text = str(value).strip()
        if not (text.isdigit() and len(text) <= 2 and 1 <= int(text) <= upper):
            raise PydanticCustomError(
                "numero_invalido",
                "{label} deve ser um número de 1 a {upper}",
                {"label": field_label(info.field_name), "upper": upper},
            )
        return text

    @field_validator("ano", mode="before")
    @classmethod
    def check_year(cls, value: Any) -> Optional[str]:
        value = _blank_to_none(value)
        if value is None:
            return None
        text = str(value).strip()
        if not (text.isdigit() and len(text) == 4 and int(text) >= 1):
            raise PydanticCustomError("ano_invalido", "Ano deve ter 4 dígitos")
        return text

    @field_validator("dataInicio", "dataFim", mode="before")
    @classmethod
    def check_iso_date(cls, value: Any, info: ValidationInfo) -> Optional[str]:
        value = _blank_to_none(value)
        if value is None:
            return None
        label = field_label(info.field_name)
        text = str(value).strip()
        try:
            if "/" in text:
                raise InvalidDateFormat(text)
            parse_calendar_date(text)
        except InvalidDateFormat:
            raise PydanticCustomError(
                "data_invalida",
                "{label} deve estar no formato YYYY-MM-DD",
                {"label": label},
            ) from None
        return text

    @property
    def has_range(self) -> bool:
        return bool(self.dataInicio or self.dataFim)

    @property
    def has_granular(self) -> bool:
        return bool(self.dia or self.mes or self.ano)

    @property
    def status_filter(self) -> Optional[StatusOrdem]:
        if self.status and self.status != "todos":
            return StatusOrdem(self.status)
        return None

    @property
    def start_date(self) -> Optional[date]:
        return parse_calendar_date(self.dataInicio) if self.dataInicio else None

    @property
    def end_date(self) -> Optional[date]:
        return parse_calendar_date(self.dataFim) if self.dataFim else None


class ValidationDetail(BaseModel):
    campo: str
    mensagem: str


class ValidationErrorResponse(BaseModel):
    error: str
    detalhes: List[ValidationDetail]


__all__ = [
    "FIELD_LABELS",
    "STATUS_MESSAGE",
    "DeleteResponse",
    "OrdemServicoCreate",
    "OrdemServicoResponse",
    "OrdemServicoUpdate",
    "RelatorioFilters",
    "ValidationErrorResponse",
    "field_label",
]
