"""Tests for service order request and response schemas."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from servicedesk.models.ordem_servico import OrdemServico, StatusOrdem
from servicedesk.schemas.ordem_servico import (
    OrdemServicoCreate,
    OrdemServicoResponse,
    OrdemServicoUpdate,
    RelatorioFilters,
)
from tests.factories import order_payload


def _messages(exc_info) -> list:
    return [error["msg"] for error in exc_info.value.errors()]


def test_create_defaults_and_normalisation():
    payload = OrdemServicoCreate(**order_payload(solicitante="  Ana  ", servico_realizado=""))
    assert payload.solicitante == "Ana"
    assert payload.status is StatusOrdem.ABERTO
    assert payload.servico_realizado is None
    assert payload.data_fechamento is None
    assert payload.data_abertura == datetime(2024, 3, 15, 12, tzinfo=timezone.utc)


def test_create_accepts_unidade_alias():
    data = order_payload()
    data["unidade"] = data.pop("ubs")
    assert OrdemServicoCreate(**data).ubs == "Central"


def test_create_null_status_keeps_default():
    assert OrdemServicoCreate(**order_payload(status=None)).status is StatusOrdem.ABERTO


def test_create_blank_required_text():
    with pytest.raises(ValidationError) as exc_info:
        OrdemServicoCreate(**order_payload(solicitante="   "))
    assert "Campo obrigatório: solicitante" in _messages(exc_info)


def test_create_text_too_long():
    with pytest.raises(ValidationError) as exc_info:
        OrdemServicoCreate(**order_payload(setor="x" * 256))
    assert "Setor deve ter no máximo 255 caracteres" in _messages(exc_info)


def test_create_rejects_bad_dates():
    with pytest.raises(ValidationError) as exc_info:
        OrdemServicoCreate(**order_payload(data_abertura="2024/03/15"))
    assert _messages(exc_info) == [
        "Data de abertura deve estar no formato DD/MM/YYYY ou YYYY-MM-DD"
    ]

    with pytest.raises(ValidationError):
        OrdemServicoCreate(**order_payload(data_abertura="31/02/2024"))


def test_create_rejects_unknown_status():
    with pytest.raises(ValidationError) as exc_info:
        OrdemServicoCreate(**order_payload(status="cancelado"))
    assert _messages(exc_info) == ["Status deve ser: aberto, em_andamento ou finalizado"]


def test_update_tracks_provided_fields():
    payload = OrdemServicoUpdate(status="finalizado", data_fechamento="")
    assert payload.provided_fields() == {"status", "data_fechamento"}
    assert payload.status is StatusOrdem.FINALIZADO
    assert payload.data_fechamento is None


def test_update_rejects_null_required_field():
    with pytest.raises(ValidationError) as exc_info:
        OrdemServicoUpdate(solicitante=None)
    assert _messages(exc_info) == ["Solicitante não pode estar vazio"]


@pytest.mark.parametrize(
    "value, message",
    [
        ("", "Campo obrigatório: data de abertura"),
        ("   ", "Campo obrigatório: data de abertura"),
        (None, "Data de abertura não pode estar vazio"),
    ],
)
def test_update_rejects_blank_opening_date(value, message):
    with pytest.raises(ValidationError) as exc_info:
        OrdemServicoUpdate(data_abertura=value)
    assert _messages(exc_info) == [message]


def test_update_replaces_opening_date():
    payload = OrdemServicoUpdate(data_abertura="2024-04-01")
    assert payload.data_abertura == datetime(2024, 4, 1, 12, tzinfo=timezone.utc)


def test_response_renders_dates():
    ordem = OrdemServico(
        id=1,
        numero_os=1027,
        solicitante="Ana",
        ubs="Central",
        setor="TI",
        descricao_problema="Impressora travada",
        data_abertura=datetime(2024, 3, 15, 12),
        status="finalizado",
        data_fechamento=datetime(2024, 3, 20, 12, tzinfo=timezone.utc),
    )
    response = OrdemServicoResponse.model_validate(ordem)
    assert response.data_abertura == "15/03/2024"
    assert response.data_fechamento == "20/03/2024"
    assert response.servico_realizado is None


def test_report_filters_status_todos():
    filters = RelatorioFilters(status="todos", search="  impressora ")
    assert filters.status_filter is None
    assert filters.search == "impressora"
    assert not filters.has_range
    assert not filters.has_granular


@pytest.mark.parametrize(
    "field, value",
    [
        ("dia", "32"),
        ("dia", "abc"),
        ("mes", "13"),
        ("mes", "001"),
        ("ano", "24"),
        ("dataInicio", "15/03/2024"),
        ("dataFim", "2024-02-30"),
        ("status", "cancelado"),
    ],
)
def test_report_filters_reject_invalid_values(field, value):
    with pytest.raises(ValidationError):
        RelatorioFilters(**{field: value})


def test_report_filters_range():
    filters = RelatorioFilters(dataInicio="2024-03-01", dia="15")
    assert filters.has_range
    assert filters.start_date.isoformat() == "2024-03-01"
    assert filters.end_date is None
