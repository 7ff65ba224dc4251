"""Tests for the global error handlers and application info routes."""

import pytest

from servicedesk.api.error_handlers import build_validation_details, translate_error
from servicedesk.core.errors import StoreOperationFailed, store_errors


@pytest.mark.asyncio
async def test_unknown_route(api_client):
    response = await api_client.get("/api/nao-existe")
    assert response.status_code == 404
    assert response.json() == {"error": "Rota não encontrada"}


@pytest.mark.asyncio
async def test_root_info(api_client):
    response = await api_client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "API do Sistema de Ordem de Serviços"
    assert body["endpoints"] == {"ordensServico": "/api/ordens-servico"}
    assert body["version"]


@pytest.mark.asyncio
async def test_frontend_is_served(api_client):
    response = await api_client.get("/ui/")
    assert response.status_code == 200
    assert "Sistema de Ordem de Serviços" in response.text


@pytest.mark.asyncio
async def test_store_failure_is_reported(api_client, monkeypatch):
    from servicedesk.services.ordens_servico import OrdemServicoService

    async def broken_list_all(self):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(OrdemServicoService, "list_all", broken_list_all)

    response = await api_client.get("/api/ordens-servico")
    assert response.status_code == 500
    assert response.json() == {
        "error": "Erro ao buscar ordens de serviço",
        "message": "connection reset",
    }


def test_store_errors_wraps_unexpected_exceptions():
    with pytest.raises(StoreOperationFailed) as exc_info:
        with store_errors("Erro ao criar ordem de serviço"):
            raise ValueError("boom")
    assert exc_info.value.to_response() == {
        "error": "Erro ao criar ordem de serviço",
        "message": "boom",
    }


def test_translate_error_messages():
    assert translate_error({"type": "missing", "loc": ("body", "ubs")}) == "Campo obrigatório: unidade"
    assert translate_error({"type": "missing", "loc": ("body",)}) == "Corpo da requisição é obrigatório"
    assert translate_error({"type": "int_parsing", "loc": ("path", "numero")}) == (
        "Número da OS deve ser um número"
    )
    assert translate_error({"type": "value_error", "loc": ("query", "x"), "msg": "custom"}) == "custom"


def test_validation_details_use_frontend_names():
    details = build_validation_details(
        [{"type": "int_parsing", "loc": ("path", "ordem_id"), "msg": "Input should be a valid integer"}]
    )
    assert details == [{"campo": "params.id", "mensagem": "ID deve ser um número"}]
