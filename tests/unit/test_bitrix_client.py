"""
Pruebas unitarias para BitrixClient.
"""

import pytest
import httpx
from unittest.mock import AsyncMock, patch

from src.integrations.bitrix_client import BitrixAPIError, BitrixClient

pytestmark = pytest.mark.unit

WEBHOOK_URL = "https://portal.bitrix24.test/rest/1/secret/"


class TestBitrixClient:
    """Pruebas para la clase BitrixClient."""

    @pytest.fixture
    def bitrix_client(self):
        return BitrixClient(webhook_url=WEBHOOK_URL, timeout=10)

    def test_webhook_url_is_normalized(self, bitrix_client):
        assert bitrix_client.webhook_url == "https://portal.bitrix24.test/rest/1/secret"

    @pytest.mark.asyncio
    async def test_call_returns_result(self, bitrix_client, make_response):
        """El método retorna el campo 'result' de la respuesta."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_post = AsyncMock(return_value=make_response(200, json={"result": {"ID": "42"}}, method="POST"))
            mock_client.return_value.__aenter__.return_value.post = mock_post

            result = await bitrix_client.call("crm.lead.get", {"id": "42"})

        assert result == {"ID": "42"}
        mock_post.assert_awaited_once_with(
            "https://portal.bitrix24.test/rest/1/secret/crm.lead.get.json",
            json={"id": "42"},
            timeout=10,
        )

    @pytest.mark.asyncio
    async def test_call_business_error_is_not_retried(self, bitrix_client, make_response, no_sleep):
        """Bitrix responde 400 con {error, error_description}: no se reintenta."""
        response = make_response(
            400,
            json={"error": "NOT_FOUND", "error_description": "Not found"},
            method="POST",
        )
        with patch("httpx.AsyncClient") as mock_client:
            mock_post = AsyncMock(return_value=response)
            mock_client.return_value.__aenter__.return_value.post = mock_post

            with pytest.raises(BitrixAPIError) as exc_info:
                await bitrix_client.call("crm.lead.get", {"id": "999"})

        assert exc_info.value.status_code == 400
        assert "NOT_FOUND" in str(exc_info.value)
        assert mock_post.await_count == 1

    @pytest.mark.asyncio
    async def test_call_server_error_is_retried(self, bitrix_client, make_response, no_sleep):
        """Un 5xx se reintenta hasta agotar BITRIX_RETRY_CONFIG."""
        with patch("httpx.AsyncClient") as mock_client:
            mock_post = AsyncMock(return_value=make_response(503, content=b"Service Unavailable", method="POST"))
            mock_client.return_value.__aenter__.return_value.post = mock_post

            with pytest.raises(BitrixAPIError) as exc_info:
                await bitrix_client.call("crm.status.list")

        assert exc_info.value.status_code == 503
        assert mock_post.await_count == 4
        assert no_sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_call_recovers_after_timeout(self, bitrix_client, make_response, no_sleep):
        with patch("httpx.AsyncClient") as mock_client:
            mock_post = AsyncMock(side_effect=[
                httpx.ReadTimeout("timeout"),
                make_response(200, json={"result": True}, method="POST"),
            ])
            mock_client.return_value.__aenter__.return_value.post = mock_post

            result = await bitrix_client.call("crm.lead.update", {"id": "1", "fields": {}})

        assert result is True
        assert mock_post.await_count == 2

    @pytest.mark.asyncio
    async def test_call_without_result_raises(self, bitrix_client, make_response, no_sleep):
        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=make_response(200, json={"time": {}}, method="POST")
            )

            with pytest.raises(BitrixAPIError, match="Respuesta inesperada"):
                await bitrix_client.call("crm.lead.get", {"id": "1"})

    @pytest.mark.asyncio
    async def test_get_lead_selects_all_fields(self, bitrix_client):
        bitrix_client.call = AsyncMock(return_value={"ID": "42", "TITLE": "Lead"})

        lead = await bitrix_client.get_lead("42")

        assert lead["TITLE"] == "Lead"
        bitrix_client.call.assert_awaited_once_with("crm.lead.get", {"id": "42", "select": ["*"]})

    @pytest.mark.asyncio
    async def test_get_lead_empty_result_raises(self, bitrix_client):
        bitrix_client.call = AsyncMock(return_value=[])

        with pytest.raises(BitrixAPIError, match="Lead 42 no encontrado"):
            await bitrix_client.get_lead("42")

    @pytest.mark.asyncio
    async def test_list_statuses_filters_by_entity(self, bitrix_client):
        statuses = [{"NAME": "Новый", "STATUS_ID": "NEW"}]
        bitrix_client.call = AsyncMock(return_value=statuses)

        result = await bitrix_client.list_statuses("STATUS")

        assert result == statuses
        bitrix_client.call.assert_awaited_once_with("crm.status.list", {"filter": {"ENTITY_ID": "STATUS"}})

    @pytest.mark.asyncio
    async def test_list_statuses_none_result(self, bitrix_client):
        bitrix_client.call = AsyncMock(return_value=None)

        assert await bitrix_client.list_statuses() == []

    @pytest.mark.asyncio
    async def test_update_lead(self, bitrix_client):
        bitrix_client.call = AsyncMock(return_value=True)
        fields = {"STATUS_ID": "UC_1", "NAME": "Эркин"}

        assert await bitrix_client.update_lead("42", fields) is True
        bitrix_client.call.assert_awaited_once_with("crm.lead.update", {"id": "42", "fields": fields})
