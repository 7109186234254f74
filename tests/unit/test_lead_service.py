"""
Pruebas unitarias para LeadService.
"""

import pytest

from src.integrations.bitrix_client import BitrixAPIError
from src.services.lead_service import LeadFile, LeadNotFoundError, LeadService, parse_lead_id

pytestmark = pytest.mark.unit

FILES_FIELD = "UF_CRM_1732877852"


@pytest.fixture
def lead_service(mock_bitrix_client):
    return LeadService(client=mock_bitrix_client, files_field=FILES_FIELD)


class TestParseLeadId:

    def test_valid_document_id(self):
        assert parse_lead_id(["crm", "CCrmDocumentLead", "LEAD_42"]) == "42"

    def test_tuple_is_accepted(self):
        assert parse_lead_id(("crm", "CCrmDocumentLead", "LEAD_7")) == "7"

    @pytest.mark.parametrize("document_id", [
        None,
        "LEAD_42",
        [],
        ["crm", "CCrmDocumentLead"],
        ["crm", "CCrmDocumentDeal", "DEAL_42"],
        ["crm", "CCrmDocumentLead", "LEAD_"],
        ["crm", "CCrmDocumentLead", "LEAD_abc"],
        ["crm", "CCrmDocumentLead", None],
    ])
    def test_invalid_document_id(self, document_id):
        with pytest.raises(LeadNotFoundError, match="Lead ID not found"):
            parse_lead_id(document_id)


class TestResolveLead:

    @pytest.mark.asyncio
    async def test_resolve_lead(self, lead_service, mock_bitrix_client, sample_lead):
        mock_bitrix_client.get_lead.return_value = sample_lead

        lead_id, lead = await lead_service.resolve_lead(
            {"document_id": ["crm", "CCrmDocumentLead", "LEAD_42"]}
        )

        assert lead_id == "42"
        assert lead is sample_lead
        mock_bitrix_client.get_lead.assert_awaited_once_with("42")

    @pytest.mark.asyncio
    async def test_missing_document_id_skips_crm(self, lead_service, mock_bitrix_client):
        with pytest.raises(LeadNotFoundError):
            await lead_service.resolve_lead({"event": "ONBIZPROC"})

        mock_bitrix_client.get_lead.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_crm_error_propagates(self, lead_service, mock_bitrix_client):
        mock_bitrix_client.get_lead.side_effect = BitrixAPIError("Lead 42 no encontrado")

        with pytest.raises(BitrixAPIError):
            await lead_service.resolve_lead({"document_id": ["crm", "CCrmDocumentLead", "LEAD_42"]})


class TestGetPassportFiles:

    def test_files_in_crm_order(self, lead_service, sample_lead):
        files = lead_service.get_passport_files(sample_lead)

        assert files == [
            LeadFile(id="101", show_url=sample_lead[FILES_FIELD][0]["showUrl"]),
            LeadFile(id="102", show_url=sample_lead[FILES_FIELD][1]["showUrl"]),
        ]

    def test_download_url_fallback(self, lead_service):
        lead = {FILES_FIELD: [{"id": 5, "downloadUrl": "/rest/download.json?auth=x"}]}

        assert lead_service.get_passport_files(lead) == [LeadFile(id="5", show_url="/rest/download.json?auth=x")]

    def test_single_file_as_dict(self, lead_service):
        lead = {FILES_FIELD: {"id": 9, "showUrl": "/show_file.php?fileId=9"}}

        assert lead_service.get_passport_files(lead) == [LeadFile(id="9", show_url="/show_file.php?fileId=9")]

    @pytest.mark.parametrize("value", [None, "", False, []])
    def test_empty_field(self, lead_service, value):
        assert lead_service.get_passport_files({FILES_FIELD: value}) == []

    def test_missing_field(self, lead_service):
        assert lead_service.get_passport_files({"ID": "42"}) == []

    def test_items_without_url_are_skipped(self, lead_service):
        lead = {FILES_FIELD: [{"id": 1}, "garbage", {"id": 2, "showUrl": "/show_file.php?fileId=2"}]}

        assert lead_service.get_passport_files(lead) == [LeadFile(id="2", show_url="/show_file.php?fileId=2")]
