"""
Configuración de pytest y fixtures comunes para las pruebas.
"""

import pytest
import httpx
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, Mock, patch

from src.integrations.bitrix_client import BitrixClient
from src.services.recognition_service import DocumentKind, ExtractionResult
from src.utils.error_handler import reset_error_handler


@pytest.fixture(autouse=True)
def clean_error_handler():
    """Cada prueba arranca con historial y circuit breakers vacíos."""
    reset_error_handler()
    yield
    reset_error_handler()


@pytest.fixture
def no_sleep():
    """Evita las esperas reales de reintentos y polling."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def make_response():
    """Fábrica de respuestas httpx reales (raise_for_status necesita el request)."""
    def _make(
        status_code: int = 200,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        method: str = "GET",
        url: str = "https://example.test/",
    ) -> httpx.Response:
        kwargs: Dict[str, Any] = {"headers": headers or {}}
        if json is not None:
            kwargs["json"] = json
        elif content is not None:
            kwargs["content"] = content
        return httpx.Response(status_code, request=httpx.Request(method, url), **kwargs)

    return _make


@pytest.fixture
def mock_bitrix_client():
    """Mock del cliente de Bitrix24."""
    client = Mock(spec=BitrixClient)
    client.get_lead = AsyncMock()
    client.list_statuses = AsyncMock(return_value=[])
    client.update_lead = AsyncMock(return_value=True)
    return client


@pytest.fixture
def sample_lead() -> Dict[str, Any]:
    """Lead de ejemplo con dos fotos en el campo de pasaporte."""
    return {
        "ID": "42",
        "TITLE": "Ali Valiyev - kredit",
        "STATUS_ID": "NEW",
        "UF_CRM_1732877852": [
            {"id": 101, "showUrl": "/bitrix/components/bitrix/crm.lead.show/show_file.php?fileId=101"},
            {"id": 102, "showUrl": "/bitrix/components/bitrix/crm.lead.show/show_file.php?fileId=102"},
        ],
    }


@pytest.fixture
def passport_extraction() -> ExtractionResult:
    """Pasaporte uzbeko con todos los campos reconocidos."""
    return ExtractionResult(
        document_kind=DocumentKind.PASSPORT,
        document_number="AB1234567",
        issue_date="2019-05-14",
        surname="ABDULLAYEV",
        given_name="ERKIN",
        patronymic="ANVAROVICH",
        birth_date="1990-01-01",
        birth_place="TOSHKENT",
        mrz_lines="AB12345674UZB9001011M2905148" + "31234567890123" + "<2",
        mrz_text="P<UZBABDULLAYEV<<ERKIN<<<<<<<<<<<<<<<<<<<<<<",
    )


@pytest.fixture
def id_card_front() -> ExtractionResult:
    """Frente de la ID card: trae patronímico, número y fechas."""
    return ExtractionResult(
        document_kind=DocumentKind.NATIONAL_ID,
        document_number="AD7654321",
        issue_date="2021-03-10",
        surname="G'ULOMOVA",
        given_name="MALIKA",
        patronymic="SHOXRUXOVNA",
        birth_date="1995-07-20",
        birth_place="SAMARQAND",
    )


@pytest.fixture
def id_card_back() -> ExtractionResult:
    """Reverso de la ID card: identificador personal y MRZ, sin patronímico."""
    return ExtractionResult(
        document_kind=DocumentKind.NATIONAL_ID,
        document_number="BACK000000",
        issue_date="2000-01-01",
        birth_date="2000-01-01",
        personal_number="42007951230011",
        mrz_text="IUUZBAD76543214420079512300116",
    )
