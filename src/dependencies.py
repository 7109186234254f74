"""
Dependencias para inyección en rutas FastAPI.
"""
from fastapi import Depends

from src.integrations.bitrix_client import BitrixClient, bitrix_client
from src.services.file_service import FileService, file_service
from src.services.lead_service import LeadService, lead_service
from src.services.recognition_service import RecognitionService, recognition_service
from src.services.status_service import StatusService, status_service
from src.services.webhook_service import WebhookService


def get_bitrix_client() -> BitrixClient:
    """Dependencia para obtener el cliente de Bitrix24."""
    return bitrix_client


def get_lead_service() -> LeadService:
    return lead_service


def get_file_service() -> FileService:
    """Servicio de descarga; comparte el caché de token de todo el proceso."""
    return file_service


def get_recognition_service() -> RecognitionService:
    return recognition_service


def get_status_service() -> StatusService:
    return status_service


def get_webhook_service(
    leads: LeadService = Depends(get_lead_service),
    files: FileService = Depends(get_file_service),
    recognition: RecognitionService = Depends(get_recognition_service),
    statuses: StatusService = Depends(get_status_service),
    bitrix: BitrixClient = Depends(get_bitrix_client),
) -> WebhookService:
    """
    Dependencia para obtener el orquestador del webhook.

    Returns:
        WebhookService: Servicio con sus colaboradores inyectados
    """
    return WebhookService(
        lead_service=leads,
        file_service=files,
        recognition_service=recognition,
        status_service=statuses,
        bitrix_client=bitrix,
    )
