"""
Resolución del lead que disparó el webhook de Bitrix24.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from src.config import settings
from src.integrations.bitrix_client import BitrixClient, bitrix_client

logger = logging.getLogger(__name__)

LEAD_PREFIX = "LEAD_"


class LeadNotFoundError(Exception):
    """El payload del webhook no identifica un lead."""
    pass


@dataclass(frozen=True)
class LeadFile:
    """Archivo adjunto en el campo de fotos del pasaporte."""
    id: str
    show_url: str


def parse_lead_id(document_id: Optional[Sequence[Any]]) -> str:
    """
    Extrae el ID numérico del lead desde 'document_id'.

    Bitrix envía ['crm', 'CCrmDocumentLead', 'LEAD_123']; el tercer elemento
    identifica la entidad.

    Args:
        document_id: Secuencia ordenada del payload

    Returns:
        str: ID numérico del lead

    Raises:
        LeadNotFoundError: Si falta el elemento o no tiene el formato LEAD_<id>
    """
    if not isinstance(document_id, (list, tuple)) or len(document_id) < 3:
        raise LeadNotFoundError("Lead ID not found")

    lead_ref = str(document_id[2] or "").strip()
    if not lead_ref.startswith(LEAD_PREFIX):
        raise LeadNotFoundError("Lead ID not found")

    lead_id = lead_ref[len(LEAD_PREFIX):]
    if not lead_id.isdigit():
        raise LeadNotFoundError("Lead ID not found")

    return lead_id


class LeadService:
    """Servicio para obtener el lead y sus archivos de pasaporte."""

    def __init__(self, client: Optional[BitrixClient] = None, files_field: Optional[str] = None):
        self.client = client or bitrix_client
        self.files_field = files_field or settings.BITRIX_PASSPORT_FILES_FIELD

    async def resolve_lead(self, payload: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """
        Resuelve el lead del webhook y obtiene todos sus campos.

        Args:
            payload: Cuerpo del webhook ya parseado

        Returns:
            (lead_id, datos del lead)

        Raises:
            LeadNotFoundError: Si el payload no identifica un lead
            BitrixAPIError: Si falla la consulta al CRM
        """
        lead_id = parse_lead_id(payload.get("document_id"))
        lead = await self.client.get_lead(lead_id)

        logger.info(f"🆕 Procesando lead {lead_id}")
        logger.info(f"Lead TITLE: {lead.get('TITLE')}")

        return lead_id, lead

    def get_passport_files(self, lead: Dict[str, Any]) -> List[LeadFile]:
        """
        Lee el campo múltiple de archivos del lead.

        Args:
            lead: Datos del lead

        Returns:
            Lista de archivos en el orden del CRM
        """
        raw_files = lead.get(self.files_field) or []
        if isinstance(raw_files, dict):
            raw_files = [raw_files]

        files = []
        for item in raw_files:
            if not isinstance(item, dict):
                continue
            url = item.get("showUrl") or item.get("downloadUrl")
            if not url:
                logger.warning(f"Archivo {item.get('id')} sin URL de descarga, se omite")
                continue
            files.append(LeadFile(id=str(item.get("id", "")), show_url=url))

        return files


# Instancia global del servicio
lead_service = LeadService()
