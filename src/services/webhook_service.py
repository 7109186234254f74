"""
Orquestador del webhook de Bitrix24.

Flujo por invocación:
lead -> (descarga -> reconocimiento -> merge)* por archivo -> decisión ->
etapa -> actualización del lead -> respuesta.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional
from src.config import settings
from src.integrations.bitrix_client import BitrixClient, bitrix_client as default_bitrix_client
from src.services.file_service import FileService, file_service as default_file_service
from src.services.lead_service import LeadFile, LeadNotFoundError, LeadService, lead_service as default_lead_service
from src.services.passport_service import IdentityRecord, merge
from src.services.recognition_service import (
    DocumentKind,
    RecognitionService,
    recognition_service as default_recognition_service,
)
from src.services.status_service import StatusService, status_service as default_status_service
from src.utils.transliteration import latin_to_cyrillic

logger = logging.getLogger(__name__)


class LeadDecision(Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


class StopReason(Enum):
    EXHAUSTED = "exhausted"
    PASSPORT_FOUND = "passport_found"
    ALL_FIELDS_FILLED = "all_fields_filled"


@dataclass
class PassportProcessingResult:
    """Resumen de lo que se hizo con un lead."""
    lead_id: str
    record: IdentityRecord
    decision: LeadDecision
    stop_reason: StopReason
    files_total: int = 0
    files_processed: int = 0
    file_errors: Dict[str, str] = field(default_factory=dict)
    status_id: Optional[str] = None
    lead_updated: bool = False


class WebhookService:
    """Servicio que procesa los webhooks de Bitrix24 de punta a punta."""

    def __init__(
        self,
        lead_service: Optional[LeadService] = None,
        file_service: Optional[FileService] = None,
        recognition_service: Optional[RecognitionService] = None,
        status_service: Optional[StatusService] = None,
        bitrix_client: Optional[BitrixClient] = None,
    ):
        self.lead_service = lead_service or default_lead_service
        self.file_service = file_service or default_file_service
        self.recognition_service = recognition_service or default_recognition_service
        self.status_service = status_service or default_status_service
        self.bitrix = bitrix_client or default_bitrix_client

    async def handle_webhook(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Procesa un webhook y arma la respuesta.

        Cualquier error después de resolver el lead se registra y se devuelve
        en el cuerpo con success=True, para que Bitrix no reintente el envío.

        Args:
            payload: Cuerpo del webhook (JSON o form ya parseado)

        Returns:
            {"success": True} o {"success": True, "error": "..."}

        Raises:
            LeadNotFoundError: Si el payload no identifica un lead
        """
        try:
            lead_id, lead = await self.lead_service.resolve_lead(payload)
            await self.process_lead(lead_id, lead)
        except LeadNotFoundError:
            raise
        except Exception as e:
            logger.error(f"❌ Error en el handler del webhook: {e}", exc_info=True)
            return {"success": True, "error": str(e)}

        return {"success": True}

    async def process_lead(self, lead_id: str, lead: Dict[str, Any]) -> PassportProcessingResult:
        """
        Recorre los archivos del lead, consolida los datos y actualiza el CRM.

        Args:
            lead_id: ID del lead
            lead: Datos completos del lead

        Returns:
            PassportProcessingResult
        """
        files = self.lead_service.get_passport_files(lead)
        logger.info(f"📄 {len(files)} archivos de pasaporte en el lead {lead_id}")

        result = await self._collect_identity(lead_id, files)
        record = result.record

        if result.decision is LeadDecision.INCOMPLETE:
            if not files:
                logger.info("No se encontraron imágenes de pasaporte")
            else:
                logger.info(f"Campos faltantes al final: {', '.join(record.missing_fields())}")

            status_name = settings.STATUS_NAME_NEEDS_CORRECTION
            fields: Dict[str, Any] = {}
        else:
            logger.info(f"✅ Todos los campos del pasaporte completos: {record}")
            status_name = settings.STATUS_NAME_VERIFIED
            fields = build_lead_fields(record)

        result.status_id = await self.status_service.get_status_id_by_name(status_name)
        if not result.status_id:
            logger.error(f'No se encontró el status "{status_name}", el lead {lead_id} no se actualiza')
        else:
            fields["STATUS_ID"] = result.status_id
            result.lead_updated = await self.bitrix.update_lead(lead_id, fields)
            logger.info(f"Lead {lead_id} movido a '{status_name}' ({result.status_id})")

        logger.info(f"🔚 Fin del procesamiento del lead {lead_id}")
        return result

    async def _collect_identity(self, lead_id: str, files: List[LeadFile]) -> PassportProcessingResult:
        record = IdentityRecord()
        stop_reason = StopReason.EXHAUSTED
        processed = 0
        file_errors: Dict[str, str] = {}

        for lead_file in files:
            try:
                content = await self.file_service.download(lead_file.show_url)
                extraction = await self.recognition_service.recognize(content)
            except Exception as e:
                # El archivo no aporta nada; se sigue con el siguiente
                logger.error(f"Error en el archivo {lead_file.id} del lead {lead_id}: {e}")
                file_errors[lead_file.id] = str(e)
                continue

            record = merge(record, extraction)
            processed += 1

            if extraction.document_kind is DocumentKind.PASSPORT:
                stop_reason = StopReason.PASSPORT_FOUND
                break

            if record.is_complete:
                logger.info("Todos los datos han sido llenados")
                stop_reason = StopReason.ALL_FIELDS_FILLED
                break

        return PassportProcessingResult(
            lead_id=lead_id,
            record=record,
            decision=LeadDecision.COMPLETE if record.is_complete else LeadDecision.INCOMPLETE,
            stop_reason=stop_reason,
            files_total=len(files),
            files_processed=processed,
            file_errors=file_errors,
        )


def build_lead_fields(record: IdentityRecord) -> Dict[str, Any]:
    """Mapea el registro consolidado a los campos del lead en Bitrix24."""
    return {
        settings.FIELD_DOCUMENT_NUMBER: record.document_number,
        settings.FIELD_ISSUE_DATE: record.issue_date,
        settings.FIELD_PERSONAL_IDENTIFIER: record.personal_identifier,
        "NAME": latin_to_cyrillic(record.given_name),
        "LAST_NAME": latin_to_cyrillic(record.surname),
        "SECOND_NAME": latin_to_cyrillic(record.patronymic),
        "BIRTHDATE": record.birth_date,
        settings.FIELD_BIRTH_PLACE: latin_to_cyrillic(record.birth_place),
        settings.FIELD_MRZ: record.mrz_text,
    }
