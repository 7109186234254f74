"""
Servicio de reconocimiento de pasaportes e ID cards.
Convierte el resultado de Mindee en un ExtractionResult tipado.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional
from src.integrations.mindee_client import MindeeClient, mindee_client

logger = logging.getLogger(__name__)


class RecognitionError(Exception):
    """El resultado de reconocimiento no tiene la estructura esperada."""
    pass


class DocumentKind(Enum):
    """Tipos de documento que reporta el modelo."""
    PASSPORT = "Passport"
    NATIONAL_ID = "National ID"
    OTHER = "Other"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "DocumentKind":
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.OTHER


@dataclass(frozen=True)
class ExtractionResult:
    """Campos extraídos de una imagen. Vacío ("") significa que el modelo no lo encontró."""
    document_kind: DocumentKind
    document_number: str = ""
    issue_date: str = ""
    surname: str = ""
    given_name: str = ""
    patronymic: str = ""
    birth_date: str = ""
    birth_place: str = ""
    mrz_lines: str = ""
    mrz_text: str = ""
    personal_number: str = ""

    @classmethod
    def from_fields(cls, fields: Dict[str, Any]) -> "ExtractionResult":
        """
        Construye el resultado a partir de 'inference.result.fields' de Mindee.

        Args:
            fields: Dict {nombre_campo: {"value": ...}}
        """
        return cls(
            document_kind=DocumentKind.from_value(_field_value(fields, "document_type")),
            document_number=_field_value(fields, "document_number"),
            issue_date=_field_value(fields, "date_of_issue"),
            surname=_field_value(fields, "surnames"),
            given_name=_field_value(fields, "given_names"),
            patronymic=_field_value(fields, "patronymic"),
            birth_date=_field_value(fields, "date_of_birth"),
            birth_place=_field_value(fields, "place_of_birth"),
            mrz_lines=_field_value(fields, "mrz_lines"),
            mrz_text=_field_value(fields, "mrz"),
            personal_number=_field_value(fields, "personal_number"),
        )


def _field_value(fields: Dict[str, Any], name: str) -> str:
    field = fields.get(name)
    if not isinstance(field, dict):
        return ""
    value = field.get("value")
    if value is None:
        return ""
    return str(value).strip()


class RecognitionService:
    """Servicio que envía imágenes a Mindee y normaliza la respuesta."""

    def __init__(self, client: Optional[MindeeClient] = None):
        self.client = client or mindee_client

    async def recognize(self, content: bytes, file_name: str = "document.jpg") -> ExtractionResult:
        """
        Reconoce un documento.

        Args:
            content (bytes): Imagen del documento
            file_name (str): Nombre del archivo enviado a Mindee

        Returns:
            ExtractionResult con el tipo de documento y sus campos

        Raises:
            MindeeAPIError: Si el job falla, expira el polling o la API responde con error
            RecognitionError: Si el payload no trae 'inference.result.fields'
        """
        payload = await self.client.process_file(content, file_name)

        try:
            fields = payload["inference"]["result"]["fields"]
        except (KeyError, TypeError) as e:
            raise RecognitionError(f"Resultado de Mindee sin campos: {e}") from e

        if not isinstance(fields, dict):
            raise RecognitionError("Resultado de Mindee con campos inválidos")

        result = ExtractionResult.from_fields(fields)
        logger.info(f"📄 Documento reconocido: {result.document_kind.value}")
        logger.debug(f"Campos extraídos: {fields}")
        return result


# Instancia global del servicio
recognition_service = RecognitionService()
