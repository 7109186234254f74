"""
Consolidación de los datos del pasaporte a partir de varios documentos.

Cada imagen del lead produce un ExtractionResult; este módulo los combina en un
único IdentityRecord. Un campo ya lleno nunca se sobrescribe: gana el primer
documento (en el orden de los archivos) que lo aporta.
"""
import logging
from dataclasses import dataclass, fields, replace
from typing import Callable, List, Optional, Tuple
from src.services.recognition_service import DocumentKind, ExtractionResult

logger = logging.getLogger(__name__)

PINFL_LENGTH = 14
MRZ_CHECK_SUFFIX = 2  # dígito de control + dígito compuesto al final de la línea 2


def extract_personal_identifier(mrz_line2: Optional[str]) -> Optional[str]:
    """
    Extrae el PINFL (identificador personal) de la segunda línea del MRZ.

    Son los 14 caracteres que terminan 2 posiciones antes del final de la línea.

    Args:
        mrz_line2: Segunda línea del MRZ

    Returns:
        "" si la línea está vacía, None si es demasiado corta (< 16), o el PINFL
    """
    if not mrz_line2:
        return ""

    if len(mrz_line2) < PINFL_LENGTH + MRZ_CHECK_SUFFIX:
        return None

    return mrz_line2[-(PINFL_LENGTH + MRZ_CHECK_SUFFIX):-MRZ_CHECK_SUFFIX]


@dataclass(frozen=True)
class IdentityRecord:
    """Datos consolidados del titular. "" significa campo sin llenar."""
    document_number: str = ""
    issue_date: str = ""
    personal_identifier: str = ""
    surname: str = ""
    given_name: str = ""
    patronymic: str = ""
    birth_date: str = ""
    birth_place: str = ""
    mrz_text: str = ""

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if not getattr(self, f.name)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


Extractor = Callable[[ExtractionResult], str]


def _front_side_only(extractor: Extractor) -> Extractor:
    # En la ID card solo el frente (el lado con patronímico) es fiable para estos campos
    def extract(extraction: ExtractionResult) -> str:
        return extractor(extraction) if extraction.patronymic else ""
    return extract


PASSPORT_SOURCES: Tuple[Tuple[str, Extractor], ...] = (
    ("document_number", lambda e: e.document_number),
    ("issue_date", lambda e: e.issue_date),
    ("personal_identifier", lambda e: extract_personal_identifier(e.mrz_lines) or ""),
    ("surname", lambda e: e.surname),
    ("given_name", lambda e: e.given_name),
    ("patronymic", lambda e: e.patronymic),
    ("birth_date", lambda e: e.birth_date),
    ("birth_place", lambda e: e.birth_place),
    ("mrz_text", lambda e: e.mrz_text),
)

NATIONAL_ID_SOURCES: Tuple[Tuple[str, Extractor], ...] = (
    ("document_number", _front_side_only(lambda e: e.document_number)),
    ("issue_date", _front_side_only(lambda e: e.issue_date)),
    ("personal_identifier", lambda e: e.personal_number),
    ("surname", lambda e: e.surname),
    ("given_name", lambda e: e.given_name),
    ("patronymic", lambda e: e.patronymic),
    ("birth_date", _front_side_only(lambda e: e.birth_date)),
    ("birth_place", lambda e: e.birth_place),
    ("mrz_text", lambda e: e.mrz_text),
)

SOURCES_BY_KIND = {
    DocumentKind.PASSPORT: PASSPORT_SOURCES,
    DocumentKind.NATIONAL_ID: NATIONAL_ID_SOURCES,
}


def merge(record: IdentityRecord, extraction: ExtractionResult) -> IdentityRecord:
    """
    Combina un resultado de extracción en el registro acumulado.

    Solo se llenan los campos que siguen vacíos; los documentos de tipo
    desconocido no aportan nada.

    Args:
        record: Registro acumulado hasta ahora
        extraction: Resultado del documento actual

    Returns:
        Nuevo IdentityRecord (el original no se modifica)
    """
    sources = SOURCES_BY_KIND.get(extraction.document_kind)
    if sources is None:
        logger.info("Documento no es PASAPORTE ni ID CARD, se ignora")
        return record

    if extraction.document_kind is DocumentKind.NATIONAL_ID and extraction.patronymic:
        logger.info("🙌 ID card: lado frontal detectado")

    updates = {}
    for field_name, extractor in sources:
        if getattr(record, field_name):
            continue
        value = extractor(extraction)
        if value:
            updates[field_name] = value

    return replace(record, **updates) if updates else record
