"""
Búsqueda del ID interno de una etapa del lead por su nombre visible.
"""
import logging
from typing import Optional
from src.config import settings
from src.integrations.bitrix_client import BitrixClient, BitrixAPIError, bitrix_client

logger = logging.getLogger(__name__)


class StatusService:
    """Servicio para resolver etapas del embudo de leads."""

    def __init__(self, client: Optional[BitrixClient] = None, entity_id: Optional[str] = None):
        self.client = client or bitrix_client
        self.entity_id = entity_id or settings.STATUS_ENTITY_ID

    async def get_status_id_by_name(self, status_name: str) -> Optional[str]:
        """
        Busca el STATUS_ID cuyo NAME coincide exactamente.

        Args:
            status_name (str): Nombre visible de la etapa

        Returns:
            STATUS_ID, o None si no existe o no se pudo consultar
        """
        try:
            statuses = await self.client.list_statuses(self.entity_id)
        except BitrixAPIError as e:
            logger.error(f"Error obteniendo statuses: {e}")
            return None

        for status in statuses:
            if status.get("NAME") == status_name:
                return status.get("STATUS_ID")

        logger.warning(f'Status con nombre "{status_name}" no encontrado')
        return None


# Instancia global del servicio
status_service = StatusService()
