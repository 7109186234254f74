"""
Cliente REST para la API de Bitrix24 (webhook entrante).
Obtiene leads, lista las etapas del embudo y actualiza campos del lead.
"""
import httpx
import logging
from typing import Dict, Any, List, Optional
from src.config import settings
from src.utils.error_handler import with_error_handling, RetryConfig

logger = logging.getLogger(__name__)

# Configuración de reintentos para Bitrix24
BITRIX_RETRY_CONFIG = RetryConfig(
    max_retries=3,
    base_delay=2.0,
    max_delay=30.0,
    exponential_base=2.0,
    jitter=True
)


class BitrixAPIError(Exception):
    """Excepción personalizada para errores de la API de Bitrix24."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(self.message)


class BitrixClient:
    """Cliente para interactuar con la API REST de Bitrix24."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[int] = None):
        self.webhook_url = (webhook_url or settings.BITRIX_WEBHOOK_URL).rstrip("/")
        self.timeout = timeout or settings.API_TIMEOUT

    @with_error_handling("bitrix", retry_config=BITRIX_RETRY_CONFIG, context={"operation": "call"})
    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Ejecuta un método REST de Bitrix24 y retorna el campo 'result'.

        Args:
            method (str): Nombre del método (ej. 'crm.lead.get')
            params (dict, optional): Parámetros del método

        Returns:
            El valor de 'result' de la respuesta

        Raises:
            BitrixAPIError: Si hay error en la API de Bitrix24
        """
        url = f"{self.webhook_url}/{method}.json"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=params or {}, timeout=self.timeout)

                try:
                    data = response.json()
                except ValueError:
                    data = {}

                # Bitrix responde los errores de negocio con 4xx y cuerpo {error, error_description}
                if isinstance(data, dict) and data.get("error"):
                    error_msg = f"Error en {method}: {data.get('error')} - {data.get('error_description', '')}"
                    logger.error(error_msg)
                    raise BitrixAPIError(error_msg, status_code=response.status_code, response_body=response.text)

                response.raise_for_status()

                if not isinstance(data, dict) or "result" not in data:
                    error_msg = f"Respuesta inesperada de Bitrix24 en {method}"
                    logger.error(error_msg)
                    raise BitrixAPIError(error_msg, status_code=response.status_code, response_body=response.text)

                return data["result"]

        except BitrixAPIError:
            raise
        except httpx.HTTPStatusError as e:
            error_msg = f"Error HTTP en {method}: {e.response.status_code} - {e.response.text}"
            logger.error(error_msg)
            raise BitrixAPIError(error_msg, status_code=e.response.status_code, response_body=e.response.text)
        except httpx.TimeoutException as e:
            error_msg = f"Timeout en {method}"
            logger.error(error_msg)
            raise BitrixAPIError(error_msg) from e
        except Exception as e:
            error_msg = f"Error inesperado en {method}: {str(e)}"
            logger.error(error_msg)
            raise BitrixAPIError(error_msg) from e

    async def get_lead(self, lead_id: str) -> Dict[str, Any]:
        """
        Obtiene el lead completo (todos los campos, incluidos los UF_CRM_*).

        Args:
            lead_id (str): ID numérico del lead

        Returns:
            Dict con los campos del lead

        Raises:
            BitrixAPIError: Si el lead no existe o hay error en la API
        """
        lead = await self.call("crm.lead.get", {"id": lead_id, "select": ["*"]})

        if not lead or not isinstance(lead, dict):
            error_msg = f"Lead {lead_id} no encontrado"
            logger.error(error_msg)
            raise BitrixAPIError(error_msg)

        return lead

    async def list_statuses(self, entity_id: str = "STATUS") -> List[Dict[str, Any]]:
        """
        Lista las etapas (statuses) de una entidad del CRM.

        Args:
            entity_id (str): Filtro ENTITY_ID ('STATUS' para las etapas del lead)

        Returns:
            Lista de statuses con NAME y STATUS_ID
        """
        statuses = await self.call("crm.status.list", {"filter": {"ENTITY_ID": entity_id}})
        return statuses or []

    async def update_lead(self, lead_id: str, fields: Dict[str, Any]) -> bool:
        """
        Actualiza campos de un lead.

        Args:
            lead_id (str): ID del lead
            fields (dict): Campos a actualizar

        Returns:
            bool: resultado reportado por Bitrix24
        """
        result = await self.call("crm.lead.update", {"id": lead_id, "fields": fields})
        logger.info(f"Lead {lead_id} actualizado: {', '.join(fields.keys())}")
        return bool(result)


# Instancia global del cliente
bitrix_client = BitrixClient()
