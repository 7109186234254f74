"""
Cliente para la API v2 de Mindee (reconocimiento de documentos).

El procesamiento es asíncrono en el servidor: se encola el archivo y luego se
consulta la URL de polling a intervalo fijo hasta que el job termina.
"""
import asyncio
import httpx
import logging
from typing import Dict, Any, Optional
from src.config import settings
from src.utils.error_handler import with_error_handling, RetryConfig

logger = logging.getLogger(__name__)


class MindeeAPIError(Exception):
    """Excepción personalizada para errores de la API de Mindee."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class MindeeJobFailedError(MindeeAPIError):
    """El job terminó con estado Failed o Error."""


class MindeePollTimeoutError(MindeeAPIError):
    """Se agotaron los intentos de polling sin estado terminal."""


class MindeeClient:
    """Cliente para encolar documentos en Mindee y esperar el resultado."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: Optional[str] = None,
        base_url: Optional[str] = None,
        max_retries: Optional[int] = None,
        polling_interval: Optional[float] = None,
        initial_delay: Optional[float] = None,
        rag: Optional[bool] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key or settings.MINDEE_API_KEY
        self.model_id = model_id or settings.MINDEE_MODEL_ID
        self.base_url = (base_url or settings.MINDEE_BASE_URL).rstrip("/")
        self.max_retries = settings.MINDEE_MAX_RETRIES if max_retries is None else max_retries
        self.polling_interval = settings.MINDEE_POLLING_INTERVAL if polling_interval is None else polling_interval
        self.initial_delay = settings.MINDEE_INITIAL_DELAY if initial_delay is None else initial_delay
        self.rag = settings.MINDEE_RAG if rag is None else rag
        self.timeout = timeout or settings.API_TIMEOUT
        self.headers = {"Authorization": self.api_key}

    async def process_file(self, content: bytes, file_name: str = "document.jpg") -> Dict[str, Any]:
        """
        Procesa un archivo: lo encola, espera y consulta hasta obtener el resultado.

        Args:
            content (bytes): Contenido binario del archivo
            file_name (str): Nombre con extensión, Mindee lo usa para detectar el tipo

        Returns:
            Dict con el payload del resultado (inference)

        Raises:
            MindeeJobFailedError: Si el job termina con Failed/Error
            MindeePollTimeoutError: Si se agotan los intentos de polling
            MindeeAPIError: Para cualquier otro error de la API
        """
        if not file_name:
            raise ValueError("file_name es obligatorio para contenido binario")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                job = await self._enqueue_file(client, content, file_name)

                polling_url = job.get("polling_url")
                if not polling_url:
                    raise MindeeAPIError(f"Job sin polling_url: {job}")

                await asyncio.sleep(self.initial_delay)

                return await self._poll_for_results(client, polling_url)

        except MindeeAPIError:
            raise
        except httpx.HTTPStatusError as e:
            error_msg = f"Mindee API error: {e.response.status_code} - {e.response.text}"
            logger.error(error_msg)
            raise MindeeAPIError(error_msg, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            error_msg = f"Mindee API error: {str(e)}"
            logger.error(error_msg)
            raise MindeeAPIError(error_msg) from e

    @with_error_handling("mindee", retry_config=RetryConfig(max_retries=0), context={"operation": "enqueue"})
    async def _enqueue_file(self, client: httpx.AsyncClient, content: bytes, file_name: str) -> Dict[str, Any]:
        logger.info(f"Encolando archivo en Mindee: {file_name} ({len(content)} bytes)")

        response = await client.post(
            f"{self.base_url}/inferences/enqueue",
            data={"model_id": self.model_id, "rag": str(self.rag).lower()},
            files={"file": (file_name, content)},
            headers=self.headers,
        )
        response.raise_for_status()

        return response.json().get("job") or {}

    async def _poll_for_results(self, client: httpx.AsyncClient, polling_url: str) -> Dict[str, Any]:
        for attempt in range(self.max_retries):
            logger.info(f"Polling intento {attempt + 1}/{self.max_retries}: {polling_url}")

            poll_response = await client.get(polling_url, headers=self.headers, follow_redirects=False)
            if poll_response.status_code >= 400:
                poll_response.raise_for_status()

            poll_data = self._json_or_empty(poll_response)
            job = poll_data.get("job") or {}
            job_status = job.get("status")

            # Mindee redirige (302) al resultado cuando el job está Processed
            if poll_response.status_code == 302 or job_status == "Processed":
                result_url = job.get("result_url") or poll_response.headers.get("location")
                if not result_url:
                    raise MindeeAPIError("Job procesado sin result_url")

                logger.info(f"Procesamiento completo. Obteniendo resultado de: {result_url}")
                result_response = await client.get(result_url, headers=self.headers)
                result_response.raise_for_status()
                return result_response.json()

            if job_status in ("Failed", "Error"):
                raise MindeeJobFailedError(f"Job failed with status: {job_status}")

            await asyncio.sleep(self.polling_interval)

        raise MindeePollTimeoutError(f"Polling timed out after {self.max_retries} attempts")

    @staticmethod
    def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}


# Instancia global del cliente
mindee_client = MindeeClient()
