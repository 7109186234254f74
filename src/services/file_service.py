"""
Servicio de descarga de archivos adjuntos de Bitrix24.
"""
import re
import httpx
import logging
from typing import Optional
from src.config import settings
from src.integrations.bitrix_oauth import BitrixTokenCache, token_cache
from src.utils.error_handler import with_error_handling, RetryConfig

logger = logging.getLogger(__name__)

_AUTH_PARAM = re.compile(r"(auth=)[^&]+")


class FileDownloadError(Exception):
    """Error al descargar un archivo concreto del lead."""

    def __init__(self, message: str, file_path: str, status_code: Optional[int] = None):
        self.message = message
        self.file_path = file_path
        self.status_code = status_code
        super().__init__(self.message)


def redact_auth(url: str) -> str:
    """Oculta el token en una URL para poder registrarla en logs."""
    return _AUTH_PARAM.sub(r"\1***", url)


class FileService:
    """Resuelve rutas de descarga del portal y obtiene los bytes del archivo."""

    def __init__(
        self,
        cache: Optional[BitrixTokenCache] = None,
        domain: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.cache = cache or token_cache
        self.domain = domain or settings.BITRIX_DOMAIN
        self.timeout = timeout or settings.FILE_DOWNLOAD_TIMEOUT

    async def build_file_url(self, download_path: str) -> str:
        """
        Construye la URL absoluta de descarga.

        Las rutas que ya traen 'auth=' están pre-autenticadas y se usan tal cual;
        al resto se les agrega el access token como parámetro de query.

        Args:
            download_path (str): Ruta relativa (showUrl / downloadUrl del CRM)

        Returns:
            str: URL absoluta lista para descargar
        """
        if "auth=" in download_path:
            return f"https://{self.domain}{download_path}"

        token = await self.cache.get_token()
        separator = "&" if "?" in download_path else "?"
        return f"https://{self.domain}{download_path}{separator}auth={token}"

    @with_error_handling("bitrix_files", retry_config=RetryConfig(max_retries=0), context={"operation": "download"})
    async def download(self, download_path: str) -> bytes:
        """
        Descarga el contenido binario de un archivo.

        Args:
            download_path (str): Ruta relativa del archivo en el portal

        Returns:
            bytes: Contenido del archivo

        Raises:
            FileDownloadError: Si falla la red, hay timeout o la respuesta no es 2xx
        """
        url = await self.build_file_url(download_path)
        logger.info(f"⬇️ Descargando: {redact_auth(url)}")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=self.timeout, follow_redirects=True)
                response.raise_for_status()
                return response.content
        except httpx.HTTPStatusError as e:
            error_msg = f"Error HTTP al descargar archivo: {e.response.status_code}"
            logger.error(error_msg)
            raise FileDownloadError(error_msg, download_path, status_code=e.response.status_code) from e
        except httpx.TimeoutException as e:
            error_msg = f"Timeout ({self.timeout}s) al descargar archivo"
            logger.error(error_msg)
            raise FileDownloadError(error_msg, download_path) from e
        except httpx.HTTPError as e:
            error_msg = f"Error de red al descargar archivo: {str(e)}"
            logger.error(error_msg)
            raise FileDownloadError(error_msg, download_path) from e


# Instancia global del servicio
file_service = FileService()
