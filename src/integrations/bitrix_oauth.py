"""
Caché del access token OAuth de Bitrix24.

El token se usa para descargar los archivos adjuntos del lead y se obtiene
intercambiando un refresh token fijo. Se reutiliza hasta poco antes de expirar.
"""
import time
import httpx
import logging
from dataclasses import dataclass
from typing import Callable, Optional
from src.config import settings
from src.utils.error_handler import with_error_handling, RetryConfig

logger = logging.getLogger(__name__)


class BitrixOAuthError(Exception):
    """Excepción para fallos en el intercambio del refresh token."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


@dataclass(frozen=True)
class AccessToken:
    """Token de acceso cacheado y su instante de expiración (epoch, segundos)."""
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class BitrixTokenCache:
    """
    Caché de proceso para el access token de Bitrix24.

    No usa lock: dos requests concurrentes pueden refrescar a la vez y gana la
    última escritura. Los tokens son intercambiables mientras ambos sigan vigentes.
    """

    def __init__(
        self,
        oauth_url: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        safety_margin: Optional[int] = None,
        timeout: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.oauth_url = oauth_url or settings.BITRIX_OAUTH_URL
        self.client_id = client_id or settings.BITRIX_CLIENT_ID
        self.client_secret = client_secret or settings.BITRIX_CLIENT_SECRET
        self.refresh_token = refresh_token or settings.BITRIX_REFRESH_TOKEN
        self.safety_margin = settings.TOKEN_SAFETY_MARGIN if safety_margin is None else safety_margin
        self.timeout = timeout or settings.API_TIMEOUT
        self._clock = clock
        self._token: Optional[AccessToken] = None

    async def get_token(self) -> str:
        """
        Retorna el access token cacheado o uno nuevo si expiró.

        Returns:
            str: access token vigente

        Raises:
            BitrixOAuthError: Si el intercambio del refresh token falla
        """
        token = self._token
        if token and token.is_valid(self._clock()):
            logger.debug("Token cacheado utilizado")
            return token.value

        return await self._refresh()

    @with_error_handling("bitrix_oauth", retry_config=RetryConfig(max_retries=0), context={"operation": "refresh_token"})
    async def _refresh(self) -> str:
        params = {
            "grant_type": "refresh_token",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.oauth_url, data=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            error_msg = f"Error HTTP al renovar token de Bitrix24: {e.response.status_code} - {e.response.text}"
            logger.error(error_msg)
            raise BitrixOAuthError(error_msg, status_code=e.response.status_code) from e
        except (httpx.HTTPError, ValueError) as e:
            error_msg = f"Error al renovar token de Bitrix24: {str(e)}"
            logger.error(error_msg)
            raise BitrixOAuthError(error_msg) from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            error_msg = f"Respuesta OAuth sin access_token: {data.get('error') if isinstance(data, dict) else data}"
            logger.error(error_msg)
            raise BitrixOAuthError(error_msg)

        expires_in = int(data.get("expires_in", 0))
        # Se reemplaza el token entero, nunca se modifica en sitio
        self._token = AccessToken(
            value=access_token,
            expires_at=self._clock() + (expires_in - self.safety_margin),
        )

        logger.info(f"🔑 Nuevo token de Bitrix24 recibido (expira en {expires_in}s)")
        return access_token


# Instancia global compartida por todas las descargas
token_cache = BitrixTokenCache()
