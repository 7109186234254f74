"""
Módulo de integraciones con APIs externas.
"""
from .bitrix_client import BitrixClient, BitrixAPIError, bitrix_client
from .bitrix_oauth import BitrixTokenCache, BitrixOAuthError, token_cache
from .mindee_client import (
    MindeeClient,
    MindeeAPIError,
    MindeeJobFailedError,
    MindeePollTimeoutError,
    mindee_client,
)

__all__ = [
    "BitrixClient",
    "BitrixAPIError",
    "bitrix_client",
    "BitrixTokenCache",
    "BitrixOAuthError",
    "token_cache",
    "MindeeClient",
    "MindeeAPIError",
    "MindeeJobFailedError",
    "MindeePollTimeoutError",
    "mindee_client",
]
