"""
Sistema centralizado de manejo de errores para APIs externas.
Proporciona logging estructurado, retry logic y circuit breaker por API.
"""

import asyncio
import logging
import random
import time
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from functools import wraps
import httpx

# Configurar logger específico para errores de API
logger = logging.getLogger(__name__)


class APIErrorSeverity(Enum):
    """Niveles de severidad para errores de API."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class APIErrorType(Enum):
    """Tipos de errores de API."""
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"
    AUTHENTICATION_ERROR = "authentication_error"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    UNKNOWN_ERROR = "unknown_error"
    VALIDATION_ERROR = "validation_error"


@dataclass
class APIError:
    """Estructura para representar errores de API."""
    api_name: str
    error_type: APIErrorType
    severity: APIErrorSeverity
    message: str
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    retry_count: int = 0
    max_retries: int = 3
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RetryConfig:
    """Configuración para reintentos."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True


class APIErrorHandler:
    """Manejador centralizado de errores para APIs externas."""

    def __init__(self):
        """Inicializa el manejador de errores."""
        self.error_history: List[APIError] = []
        self.circuit_breakers: Dict[str, Dict[str, Any]] = {}
        self.default_retry_config = RetryConfig()

    def classify_error(
        self,
        exception: Exception,
        api_name: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None
    ) -> APIError:
        """
        Clasifica un error y determina su tipo y severidad.

        Args:
            exception: La excepción capturada
            api_name: Nombre de la API que falló
            status_code: Código de estado HTTP (si aplica)
            response_body: Cuerpo de la respuesta (si aplica)

        Returns:
            APIError clasificado
        """
        error_type = APIErrorType.UNKNOWN_ERROR
        severity = APIErrorSeverity.MEDIUM
        message = str(exception)
        # Las integraciones envuelven los errores de httpx en su propia excepción
        cause = exception.__cause__ or exception

        if isinstance(cause, (httpx.TimeoutException, asyncio.TimeoutError)):
            error_type = APIErrorType.TIMEOUT
            severity = APIErrorSeverity.MEDIUM

        elif isinstance(cause, (httpx.ConnectError, ConnectionError)):
            error_type = APIErrorType.CONNECTION_ERROR
            severity = APIErrorSeverity.HIGH

        elif status_code:
            # Nuestras excepciones de integración llevan el status_code de la respuesta
            error_type = APIErrorType.HTTP_ERROR
            if status_code == 401:
                error_type = APIErrorType.AUTHENTICATION_ERROR
                severity = APIErrorSeverity.HIGH
            elif status_code == 429:
                error_type = APIErrorType.RATE_LIMIT
                severity = APIErrorSeverity.MEDIUM
            elif 400 <= status_code < 500:
                error_type = APIErrorType.CLIENT_ERROR
                severity = APIErrorSeverity.LOW
            elif 500 <= status_code < 600:
                error_type = APIErrorType.SERVER_ERROR
                severity = APIErrorSeverity.HIGH

        elif isinstance(exception, ValueError):
            error_type = APIErrorType.VALIDATION_ERROR
            severity = APIErrorSeverity.LOW

        # El CRM es crítico: sin él no se puede cerrar el lead
        if api_name.lower() == "bitrix" and severity == APIErrorSeverity.HIGH:
            severity = APIErrorSeverity.CRITICAL

        return APIError(
            api_name=api_name,
            error_type=error_type,
            severity=severity,
            message=message,
            status_code=status_code,
            response_body=response_body[:500] if response_body else None  # Limitar tamaño
        )

    def should_retry(self, error: APIError) -> bool:
        """
        Determina si un error debe ser reintentado.

        Args:
            error: El error a evaluar

        Returns:
            True si debe reintentarse
        """
        # No reintentar errores de autenticación o validación
        if error.error_type in [APIErrorType.AUTHENTICATION_ERROR, APIErrorType.VALIDATION_ERROR]:
            return False

        # No reintentar errores de cliente (4xx excepto 429)
        if error.error_type == APIErrorType.CLIENT_ERROR:
            return False

        if error.retry_count >= error.max_retries:
            return False

        if self._is_circuit_breaker_open(error.api_name):
            return False

        return True

    def calculate_retry_delay(self, retry_count: int, config: RetryConfig) -> float:
        """
        Calcula el delay para el siguiente reintento.

        Args:
            retry_count: Número de reintentos realizados
            config: Configuración de reintentos

        Returns:
            Delay en segundos
        """
        delay = config.base_delay * (config.exponential_base ** retry_count)
        delay = min(delay, config.max_delay)

        if config.jitter:
            delay *= (0.5 + random.random() * 0.5)  # Jitter del 50%

        return delay

    def log_error(self, error: APIError, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Registra un error en los logs con el nivel apropiado.

        Args:
            error: El error a registrar
            context: Contexto adicional
        """
        if context:
            error.context.update(context)

        self.error_history.append(error)

        # Mantener solo los últimos 1000 errores
        if len(self.error_history) > 1000:
            self.error_history = self.error_history[-1000:]

        log_data = {
            "api_name": error.api_name,
            "error_type": error.error_type.value,
            "severity": error.severity.value,
            "error_message": error.message,
            "status_code": error.status_code,
            "retry_count": error.retry_count,
            "timestamp": error.timestamp.isoformat(),
            "context": error.context
        }

        if error.severity == APIErrorSeverity.CRITICAL:
            logger.critical(f"API Error - {error.api_name}: {error.message}", extra=log_data)
        elif error.severity == APIErrorSeverity.HIGH:
            logger.error(f"API Error - {error.api_name}: {error.message}", extra=log_data)
        elif error.severity == APIErrorSeverity.MEDIUM:
            logger.warning(f"API Error - {error.api_name}: {error.message}", extra=log_data)
        else:
            logger.info(f"API Error - {error.api_name}: {error.message}", extra=log_data)

        self._update_circuit_breaker(error.api_name, success=False)

    def log_success(self, api_name: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Registra una operación exitosa para resetear circuit breakers.

        Args:
            api_name: Nombre de la API
            context: Contexto adicional
        """
        self._update_circuit_breaker(api_name, success=True)

        if context:
            logger.debug(f"API Success - {api_name}", extra=context)

    def _is_circuit_breaker_open(self, api_name: str) -> bool:
        """Verifica si el circuit breaker está abierto para una API."""
        if api_name not in self.circuit_breakers:
            return False

        breaker = self.circuit_breakers[api_name]

        if breaker["is_open"]:
            if datetime.now() > breaker["open_until"]:
                breaker["is_open"] = False
                breaker["failure_count"] = 0
                logger.info(f"Circuit breaker reset for {api_name}")
                return False
            return True

        return False

    def _update_circuit_breaker(self, api_name: str, success: bool) -> None:
        """Actualiza el estado del circuit breaker."""
        if api_name not in self.circuit_breakers:
            self.circuit_breakers[api_name] = {
                "failure_count": 0,
                "is_open": False,
                "open_until": None,
                "last_failure": None
            }

        breaker = self.circuit_breakers[api_name]

        if success:
            breaker["failure_count"] = 0
        else:
            breaker["failure_count"] += 1
            breaker["last_failure"] = datetime.now()

            # Abrir circuit breaker después de 5 fallos consecutivos
            if breaker["failure_count"] >= 5:
                breaker["is_open"] = True
                breaker["open_until"] = datetime.now() + timedelta(minutes=5)
                logger.warning(f"Circuit breaker opened for {api_name} - too many failures")

    def get_error_stats(self, api_name: Optional[str] = None, hours: int = 24) -> Dict[str, Any]:
        """
        Obtiene estadísticas de errores.

        Args:
            api_name: Filtrar por API específica
            hours: Horas hacia atrás para analizar

        Returns:
            Estadísticas de errores
        """
        cutoff_time = datetime.now() - timedelta(hours=hours)

        errors = [
            e for e in self.error_history
            if e.timestamp > cutoff_time and (not api_name or e.api_name == api_name)
        ]

        if not errors:
            return {"total_errors": 0, "apis": {}, "error_types": {}, "severities": {}}

        apis: Dict[str, int] = {}
        error_types: Dict[str, int] = {}
        severities: Dict[str, int] = {}
        for error in errors:
            apis[error.api_name] = apis.get(error.api_name, 0) + 1
            error_types[error.error_type.value] = error_types.get(error.error_type.value, 0) + 1
            severities[error.severity.value] = severities.get(error.severity.value, 0) + 1

        return {
            "total_errors": len(errors),
            "apis": apis,
            "error_types": error_types,
            "severities": severities,
            "circuit_breakers": {
                name: {
                    "failure_count": breaker["failure_count"],
                    "is_open": breaker["is_open"],
                }
                for name, breaker in self.circuit_breakers.items()
                if breaker["failure_count"] > 0 or breaker["is_open"]
            }
        }


def with_error_handling(
    api_name: str,
    retry_config: Optional[RetryConfig] = None,
    context: Optional[Dict[str, Any]] = None
):
    """
    Decorador para agregar manejo de errores automático a funciones async de API.

    Args:
        api_name: Nombre de la API
        retry_config: Configuración de reintentos
        context: Contexto adicional para logging
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            error_handler = get_error_handler()
            config = retry_config or error_handler.default_retry_config
            start_time = time.time()

            for attempt in range(config.max_retries + 1):
                try:
                    result = await func(*args, **kwargs)

                    response_time = time.time() - start_time
                    error_handler.log_success(
                        api_name,
                        {**(context or {}), 'response_time': response_time, 'attempt': attempt + 1}
                    )
                    return result

                except Exception as e:
                    response_time = time.time() - start_time

                    status_code = getattr(e, 'status_code', None)
                    response_body = getattr(e, 'response_body', None)
                    if isinstance(e, httpx.HTTPStatusError):
                        status_code = e.response.status_code
                        response_body = e.response.text

                    error = error_handler.classify_error(e, api_name, status_code, response_body)
                    error.retry_count = attempt
                    error.max_retries = config.max_retries

                    error_handler.log_error(
                        error,
                        {**(context or {}), 'response_time': response_time, 'attempt': attempt + 1}
                    )

                    if attempt < config.max_retries and error_handler.should_retry(error):
                        delay = error_handler.calculate_retry_delay(attempt, config)
                        logger.info(f"Retrying {api_name} in {delay:.2f}s (attempt {attempt + 1}/{config.max_retries})")
                        await asyncio.sleep(delay)
                        continue
                    raise

        return async_wrapper

    return decorator


# Instancia global del manejador de errores
_error_handler: Optional[APIErrorHandler] = None


def get_error_handler() -> APIErrorHandler:
    """Obtiene la instancia global del manejador de errores."""
    global _error_handler
    if _error_handler is None:
        _error_handler = APIErrorHandler()
    return _error_handler


def reset_error_handler() -> None:
    """Resetea el manejador de errores (útil para tests)."""
    global _error_handler
    _error_handler = None
