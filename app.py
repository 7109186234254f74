#!/usr/bin/env python3
"""
Servicio de Reconocimiento de Pasaportes para Bitrix24.
Recibe el webhook del lead, reconoce las fotos del pasaporte / ID card con Mindee
y escribe los datos del titular en el lead, moviéndolo a la etapa correspondiente.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv

# Cargar variables de entorno
load_dotenv()

from src.config import settings
from src.routes.bitrix_routes import router as bitrix_router
from src.utils.error_handler import get_error_handler

# Configuración de logging
logging.basicConfig(level=settings.LOG_LEVEL.upper(), format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestiona el ciclo de vida de la aplicación FastAPI."""
    logger.info("🚀 Iniciando Servicio de Reconocimiento de Pasaportes...")

    missing_vars = settings.validate_required_vars()
    if missing_vars:
        logger.error(f"ERROR: Variables obligatorias sin configurar: {', '.join(missing_vars)}")
        raise RuntimeError("Configuración incompleta.")

    logger.info(f"🔗 Portal Bitrix24: {settings.BITRIX_DOMAIN}")
    logger.info(f"🔗 Mindee: {settings.MINDEE_BASE_URL} (modelo {settings.MINDEE_MODEL_ID})")

    yield

    logger.info("INFO: Deteniendo Servicio de Reconocimiento de Pasaportes...")


app = FastAPI(
    lifespan=lifespan,
    title="Passport Recognition Service - Bitrix24",
    description="Reconocimiento de pasaportes e ID cards adjuntos a leads de Bitrix24"
)

app.include_router(bitrix_router)


@app.get("/")
async def root():
    return {
        "service": "Passport Recognition Service - Bitrix24",
        "description": "Reconocimiento de pasaportes e ID cards adjuntos a leads de Bitrix24",
        "webhook": "/bitrix-webhook",
    }


@app.get("/health")
async def health_check():
    """Endpoint de verificación de salud con estadísticas de errores de APIs."""
    return {
        "status": "healthy",
        "service": "passport_recognition_service",
        "bitrix_configured": bool(settings.BITRIX_DOMAIN and settings.BITRIX_WEBHOOK_URL),
        "bitrix_oauth_configured": bool(settings.BITRIX_CLIENT_ID and settings.BITRIX_REFRESH_TOKEN),
        "mindee_configured": bool(settings.MINDEE_API_KEY and settings.MINDEE_MODEL_ID),
        "api_errors": get_error_handler().get_error_stats(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
