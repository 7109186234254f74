"""
Rutas para los webhooks de Bitrix24.
"""
import hmac
import json
import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from src.config import settings
from src.dependencies import get_webhook_service
from src.services.lead_service import LeadNotFoundError
from src.services.webhook_service import WebhookService
from src.utils.form_payload import parse_bracketed_form

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bitrix24"])


class WebhookResponse(BaseModel):
    """Respuesta del webhook de Bitrix24."""
    success: bool = Field(..., description="Siempre True una vez identificado el lead")
    error: Optional[str] = Field(None, description="Detalle del error interno, solo para observabilidad")


async def read_webhook_payload(request: Request) -> Dict[str, Any]:
    """
    Lee el cuerpo del webhook en JSON o x-www-form-urlencoded.

    Returns:
        Dict con el payload; vacío si el cuerpo no se puede interpretar
    """
    content_type = request.headers.get("content-type", "")

    if "application/json" in content_type:
        try:
            data = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.error("ERROR: JSON inválido recibido")
            return {}
        return data if isinstance(data, dict) else {}

    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException, ValueError) as e:
        logger.error(f"ERROR: Formulario inválido recibido: {e}")
        return {}
    return parse_bracketed_form(form.multi_items())


def validate_application_token(payload: Dict[str, Any], expected: Optional[str]) -> bool:
    """
    Valida el application_token que Bitrix24 envía en 'auth'.

    Si no hay token configurado la validación queda deshabilitada.
    """
    if not expected:
        return True

    auth = payload.get("auth")
    received = auth.get("application_token") if isinstance(auth, dict) else None
    if not received:
        logger.error("❌ Webhook sin auth[application_token]")
        return False

    return hmac.compare_digest(str(received), expected)


@router.post("/bitrix-webhook")
async def handle_bitrix_webhook(
    request: Request,
    webhook_service: WebhookService = Depends(get_webhook_service),
) -> JSONResponse:
    """
    Recibe el webhook del proceso de negocio de Bitrix24 para un lead.

    Siempre responde 200 una vez identificado el lead, incluso si hubo un
    error interno, para evitar reintentos del emisor.
    """
    payload = await read_webhook_payload(request)
    logger.info(f"📥 Webhook Bitrix24 recibido: document_id={payload.get('document_id')}")

    if not validate_application_token(payload, settings.BITRIX_APPLICATION_TOKEN):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=WebhookResponse(success=False, error="Invalid application token").model_dump(),
        )

    try:
        body = await webhook_service.handle_webhook(payload)
    except LeadNotFoundError as e:
        logger.error(f"❌ {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=WebhookResponse(success=False, error=str(e)).model_dump(),
        )

    response = WebhookResponse(**body)
    return JSONResponse(status_code=status.HTTP_200_OK, content=response.model_dump(exclude_none=True))
