#!/usr/bin/env python3
"""
Script para probar el webhook de Bitrix24 contra el servidor local.
Envía el mismo formulario que manda el proceso de negocio del lead.

Uso: python scripts/test_webhook_real.py <LEAD_ID>
"""

import sys
import json
import httpx
import asyncio

BASE_URL = "http://localhost:3000"


def build_payload(lead_id: str) -> dict:
    """Formulario x-www-form-urlencoded tal como lo envía Bitrix24."""
    return {
        "workflow_id": "local_test",
        "code": "passport_recognition",
        "document_id[0]": "crm",
        "document_id[1]": "CCrmDocumentLead",
        "document_id[2]": f"LEAD_{lead_id}",
        "document_type[0]": "crm",
        "document_type[1]": "CCrmDocumentLead",
        "document_type[2]": "LEAD",
    }


async def test_health_endpoint() -> bool:
    """Verificar que el servidor esté funcionando"""
    print("🏥 Verificando estado del servidor...")

    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.get(f"{BASE_URL}/health")

        if response.status_code == 200:
            result = response.json()
            print(f"✅ Servidor funcionando: {result.get('status', 'unknown')}")
            print(f"   Bitrix24 configurado: {result.get('bitrix_configured')}")
            print(f"   Mindee configurado: {result.get('mindee_configured')}")
            return True

        print(f"⚠️  Servidor responde pero con error: {response.status_code}")
        return False

    except httpx.ConnectError:
        print("❌ Servidor no está ejecutándose o no es accesible")
        return False


async def test_webhook_endpoint(lead_id: str):
    """Enviar el webhook de un lead real"""
    payload = build_payload(lead_id)

    print(f"📡 Enviando webhook para LEAD_{lead_id} a {BASE_URL}/bitrix-webhook")

    try:
        # El reconocimiento puede tardar: descarga + encolado + polling por archivo
        async with httpx.AsyncClient(timeout=300.0) as client:
            response = await client.post(f"{BASE_URL}/bitrix-webhook", data=payload)

        print("\n📊 RESPUESTA DEL SERVIDOR:")
        print(f"   Status Code: {response.status_code}")
        print(f"   Respuesta: {json.dumps(response.json(), indent=2, ensure_ascii=False)}")

        if response.status_code == 200 and "error" not in response.json():
            print("\n🎉 ¡Lead procesado! Revisa la etapa del lead en Bitrix24.")
        elif response.status_code == 200:
            print("\n⚠️  El lead se procesó con errores, revisa los logs del servidor.")

    except httpx.TimeoutException:
        print("❌ Timeout esperando la respuesta del servidor.")


async def main():
    """Función principal"""
    if len(sys.argv) != 2 or not sys.argv[1].isdigit():
        print("Uso: python scripts/test_webhook_real.py <LEAD_ID>")
        sys.exit(1)

    print("🔧 PRUEBA DEL WEBHOOK DE RECONOCIMIENTO DE PASAPORTES")
    print("=" * 50)

    if not await test_health_endpoint():
        print("\n💡 Inicia el servidor con: python app.py")
        return

    await test_webhook_endpoint(sys.argv[1])


if __name__ == "__main__":
    asyncio.run(main())
