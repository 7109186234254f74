#!/usr/bin/env python3
"""
Script de validación de entorno para el Servicio de Reconocimiento de Pasaportes.

Verifica que las variables de entorno necesarias estén configuradas y que las
credenciales de Bitrix24 (webhook REST y OAuth) funcionen.
"""

import os
import sys
import asyncio
import httpx
from typing import List
from dotenv import load_dotenv

# Cargar variables de entorno
load_dotenv()


class EnvironmentValidator:
    """Validador de configuración de entorno."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.success_count = 0
        self.total_checks = 0

    def check_required_env_vars(self) -> bool:
        """Verifica que todas las variables de entorno requeridas estén configuradas."""
        print("🔍 Verificando variables de entorno...")

        required_vars = {
            # Bitrix24
            'BITRIX_DOMAIN': 'Dominio del portal Bitrix24',
            'BITRIX_WEBHOOK_URL': 'URL del webhook REST entrante',
            'BITRIX_CLIENT_ID': 'client_id de la aplicación local',
            'BITRIX_CLIENT_SECRET': 'client_secret de la aplicación local',
            'BITRIX_REFRESH_TOKEN': 'Refresh token OAuth para descargar archivos',

            # Mindee
            'MINDEE_API_KEY': 'Clave de API de Mindee',
            'MINDEE_MODEL_ID': 'ID del modelo de pasaporte en Mindee',
        }

        optional_vars = {
            'BITRIX_APPLICATION_TOKEN': 'Validación del webhook entrante (opcional)',
            'STATUS_NAME_VERIFIED': 'Etapa para pasaporte correcto (default: Паспорт тўғри)',
            'STATUS_NAME_NEEDS_CORRECTION': 'Etapa para pasaporte incorrecto (default: Паспорт нотўғри)',
            'API_TIMEOUT': 'Timeout para APIs (default: 30)',
        }

        all_good = True

        for var, description in required_vars.items():
            self.total_checks += 1
            value = os.getenv(var, '').strip()

            if not value:
                self.errors.append(f"❌ {var} no está configurada ({description})")
                all_good = False
            else:
                print(f"  ✅ {var}: {'*' * min(len(value), 20)}...")
                self.success_count += 1

        for var, description in optional_vars.items():
            if os.getenv(var):
                print(f"  ℹ️  {var} configurada ({description})")
            else:
                self.warnings.append(f"⚠️  {var} no configurada ({description})")

        return all_good

    async def check_bitrix_webhook(self) -> bool:
        """Verifica el webhook REST listando las etapas del lead."""
        print("\n🔗 Verificando webhook REST de Bitrix24...")
        self.total_checks += 1

        webhook_url = os.getenv('BITRIX_WEBHOOK_URL', '').rstrip('/')
        verified = os.getenv('STATUS_NAME_VERIFIED', 'Паспорт тўғри')
        needs_correction = os.getenv('STATUS_NAME_NEEDS_CORRECTION', 'Паспорт нотўғри')

        try:
            async with httpx.AsyncClient(timeout=10) as client:
                response = await client.post(
                    f"{webhook_url}/crm.status.list.json",
                    json={"filter": {"ENTITY_ID": os.getenv('STATUS_ENTITY_ID', 'STATUS')}},
                )

            data = response.json()
            if response.status_code != 200 or 'error' in data:
                self.errors.append(f"❌ Error en Bitrix24: {response.status_code} {data.get('error_description', '')}")
                return False

            names = {status.get('NAME') for status in data.get('result', [])}
            print(f"  ✅ Conexión exitosa con Bitrix24 ({len(names)} etapas)")
            for status_name in (verified, needs_correction):
                if status_name not in names:
                    self.errors.append(f"❌ La etapa '{status_name}' no existe en el embudo de leads")
            self.success_count += 1
            return True

        except httpx.TimeoutException:
            self.errors.append("❌ Timeout al conectar con Bitrix24")
            return False
        except (httpx.HTTPError, ValueError) as e:
            self.errors.append(f"❌ Error al conectar con Bitrix24: {str(e)}")
            return False

    async def check_bitrix_oauth(self) -> bool:
        """Verifica que el refresh token se pueda intercambiar."""
        print("\n🔑 Verificando OAuth de Bitrix24...")
        self.total_checks += 1

        params = {
            'grant_type': 'refresh_token',
            'client_id': os.getenv('BITRIX_CLIENT_ID'),
            'client_secret': os.getenv('BITRIX_CLIENT_SECRET'),
            'refresh_token': os.getenv('BITRIX_REFRESH_TOKEN'),
        }

        try:
            async with httpx.AsyncClient(timeout=10) as client:
                response = await client.post(
                    os.getenv('BITRIX_OAUTH_URL', 'https://oauth.bitrix24.tech/oauth/token/'),
                    data=params,
                )

            data = response.json()
            if response.status_code == 200 and data.get('access_token'):
                print(f"  ✅ Refresh token válido (expira en {data.get('expires_in')}s)")
                self.success_count += 1
                return True

            self.errors.append(f"❌ Error OAuth en Bitrix24: {data.get('error', response.status_code)}")
            return False

        except httpx.TimeoutException:
            self.errors.append("❌ Timeout al conectar con el servidor OAuth de Bitrix24")
            return False
        except (httpx.HTTPError, ValueError) as e:
            self.errors.append(f"❌ Error al conectar con el servidor OAuth de Bitrix24: {str(e)}")
            return False

    def print_summary(self):
        """Imprime un resumen de la validación."""
        print("\n" + "="*60)
        print("📋 RESUMEN DE VALIDACIÓN")
        print("="*60)

        print(f"✅ Verificaciones exitosas: {self.success_count}/{self.total_checks}")

        if self.errors:
            print(f"\n❌ ERRORES ENCONTRADOS ({len(self.errors)}):")
            for error in self.errors:
                print(f"  {error}")

        if self.warnings:
            print(f"\n⚠️  ADVERTENCIAS ({len(self.warnings)}):")
            for warning in self.warnings:
                print(f"  {warning}")

        if not self.errors:
            print("\n🎉 ¡Configuración válida! El servicio está listo para usar.")
            print("  Ejecuta: python app.py")
        else:
            print("\n🔧 Corrige los errores antes de continuar.")

        print("="*60)


async def main():
    """Función principal de validación."""
    print("🚀 VALIDADOR DE ENTORNO - Passport Recognition Service")
    print("="*60)

    validator = EnvironmentValidator()

    if not validator.check_required_env_vars():
        validator.print_summary()
        return False

    await validator.check_bitrix_webhook()
    await validator.check_bitrix_oauth()

    validator.print_summary()

    return len(validator.errors) == 0

if __name__ == "__main__":
    try:
        success = asyncio.run(main())
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\n⚠️  Validación interrumpida por el usuario.")
        sys.exit(1)
