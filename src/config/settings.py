"""
Configuración y carga de variables de entorno para el servicio de reconocimiento de pasaportes.
"""
import os
from dotenv import load_dotenv

# Cargar variables de entorno desde .env
load_dotenv()


def _get_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Configuración centralizada del servicio."""

    # Bitrix24 - REST webhook y portal
    BITRIX_DOMAIN: str = os.getenv("BITRIX_DOMAIN", "")
    BITRIX_WEBHOOK_URL: str = os.getenv("BITRIX_WEBHOOK_URL", "")
    BITRIX_APPLICATION_TOKEN: str = os.getenv("BITRIX_APPLICATION_TOKEN", "")

    # Bitrix24 - OAuth (intercambio de refresh token para descargar archivos)
    BITRIX_OAUTH_URL: str = os.getenv("BITRIX_OAUTH_URL", "https://oauth.bitrix24.tech/oauth/token/")
    BITRIX_CLIENT_ID: str = os.getenv("BITRIX_CLIENT_ID", "")
    BITRIX_CLIENT_SECRET: str = os.getenv("BITRIX_CLIENT_SECRET", "")
    BITRIX_REFRESH_TOKEN: str = os.getenv("BITRIX_REFRESH_TOKEN", "")
    TOKEN_SAFETY_MARGIN: int = int(os.getenv("TOKEN_SAFETY_MARGIN", "60"))

    # Campo multiple de archivos con las fotos del pasaporte / ID
    BITRIX_PASSPORT_FILES_FIELD: str = os.getenv("BITRIX_PASSPORT_FILES_FIELD", "UF_CRM_1732877852")

    # Etapas del lead (se buscan por nombre en crm.status.list)
    STATUS_ENTITY_ID: str = os.getenv("STATUS_ENTITY_ID", "STATUS")
    STATUS_NAME_VERIFIED: str = os.getenv("STATUS_NAME_VERIFIED", "Паспорт тўғри")
    STATUS_NAME_NEEDS_CORRECTION: str = os.getenv("STATUS_NAME_NEEDS_CORRECTION", "Паспорт нотўғри")

    # Campos personalizados del lead (IDs fijos del portal)
    FIELD_DOCUMENT_NUMBER: str = "UF_CRM_1732958516635"  # Серия паспорта
    FIELD_ISSUE_DATE: str = "UF_CRM_1739861061211"  # Дата выдачи паспорта
    FIELD_PERSONAL_IDENTIFIER: str = "UF_CRM_1737176296854"  # ПИНФЛ
    FIELD_BIRTH_PLACE: str = "UF_CRM_1737177490340"  # Место рождения
    FIELD_MRZ: str = "UF_CRM_1771497129503"

    # Mindee (reconocimiento de documentos)
    MINDEE_API_KEY: str = os.getenv("MINDEE_API_KEY", "")
    MINDEE_MODEL_ID: str = os.getenv("MINDEE_MODEL_ID", "")
    MINDEE_BASE_URL: str = os.getenv("MINDEE_BASE_URL", "https://api-v2.mindee.net/v2")
    MINDEE_MAX_RETRIES: int = int(os.getenv("MINDEE_MAX_RETRIES", "30"))
    MINDEE_POLLING_INTERVAL: float = float(os.getenv("MINDEE_POLLING_INTERVAL", "2"))
    MINDEE_INITIAL_DELAY: float = float(os.getenv("MINDEE_INITIAL_DELAY", "3"))
    MINDEE_RAG: bool = _get_bool("MINDEE_RAG")

    # Application Configuration
    PORT: int = int(os.getenv("PORT", "3000"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    API_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "30"))
    FILE_DOWNLOAD_TIMEOUT: int = int(os.getenv("FILE_DOWNLOAD_TIMEOUT", "30"))

    @classmethod
    def validate_required_vars(cls) -> list[str]:
        """
        Valida que las variables de entorno requeridas estén configuradas.

        Returns:
            Lista de variables faltantes (vacía si todas están configuradas)
        """
        required_vars = {
            "BITRIX_DOMAIN": cls.BITRIX_DOMAIN,
            "BITRIX_WEBHOOK_URL": cls.BITRIX_WEBHOOK_URL,
            "BITRIX_CLIENT_ID": cls.BITRIX_CLIENT_ID,
            "BITRIX_CLIENT_SECRET": cls.BITRIX_CLIENT_SECRET,
            "BITRIX_REFRESH_TOKEN": cls.BITRIX_REFRESH_TOKEN,
            "MINDEE_API_KEY": cls.MINDEE_API_KEY,
            "MINDEE_MODEL_ID": cls.MINDEE_MODEL_ID,
        }

        missing_vars = [var for var, value in required_vars.items() if not value]
        return missing_vars


# Instancia global de configuración
settings = Settings()

# Validar variables requeridas al importar
missing_vars = settings.validate_required_vars()
if missing_vars:
    print(f"⚠️  ADVERTENCIA: Variables de entorno faltantes: {', '.join(missing_vars)}")
    print("   Asegúrate de configurar el archivo .env antes de ejecutar el servicio.")
