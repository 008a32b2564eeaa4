"""
Configuración de la API de mensajería del marketplace.
Maneja variables de entorno y settings globales.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Configuración de la aplicación usando Pydantic Settings v2."""

    # Database (REQUERIDO - debe estar en .env)
    DATABASE_URL: str
    DB_CREATE_TABLES: bool = False  # Crear tablas al iniciar (solo desarrollo)

    # Security (REQUERIDO - debe estar en .env)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application
    APP_NAME: str = "Equipment Marketplace API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Initial Admin (opcional)
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    # Cache / presencia
    CACHE_BACKEND: str = "memory"  # "memory" o "redis"
    REDIS_URL: str = "redis://localhost:6379/0"
    PRESENCE_TTL_SECONDS: int = 3600

    # Outbox de efectos secundarios (notificaciones y tiempo real)
    OUTBOX_ENABLED: bool = True
    OUTBOX_POLL_INTERVAL: float = 0.5  # segundos
    OUTBOX_BATCH_SIZE: int = 50
    OUTBOX_MAX_ATTEMPTS: int = 5
    OUTBOX_RETRY_BACKOFF_START: int = 2  # segundos
    OUTBOX_RETRY_MAX_DELAY: int = 300  # segundos
    OUTBOX_CLAIM_TIMEOUT: int = 120  # segundos

    # Computed properties
    @property
    def allowed_origins_list(self) -> List[str]:
        """Convierte ALLOWED_ORIGINS string a lista."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Instancia Singleton de settings
_settings_instance = None


def get_settings() -> Settings:
    """
    Obtener instancia Singleton de configuración.
    Se carga una sola vez y se reutiliza.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


# Instancia global de settings (Singleton)
settings = get_settings()
