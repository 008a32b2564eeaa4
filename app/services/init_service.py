"""
Servicio de inicialización de la aplicación.
Prepara la base de datos y crea datos iniciales al arrancar.
"""
import logging
import time
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.config import get_settings
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.user import User, UserRole, KycStatus
from app.core.security import get_password_hash

logger = logging.getLogger(__name__)


def wait_for_db(max_retries: int = 10, delay: int = 2) -> bool:
    """
    Esperar a que la base de datos esté lista.

    Args:
        max_retries: Número máximo de reintentos
        delay: Segundos entre reintentos

    Returns:
        True si la BD está lista, False si falló
    """
    for attempt in range(max_retries):
        try:
            db = SessionLocal()
            try:
                db.execute(text("SELECT 1"))
            finally:
                db.close()
            return True
        except Exception as e:
            if attempt < max_retries - 1:
                logger.info("Esperando base de datos... intento %d/%d", attempt + 1, max_retries)
                time.sleep(delay)
            else:
                logger.error("Base de datos no disponible después de %d intentos: %s", max_retries, e)
                return False
    return False


def create_tables() -> None:
    """Crear las tablas que falten (solo desarrollo; en producción usar migraciones)."""
    # Registrar todos los modelos en el metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Tablas verificadas/creadas")


def init_admin_user() -> bool:
    """
    Crear usuario administrador inicial si no existe.

    Usa las variables de entorno ADMIN_EMAIL y ADMIN_PASSWORD.

    Returns:
        True si se creó el usuario, False si ya existía o hubo error
    """
    settings = get_settings()

    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.info("ADMIN_EMAIL o ADMIN_PASSWORD no configurados, se omite el admin inicial")
        return False

    db: Session = SessionLocal()

    try:
        existing_admin = db.query(User).filter(
            User.email == settings.ADMIN_EMAIL.lower()
        ).first()

        if existing_admin:
            logger.info("Usuario administrador ya existe: %s", settings.ADMIN_EMAIL)
            return False

        admin_user = User(
            email=settings.ADMIN_EMAIL.lower(),
            password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            first_name="Administrador",
            last_name="",
            role=UserRole.ADMIN,
            kyc_status=KycStatus.VERIFIED,
            is_active=True,
        )

        db.add(admin_user)
        db.commit()

        logger.info("Usuario administrador creado: %s", settings.ADMIN_EMAIL)
        logger.warning("Cambia la contraseña del administrador después del primer login")
        return True

    except Exception:
        db.rollback()
        logger.exception("Error al crear usuario administrador")
        return False

    finally:
        db.close()


def run_initialization():
    """
    Ejecutar todas las tareas de inicialización.
    Llamar desde el evento startup de FastAPI.
    """
    logger.info("Ejecutando inicialización...")

    if not wait_for_db():
        return

    if get_settings().DB_CREATE_TABLES:
        create_tables()

    init_admin_user()

    logger.info("Inicialización completada")
