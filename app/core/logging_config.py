"""
Configuración de logging de la aplicación.
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configurar el logger raíz.

    Los módulos usan logging.getLogger(__name__) y heredan esta configuración.
    Los loggers de uvicorn se propagan al raíz para tener un solo formato.

    Args:
        log_level: Nivel de log (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        stream=sys.stdout,
        level=log_level.upper(),
        format=LOG_FORMAT,
        force=True,
    )

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True

    # SQLAlchemy solo en modo debug
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
