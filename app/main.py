"""
Aplicación FastAPI principal del servicio de mensajería del marketplace.
"""
import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from app.config import settings
from app.api.v1.router import api_router
from app.core.cache import get_cache_store
from app.core.logging_config import configure_logging
from app.db.session import SessionLocal, get_db_connection
from app.services.init_service import run_initialization
from app.services.outbox_service import OutboxDispatcher
from app.services.realtime_service import realtime_hub
from app.schemas.common import ErrorResponse
from app.core.exceptions import (
    MarketplaceException,
    NotFoundException,
    UnauthorizedException,
    ForbiddenException,
    BadRequestException,
    ConflictException,
    ValidationException,
)

logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Marketplace de Equipos - Mensajería y Cotizaciones

    API para la negociación entre compradores y vendedores de equipos industriales.

    ### Características principales:

    * 🔐 **Autenticación JWT** - Login con access token
    * 💬 **Mensajes** - Conversaciones por publicación entre comprador y vendedor
    * 💰 **Cotizaciones** - Ofertas de precio con aceptación, rechazo y contraoferta
    * 🔔 **Notificaciones** - Avisos persistentes de mensajes y cotizaciones
    * ⚡ **Tiempo real** - WebSocket con salas por usuario y conversación

    ### Documentación:

    - **Swagger UI**: /docs
    - **ReDoc**: /redoc
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Worker de efectos secundarios (notificaciones y push en tiempo real)
outbox_dispatcher = OutboxDispatcher(SessionLocal, hub=realtime_hub, settings=settings)


def _error_response(status_code: int, exc: MarketplaceException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=exc.message, error_code=exc.error_code).model_dump()
    )


# Exception Handlers
@app.exception_handler(NotFoundException)
async def not_found_exception_handler(request: Request, exc: NotFoundException):
    """Handler para recursos no encontrados."""
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(UnauthorizedException)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedException):
    """Handler para errores de autenticación."""
    return _error_response(status.HTTP_401_UNAUTHORIZED, exc)


@app.exception_handler(ForbiddenException)
async def forbidden_exception_handler(request: Request, exc: ForbiddenException):
    """Handler para errores de autorización."""
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


@app.exception_handler(BadRequestException)
async def bad_request_exception_handler(request: Request, exc: BadRequestException):
    """Handler para solicitudes inválidas."""
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(ValidationException)
async def domain_validation_exception_handler(request: Request, exc: ValidationException):
    """Handler para operaciones inválidas sobre el estado del dominio."""
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(ConflictException)
async def conflict_exception_handler(request: Request, exc: ConflictException):
    """Handler para conflictos."""
    return _error_response(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler para errores de validación de Pydantic."""
    errors = []
    for error in exc.errors():
        errors.append({
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": errors, "error_code": "REQUEST_VALIDATION_ERROR"})
    )


# Incluir routers de la API
app.include_router(api_router, prefix="/api/v1")


# Endpoint raíz
@app.get("/", tags=["Health"])
async def root():
    """
    Endpoint raíz para verificar que la API está funcionando.
    """
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "online",
        "docs": "/docs",
        "redoc": "/redoc"
    }


# Health check
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Endpoint de health check para monitoreo.
    """
    return {
        "status": "healthy",
        "version": settings.APP_VERSION
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """
    Evento ejecutado al iniciar la aplicación.
    """
    configure_logging(settings.LOG_LEVEL)
    logger.info("%s v%s iniciada", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Documentación disponible en: /docs")
    logger.info("Modo debug: %s", settings.DEBUG)

    # Preparar BD y crear admin si no existe
    try:
        run_initialization()
    except Exception:
        logger.exception("Error en inicialización")

    if settings.OUTBOX_ENABLED:
        outbox_dispatcher.start()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """
    Evento ejecutado al apagar la aplicación.
    """
    await outbox_dispatcher.stop()
    await get_cache_store().close()
    get_db_connection().close()
    logger.info("%s detenida", settings.APP_NAME)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
