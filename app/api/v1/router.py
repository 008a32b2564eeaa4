"""
Router principal de la API v1.
Incluye todos los endpoints de la aplicación.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    messages,
    notifications,
    realtime,
)

api_router = APIRouter()

# ============================================================================
# AUTENTICACIÓN
# ============================================================================
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Autenticación"]
)

# ============================================================================
# MENSAJES Y COTIZACIONES
# ============================================================================
api_router.include_router(
    messages.router,
    prefix="/messages",
    tags=["Mensajes"]
)

# ============================================================================
# NOTIFICACIONES
# ============================================================================
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notificaciones"]
)

# ============================================================================
# TIEMPO REAL
# ============================================================================
api_router.include_router(
    realtime.router,
    tags=["Tiempo real"]
)
