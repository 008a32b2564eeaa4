"""
Endpoints de la API v1.
"""
from app.api.v1.endpoints import (
    auth,
    messages,
    notifications,
    realtime,
)

__all__ = [
    "auth",
    "messages",
    "notifications",
    "realtime",
]
