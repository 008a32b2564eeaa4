"""
Excepciones personalizadas para la API del marketplace.
"""


class MarketplaceException(Exception):
    """Excepción base para todas las excepciones del marketplace."""

    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Error en la aplicación", error_code: str = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)


class NotFoundException(MarketplaceException):
    """Excepción cuando un recurso no se encuentra."""

    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, message: str = "Recurso no encontrado", error_code: str = None):
        super().__init__(message, error_code)


class UnauthorizedException(MarketplaceException):
    """Excepción cuando el usuario no está autenticado."""

    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "No autorizado", error_code: str = None):
        super().__init__(message, error_code)


class ForbiddenException(MarketplaceException):
    """Excepción cuando el usuario no tiene permisos."""

    error_code = "ACCESS_DENIED"

    def __init__(self, message: str = "Acceso prohibido", error_code: str = None):
        super().__init__(message, error_code)


class BadRequestException(MarketplaceException):
    """Excepción cuando la solicitud es inválida."""

    error_code = "BAD_REQUEST"

    def __init__(self, message: str = "Solicitud inválida", error_code: str = None):
        super().__init__(message, error_code)


class ConflictException(MarketplaceException):
    """Excepción cuando hay un conflicto con el estado actual."""

    error_code = "CONFLICT"

    def __init__(self, message: str = "Conflicto con el recurso", error_code: str = None):
        super().__init__(message, error_code)


class ValidationException(MarketplaceException):
    """Excepción cuando falla la validación de datos."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Error de validación", error_code: str = None):
        super().__init__(message, error_code)
