"""Errores de negocio; la capa HTTP los traduce a {"success": false, "message": ...}."""
import logging
from contextlib import contextmanager

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 500
    default_message = "Error interno del servidor"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Datos inválidos"


class InvalidStationData(ValidationError):
    default_message = "Datos de estación inválidos"


class NotAuthenticated(ServiceError):
    status_code = 401
    default_message = "No autenticado"


class Forbidden(ServiceError):
    status_code = 403
    default_message = "Acceso denegado"


class NotFound(ServiceError):
    status_code = 404
    default_message = "No encontrado"


class InternalError(ServiceError):
    status_code = 500


@contextmanager
def store_errors(action: str):
    """Convierte fallos de MongoDB en InternalError con un mensaje genérico."""
    try:
        yield
    except PyMongoError:
        logger.exception(f"❌ Error de base de datos en {action}")
        raise InternalError()
