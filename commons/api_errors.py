# commons/api_errors.py

import logging

from rest_framework import status
from rest_framework.response import Response

from commons.exceptions import (
    ConflictoTransitorioError,
    ErrorDominio,
    ErrorValidacion,
    ViolacionEsquemaError,
    ViolacionReglaNegocio,
)

logger = logging.getLogger(__name__)

# orden importa: la primera clase que coincide define el status
_STATUS_POR_ERROR = (
    (ErrorValidacion, status.HTTP_400_BAD_REQUEST),
    (ViolacionReglaNegocio, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictoTransitorioError, status.HTTP_409_CONFLICT),
    (ViolacionEsquemaError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_para(exc: ErrorDominio) -> int:
    for clase, codigo in _STATUS_POR_ERROR:
        if isinstance(exc, clase):
            return codigo
    return status.HTTP_400_BAD_REQUEST


def respuesta_error_dominio(exc: ErrorDominio, request=None) -> Response:
    """Convierte un ErrorDominio en {"code", "message", ...} con el status adecuado."""
    payload = exc.as_dict()
    request_id = getattr(request, "request_id", None)
    if request_id:
        payload["request_id"] = request_id
    return Response(payload, status=status_para(exc))


def respuesta_error_interno(request=None) -> Response:
    payload = {
        "code": "ERROR_INTERNO",
        "message": "Error interno inesperado. Verifique los logs.",
    }
    request_id = getattr(request, "request_id", None)
    if request_id:
        payload["request_id"] = request_id
    return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
