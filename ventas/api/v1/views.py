# ventas/api/v1/views.py

import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from commons.api_errors import respuesta_error_dominio, respuesta_error_interno
from commons.exceptions import ErrorDominio
from fiscal.permissions import PuedeRegistrarVenta
from ventas.api.v1.serializers import RegistrarVentaInputSerializer, VentaSerializer
from ventas.services.registrar_venta_service import registrar_venta

logger = logging.getLogger(__name__)


@extend_schema(request=RegistrarVentaInputSerializer, responses={201: VentaSerializer})
@api_view(["POST"])
@permission_classes([IsAuthenticated, PuedeRegistrarVenta])
@throttle_classes([UserRateThrottle])
def registrar_venta_view(request):
    """
    Endpoint HTTP llamado por la caja para registrar una venta.

    Códigos de respuesta:
    - 201: venta registrada (con NCF si se pidió comprobante).
    - 400: pedido mal formado / validación.
    - 422: regla de negocio (stock, secuencia agotada o vencida, RNC no registrado).
    - 409: contención concurrente persistente tras los reintentos.
    - 500: error inesperado.
    """
    ser_in = RegistrarVentaInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)
    solicitud = ser_in.to_solicitud()

    try:
        resultado = registrar_venta(solicitud, cajero=request.user)
    except ErrorDominio as exc:
        return respuesta_error_dominio(exc, request)
    except Exception:
        logger.exception(
            "HTTP POS: error inesperado al registrar venta. request_id=%s",
            getattr(request, "request_id", None),
        )
        return respuesta_error_interno(request)

    return Response(
        {
            "venta": VentaSerializer(resultado.venta).data,
            "advertencias": resultado.advertencias,
        },
        status=status.HTTP_201_CREATED,
    )
