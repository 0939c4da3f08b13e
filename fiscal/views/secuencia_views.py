# fiscal/views/secuencia_views.py
import logging

from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from commons.api_errors import respuesta_error_dominio
from commons.exceptions import ErrorDominio
from fiscal.models import SecuenciaNcf
from fiscal.permissions import PuedeAdministrarSecuencias
from fiscal.serializers import CrearSecuenciaInputSerializer, SecuenciaNcfSerializer
from fiscal.services.numero_service import crear_secuencia, retirar_secuencia

logger = logging.getLogger("pos.fiscal")


@extend_schema(request=CrearSecuenciaInputSerializer, responses=SecuenciaNcfSerializer)
@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated, PuedeAdministrarSecuencias])
@throttle_classes([UserRateThrottle])
def secuencias(request):
    """
    GET  -> lista de secuencias con estado de uso (activas primero).
    POST -> registra un nuevo rango autorizado por la DGII.
    """
    if request.method == "GET":
        qs = SecuenciaNcf.objects.all().order_by("-activo", "tipo", "-created_at")
        tipo = request.query_params.get("tipo")
        if tipo:
            qs = qs.filter(tipo=tipo)
        return Response(SecuenciaNcfSerializer(qs, many=True).data)

    ser_in = CrearSecuenciaInputSerializer(data=request.data)
    ser_in.is_valid(raise_exception=True)
    data = ser_in.validated_data

    try:
        secuencia = crear_secuencia(
            data["tipo"],
            data["numero_maximo"],
            numero_actual=data["numero_actual"],
            fecha_vencimiento=data.get("fecha_vencimiento"),
        )
    except ErrorDominio as exc:
        return respuesta_error_dominio(exc, request)

    return Response(SecuenciaNcfSerializer(secuencia).data, status=status.HTTP_201_CREATED)


@extend_schema(request=None, responses={200: OpenApiTypes.OBJECT, 204: None})
@api_view(["DELETE"])
@permission_classes([IsAuthenticated, PuedeAdministrarSecuencias])
def secuencia_detalle(request, secuencia_id):
    """
    Retira una secuencia: se borra si nunca emitió números, si no se desactiva.
    """
    secuencia = get_object_or_404(SecuenciaNcf, pk=secuencia_id)
    borrada = retirar_secuencia(secuencia)
    if borrada:
        return Response(status=status.HTTP_204_NO_CONTENT)

    secuencia.refresh_from_db()
    return Response(
        {
            "code": "SECUENCIA_DESACTIVADA",
            "message": "La secuencia ya emitió números; se desactivó en lugar de borrarse.",
            "secuencia": SecuenciaNcfSerializer(secuencia).data,
        },
        status=status.HTTP_200_OK,
    )
