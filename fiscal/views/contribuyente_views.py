# fiscal/views/contribuyente_views.py
import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from commons.api_errors import respuesta_error_dominio
from commons.exceptions import ErrorDominio, ErrorValidacion
from fiscal.serializers import ContribuyenteSerializer
from fiscal.services.registro_service import (
    BUSQUEDA_MAX_RESULTADOS,
    ValidadorRegistro,
    buscar_contribuyentes,
)

logger = logging.getLogger("pos.fiscal")


@extend_schema(parameters=[OpenApiParameter("rnc", str, required=True)], responses=OpenApiTypes.OBJECT)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def validar_contribuyente(request):
    """
    Clasifica el identificador y consulta el padrón local.
    Nunca falla por padrón desactualizado: sólo lo informa en `advertencia`.
    """
    rnc = (request.query_params.get("rnc") or "").strip()
    try:
        if not rnc:
            raise ErrorValidacion("El parámetro rnc es obligatorio.")
        verificacion = ValidadorRegistro().verificar(rnc)
    except ErrorDominio as exc:
        return respuesta_error_dominio(exc, request)

    return Response(verificacion.as_dict())


@extend_schema(
    parameters=[
        OpenApiParameter("q", str, required=True),
        OpenApiParameter("limite", int, required=False),
    ],
    responses=ContribuyenteSerializer(many=True),
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle])
def buscar(request):
    consulta = request.query_params.get("q", "")
    try:
        limite = int(request.query_params.get("limite", 20))
    except ValueError:
        limite = 20

    try:
        resultados = buscar_contribuyentes(consulta, limite=limite)
    except ErrorDominio as exc:
        return respuesta_error_dominio(exc, request)

    return Response(
        {
            "consulta": consulta.strip(),
            "limite": min(max(limite, 1), BUSQUEDA_MAX_RESULTADOS),
            "resultados": ContribuyenteSerializer(resultados, many=True).data,
        }
    )
