# fiscal/views/reporte_dgii_views.py
import logging

from django.http import HttpResponse
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from commons.api_errors import respuesta_error_dominio, respuesta_error_interno
from commons.exceptions import ErrorDominio
from fiscal.permissions import PuedeGenerarReporteDgii
from fiscal.serializers import ReporteDgiiInputSerializer
from fiscal.services.reporte_dgii_service import TipoReporte, construir_reporte, periodo_mensual

logger = logging.getLogger("pos.fiscal")


@extend_schema(
    parameters=[
        OpenApiParameter("tipo", str, enum=["606", "607"], required=True),
        OpenApiParameter("mes", str, required=True, description="AAAA-MM"),
        OpenApiParameter("formato", str, enum=["xml", "resumen"], required=False),
    ],
    responses=OpenApiTypes.OBJECT,
)
@api_view(["GET"])
@permission_classes([IsAuthenticated, PuedeGenerarReporteDgii])
@throttle_classes([UserRateThrottle])
def reporte_dgii(request):
    """
    Genera el 606 o 607 de un mes.

    - formato=resumen (default): vista previa JSON con totales y advertencias.
    - formato=xml: descarga del archivo listo para la Oficina Virtual.
    """
    ser_in = ReporteDgiiInputSerializer(data=request.query_params)
    ser_in.is_valid(raise_exception=True)
    data = ser_in.validated_data

    anio, mes = (int(p) for p in data["mes"].split("-"))

    try:
        inicio, fin = periodo_mensual(anio, mes)
        reporte = construir_reporte(inicio, fin, TipoReporte(data["tipo"]))
    except ErrorDominio as exc:
        return respuesta_error_dominio(exc, request)
    except Exception:
        logger.exception(
            "HTTP POS: error inesperado al generar reporte DGII. request_id=%s",
            getattr(request, "request_id", None),
        )
        return respuesta_error_interno(request)

    if data["formato"] == "xml":
        response = HttpResponse(reporte.xml, content_type="application/xml; charset=utf-8")
        response["Content-Disposition"] = f'attachment; filename="{reporte.nombre_archivo}"'
        return response

    return Response(reporte.resumen())
