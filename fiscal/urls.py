# fiscal/urls.py

from django.urls import path

from fiscal.views.contribuyente_views import buscar, validar_contribuyente
from fiscal.views.reporte_dgii_views import reporte_dgii
from fiscal.views.secuencia_views import secuencia_detalle, secuencias

app_name = "fiscal"

urlpatterns = [
    path("secuencias/", secuencias, name="secuencias"),
    path("secuencias/<uuid:secuencia_id>/", secuencia_detalle, name="secuencia-detalle"),
    path("contribuyentes/validar/", validar_contribuyente, name="contribuyente-validar"),
    path("contribuyentes/buscar/", buscar, name="contribuyente-buscar"),
    path("reportes-dgii/", reporte_dgii, name="reporte-dgii"),
]
