# ventas/api/v1/urls.py
from django.urls import path

from ventas.api.v1.views import registrar_venta_view

app_name = "ventas"

urlpatterns = [
    path("", registrar_venta_view, name="registrar"),
]
