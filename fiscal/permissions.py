# fiscal/permissions.py
from rest_framework.permissions import BasePermission


class TieneCapacidad(BasePermission):
    """
    Permiso explícito por capacidad (permiso de Django) para operaciones
    fiscales. Las subclases sólo definen `capacidad`.

    - Usuario no autenticado: False (IsAuthenticated responde 401/403).
    - Usuario sin el permiso: 403 con el mensaje de la subclase.
    """

    capacidad: str = ""
    message = "Usuario sin permiso para esta operación fiscal."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return user.has_perm(self.capacidad)


class PuedeRegistrarVenta(TieneCapacidad):
    capacidad = "ventas.add_venta"
    message = "Usuario sin permiso para registrar ventas."


class PuedeAdministrarSecuencias(TieneCapacidad):
    """Lectura libre para autenticados; alta y baja exigen el permiso."""

    capacidad = "fiscal.add_secuenciancf"
    message = "Usuario sin permiso para administrar secuencias NCF."

    def has_permission(self, request, view):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            user = getattr(request, "user", None)
            return bool(user and user.is_authenticated)
        return super().has_permission(request, view)


class PuedeGenerarReporteDgii(TieneCapacidad):
    capacidad = "fiscal.generar_reporte_dgii"
    message = "Usuario sin permiso para generar reportes DGII."
