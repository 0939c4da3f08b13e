from .venta_models import MetodoPago, Venta, VentaEstado
from .venta_item_models import VentaItem

__all__ = ["MetodoPago", "Venta", "VentaEstado", "VentaItem"]
