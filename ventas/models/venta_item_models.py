# ventas/models/venta_item_models.py

import uuid

from django.db import models
from django.db.models import Q

from productos.models import Producto
from ventas.models.venta_models import Venta


class VentaItem(models.Model):
    """
    Línea de una venta. total_linea = redondear2(cantidad x precio_unitario).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    venta = models.ForeignKey(
        Venta,
        on_delete=models.CASCADE,
        related_name="items",
    )

    producto = models.ForeignKey(
        Producto,
        on_delete=models.PROTECT,
        related_name="items_venta",
    )

    # snapshot comercial
    descripcion = models.CharField(max_length=255)

    cantidad = models.DecimalField(max_digits=12, decimal_places=3)
    precio_unitario = models.DecimalField(max_digits=12, decimal_places=2)
    total_linea = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "venta_item"
        verbose_name = "Item de venta"
        verbose_name_plural = "Items de venta"
        constraints = [
            models.CheckConstraint(condition=Q(cantidad__gt=0), name="ck_venta_item_cantidad_positiva"),
        ]

    def __str__(self) -> str:
        return f"{self.descripcion} x {self.cantidad}"
