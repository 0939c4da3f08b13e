# productos/models/productos_models.py

import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q


class Producto(models.Model):
    """
    Catálogo mínimo de productos que el motor de ventas necesita.

    - stock nunca puede quedar negativo (constraint + decremento condicional
      en ventas.services.registrar_venta_service).
    - Productos inactivos no se pueden vender.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    codigo = models.CharField(
        max_length=40,
        unique=True,
        help_text="Código interno / SKU del producto.",
    )

    descripcion = models.CharField(
        max_length=255,
        help_text="Descripción que se copia a cada línea de venta.",
    )

    precio_venta = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Precio de venta sugerido (sin ITBIS).",
    )

    stock = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("0.000"),
        help_text="Existencia disponible.",
    )

    activo = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "producto"
        verbose_name = "Producto"
        verbose_name_plural = "Productos"
        ordering = ["descripcion"]
        constraints = [
            models.CheckConstraint(condition=Q(stock__gte=0), name="ck_producto_stock_no_negativo"),
            models.CheckConstraint(condition=Q(precio_venta__gte=0), name="ck_producto_precio_no_negativo"),
        ]

    def __str__(self) -> str:
        return f"{self.codigo} - {self.descripcion}"
