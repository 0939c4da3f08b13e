# compras/models/compra_models.py

import uuid
from decimal import Decimal

from django.db import models


class CompraEstado(models.TextChoices):
    PENDIENTE = "PENDIENTE", "Pendiente"
    COMPLETADA = "COMPLETADA", "Completada"
    CANCELADA = "CANCELADA", "Cancelada"


class Compra(models.Model):
    """
    Compra a proveedor con comprobante fiscal. Fuente del formato 606.

    La escribe la capa de órdenes de compra; el motor fiscal sólo la lee.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    numero_orden = models.CharField(max_length=30, unique=True)
    proveedor_nombre = models.CharField(max_length=255)
    rnc_proveedor = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="RNC/cédula del proveedor, sólo dígitos.",
    )

    ncf = models.CharField(max_length=13, blank=True, null=True)
    ncf_modificado = models.CharField(max_length=13, blank=True, null=True)
    fecha_comprobante = models.DateField(db_index=True)

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    itbis = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    estado = models.CharField(
        max_length=20,
        choices=CompraEstado.choices,
        default=CompraEstado.PENDIENTE,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "compra"
        verbose_name = "Compra"
        verbose_name_plural = "Compras"
        ordering = ["fecha_comprobante", "created_at"]
        indexes = [
            models.Index(fields=["estado", "fecha_comprobante"], name="idx_compra_estado_fecha"),
        ]

    def __str__(self) -> str:
        return f"{self.numero_orden} - {self.proveedor_nombre}"
