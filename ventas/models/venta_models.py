# ventas/models/venta_models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Round

from fiscal.models import SecuenciaNcf, TipoComprobante


class VentaEstado(models.TextChoices):
    COMPLETADA = "COMPLETADA", "Completada"
    CANCELADA = "CANCELADA", "Cancelada"
    REEMBOLSADA = "REEMBOLSADA", "Reembolsada"


class MetodoPago(models.TextChoices):
    EFECTIVO = "EFECTIVO", "Efectivo"
    TARJETA = "TARJETA", "Tarjeta"
    TRANSFERENCIA = "TRANSFERENCIA", "Transferencia"
    CHEQUE = "CHEQUE", "Cheque"
    CREDITO = "CREDITO", "Crédito"


class Venta(models.Model):
    """
    Venta registrada en el POS.

    Pilares:
    - Se crea completa y de una sola vez por
      ventas.services.registrar_venta_service.registrar_venta.
    - ncf es único y sólo existe si la venta pidió comprobante fiscal.
    - total = subtotal + itbis (redondeado al centavo).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    numero_venta = models.CharField(
        max_length=20,
        unique=True,
        help_text="Número interno correlativo (VTA-000001).",
    )

    ncf = models.CharField(
        max_length=13,
        unique=True,
        null=True,
        blank=True,
        help_text="Número de comprobante fiscal asignado.",
    )

    tipo_comprobante = models.CharField(
        max_length=3,
        choices=TipoComprobante.choices,
        null=True,
        blank=True,
    )

    secuencia = models.ForeignKey(
        SecuenciaNcf,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ventas",
        help_text="Secuencia de la que salió el NCF.",
    )

    ncf_modificado = models.CharField(
        max_length=13,
        null=True,
        blank=True,
        help_text="NCF afectado (notas de crédito / débito).",
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    itbis = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    metodo_pago = models.CharField(max_length=20, choices=MetodoPago.choices)

    cliente = models.ForeignKey(
        "clientes.Cliente",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ventas",
    )

    rnc_cliente = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        help_text="Identificador fiscal del comprador al momento de la venta.",
    )

    estado = models.CharField(
        max_length=20,
        choices=VentaEstado.choices,
        default=VentaEstado.COMPLETADA,
    )

    cajero = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ventas_registradas",
    )

    notas = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "venta"
        verbose_name = "Venta"
        verbose_name_plural = "Ventas"
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total=Round(F("subtotal") + F("itbis"), 2)),
                name="ck_venta_total_igual_subtotal_mas_itbis",
            ),
            models.CheckConstraint(
                condition=Q(subtotal__gte=0) & Q(itbis__gte=0),
                name="ck_venta_montos_no_negativos",
            ),
        ]
        indexes = [
            models.Index(fields=["estado", "created_at"], name="idx_venta_estado_fecha"),
        ]

    def __str__(self) -> str:
        return f"{self.numero_venta} ({self.ncf or 'sin NCF'})"
