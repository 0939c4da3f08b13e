import uuid
from decimal import Decimal

import django.db.models.deletion
import django.db.models.functions
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("clientes", "0001_initial"),
        ("fiscal", "0001_initial"),
        ("productos", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Venta",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "numero_venta",
                    models.CharField(help_text="Número interno correlativo (VTA-000001).", max_length=20, unique=True),
                ),
                (
                    "ncf",
                    models.CharField(
                        blank=True,
                        help_text="Número de comprobante fiscal asignado.",
                        max_length=13,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "tipo_comprobante",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("B01", "Factura de Crédito Fiscal"),
                            ("B02", "Factura de Consumo"),
                            ("B03", "Nota de Débito"),
                            ("B04", "Nota de Crédito"),
                            ("B11", "Comprobante de Compras"),
                            ("B12", "Registro Único de Ingresos"),
                            ("B13", "Comprobante para Gastos Menores"),
                            ("B14", "Comprobante para Regímenes Especiales"),
                            ("B15", "Comprobante Gubernamental"),
                        ],
                        max_length=3,
                        null=True,
                    ),
                ),
                (
                    "ncf_modificado",
                    models.CharField(
                        blank=True,
                        help_text="NCF afectado (notas de crédito / débito).",
                        max_length=13,
                        null=True,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("itbis", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "metodo_pago",
                    models.CharField(
                        choices=[
                            ("EFECTIVO", "Efectivo"),
                            ("TARJETA", "Tarjeta"),
                            ("TRANSFERENCIA", "Transferencia"),
                            ("CHEQUE", "Cheque"),
                            ("CREDITO", "Crédito"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "rnc_cliente",
                    models.CharField(
                        blank=True,
                        help_text="Identificador fiscal del comprador al momento de la venta.",
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "estado",
                    models.CharField(
                        choices=[
                            ("COMPLETADA", "Completada"),
                            ("CANCELADA", "Cancelada"),
                            ("REEMBOLSADA", "Reembolsada"),
                        ],
                        default="COMPLETADA",
                        max_length=20,
                    ),
                ),
                ("notas", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "cajero",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ventas_registradas",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "cliente",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ventas",
                        to="clientes.cliente",
                    ),
                ),
                (
                    "secuencia",
                    models.ForeignKey(
                        blank=True,
                        help_text="Secuencia de la que salió el NCF.",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ventas",
                        to="fiscal.secuenciancf",
                    ),
                ),
            ],
            options={
                "verbose_name": "Venta",
                "verbose_name_plural": "Ventas",
                "db_table": "venta",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["estado", "created_at"], name="idx_venta_estado_fecha")],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            (
                                "total",
                                django.db.models.functions.Round(
                                    models.F("subtotal") + models.F("itbis"), 2
                                ),
                            )
                        ),
                        name="ck_venta_total_igual_subtotal_mas_itbis",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("subtotal__gte", 0), ("itbis__gte", 0)),
                        name="ck_venta_montos_no_negativos",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VentaItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("descripcion", models.CharField(max_length=255)),
                ("cantidad", models.DecimalField(decimal_places=3, max_digits=12)),
                ("precio_unitario", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_linea", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "producto",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="items_venta",
                        to="productos.producto",
                    ),
                ),
                (
                    "venta",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="ventas.venta",
                    ),
                ),
            ],
            options={
                "verbose_name": "Item de venta",
                "verbose_name_plural": "Items de venta",
                "db_table": "venta_item",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("cantidad__gt", 0)), name="ck_venta_item_cantidad_positiva"
                    ),
                ],
            },
        ),
    ]
