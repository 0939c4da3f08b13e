import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Compra",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("numero_orden", models.CharField(max_length=30, unique=True)),
                ("proveedor_nombre", models.CharField(max_length=255)),
                (
                    "rnc_proveedor",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="RNC/cédula del proveedor, sólo dígitos.",
                        max_length=20,
                    ),
                ),
                ("ncf", models.CharField(blank=True, max_length=13, null=True)),
                ("ncf_modificado", models.CharField(blank=True, max_length=13, null=True)),
                ("fecha_comprobante", models.DateField(db_index=True)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("itbis", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "estado",
                    models.CharField(
                        choices=[("PENDIENTE", "Pendiente"), ("COMPLETADA", "Completada"), ("CANCELADA", "Cancelada")],
                        default="PENDIENTE",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Compra",
                "verbose_name_plural": "Compras",
                "db_table": "compra",
                "ordering": ["fecha_comprobante", "created_at"],
                "indexes": [models.Index(fields=["estado", "fecha_comprobante"], name="idx_compra_estado_fecha")],
            },
        ),
    ]
