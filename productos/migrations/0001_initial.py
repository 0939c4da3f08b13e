import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Producto",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "codigo",
                    models.CharField(help_text="Código interno / SKU del producto.", max_length=40, unique=True),
                ),
                (
                    "descripcion",
                    models.CharField(help_text="Descripción que se copia a cada línea de venta.", max_length=255),
                ),
                (
                    "precio_venta",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Precio de venta sugerido (sin ITBIS).",
                        max_digits=12,
                    ),
                ),
                (
                    "stock",
                    models.DecimalField(
                        decimal_places=3,
                        default=Decimal("0.000"),
                        help_text="Existencia disponible.",
                        max_digits=12,
                    ),
                ),
                ("activo", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Producto",
                "verbose_name_plural": "Productos",
                "db_table": "producto",
                "ordering": ["descripcion"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("stock__gte", 0)), name="ck_producto_stock_no_negativo"),
                    models.CheckConstraint(
                        condition=models.Q(("precio_venta__gte", 0)), name="ck_producto_precio_no_negativo"
                    ),
                ],
            },
        ),
    ]
