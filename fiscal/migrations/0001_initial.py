import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ConfiguracionFiscal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "rnc_emisor",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="RNC (9 dígitos) o cédula (11 dígitos) del emisor, sólo dígitos.",
                        max_length=11,
                    ),
                ),
                ("razon_social", models.CharField(blank=True, default="", max_length=255)),
                ("nombre_comercial", models.CharField(blank=True, default="", max_length=255)),
                (
                    "tasa_itbis",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0.18"),
                        help_text="Tasa de ITBIS aplicada a las ventas (0.18 = 18%).",
                        max_digits=5,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Configuración fiscal",
                "verbose_name_plural": "Configuración fiscal",
                "db_table": "configuracion_fiscal",
                "permissions": [("generar_reporte_dgii", "Puede generar los reportes 606/607 de la DGII")],
            },
        ),
        migrations.CreateModel(
            name="RegistroContribuyente",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rnc", models.CharField(max_length=11, unique=True)),
                ("razon_social", models.CharField(max_length=255)),
                ("nombre_comercial", models.CharField(blank=True, default="", max_length=255)),
                ("categoria", models.CharField(blank=True, default="", max_length=100)),
                (
                    "estado",
                    models.CharField(
                        choices=[
                            ("ACTIVO", "Activo"),
                            ("SUSPENDIDO", "Suspendido"),
                            ("CESE_TEMPORAL", "Cese temporal"),
                            ("DADO_DE_BAJA", "Dado de baja"),
                        ],
                        default="ACTIVO",
                        max_length=20,
                    ),
                ),
                ("ultima_sincronizacion", models.DateTimeField(db_index=True)),
            ],
            options={
                "verbose_name": "Contribuyente DGII",
                "verbose_name_plural": "Padrón DGII",
                "db_table": "registro_contribuyente",
                "ordering": ["razon_social"],
                "indexes": [models.Index(fields=["estado"], name="idx_contribuyente_estado")],
            },
        ),
        migrations.CreateModel(
            name="SecuenciaNcf",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "tipo",
                    models.CharField(
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
                        help_text="Tipo de comprobante (prefijo del NCF).",
                        max_length=3,
                    ),
                ),
                (
                    "numero_actual",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Último número utilizado. Próximo será numero_actual + 1.",
                    ),
                ),
                (
                    "numero_maximo",
                    models.PositiveIntegerField(help_text="Último número autorizado por la DGII para este rango."),
                ),
                (
                    "activo",
                    models.BooleanField(default=True, help_text="Sólo puede haber una secuencia activa por tipo."),
                ),
                (
                    "fecha_vencimiento",
                    models.DateField(
                        blank=True,
                        help_text="A partir del día siguiente la secuencia no emite más números.",
                        null=True,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Secuencia NCF",
                "verbose_name_plural": "Secuencias NCF",
                "db_table": "secuencia_ncf",
                "ordering": ["tipo", "-created_at"],
                "indexes": [models.Index(fields=["tipo", "activo"], name="idx_secuencia_tipo_activo")],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("activo", True)),
                        fields=("tipo",),
                        name="uniq_secuencia_activa_por_tipo",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("numero_actual__lte", models.F("numero_maximo"))),
                        name="ck_secuencia_actual_lte_maximo",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("numero_maximo__gte", 1), ("numero_maximo__lte", 99999999)),
                        name="ck_secuencia_maximo_rango",
                    ),
                ],
            },
        ),
    ]
