# fiscal/models/configuracion_fiscal_models.py

from decimal import Decimal

from django.conf import settings
from django.db import models


class ConfiguracionFiscal(models.Model):
    """
    Datos fiscales del emisor con campos tipados.

    Se espera un único registro. Mientras no exista, `vigente()` devuelve una
    instancia sin guardar con los valores por defecto de settings.
    """

    rnc_emisor = models.CharField(
        max_length=11,
        blank=True,
        default="",
        help_text="RNC (9 dígitos) o cédula (11 dígitos) del emisor, sólo dígitos.",
    )
    razon_social = models.CharField(max_length=255, blank=True, default="")
    nombre_comercial = models.CharField(max_length=255, blank=True, default="")
    tasa_itbis = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0.18"),
        help_text="Tasa de ITBIS aplicada a las ventas (0.18 = 18%).",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "configuracion_fiscal"
        verbose_name = "Configuración fiscal"
        verbose_name_plural = "Configuración fiscal"
        permissions = [
            ("generar_reporte_dgii", "Puede generar los reportes 606/607 de la DGII"),
        ]

    def __str__(self) -> str:
        return f"{self.razon_social or 'Emisor'} ({self.rnc_emisor or 'sin RNC'})"

    @classmethod
    def vigente(cls) -> "ConfiguracionFiscal":
        config = cls.objects.order_by("-updated_at").first()
        if config is not None:
            return config
        return cls(
            rnc_emisor=getattr(settings, "EMISOR_RNC", ""),
            razon_social=getattr(settings, "EMISOR_RAZON_SOCIAL", ""),
            tasa_itbis=settings.ITBIS_TASA,
        )
