# fiscal/models/registro_contribuyente_models.py

from django.db import models


class EstadoContribuyente(models.TextChoices):
    ACTIVO = "ACTIVO", "Activo"
    SUSPENDIDO = "SUSPENDIDO", "Suspendido"
    CESE_TEMPORAL = "CESE_TEMPORAL", "Cese temporal"
    DADO_DE_BAJA = "DADO_DE_BAJA", "Dado de baja"


class RegistroContribuyente(models.Model):
    """
    Copia local del padrón de contribuyentes de la DGII.

    El job de sincronización (externo a este núcleo) es el único que escribe
    aquí; el motor fiscal sólo lee. La clave es el RNC/cédula normalizado
    (sólo dígitos).
    """

    rnc = models.CharField(max_length=11, unique=True)
    razon_social = models.CharField(max_length=255)
    nombre_comercial = models.CharField(max_length=255, blank=True, default="")
    categoria = models.CharField(max_length=100, blank=True, default="")
    estado = models.CharField(
        max_length=20,
        choices=EstadoContribuyente.choices,
        default=EstadoContribuyente.ACTIVO,
    )
    ultima_sincronizacion = models.DateTimeField(db_index=True)

    class Meta:
        db_table = "registro_contribuyente"
        verbose_name = "Contribuyente DGII"
        verbose_name_plural = "Padrón DGII"
        ordering = ["razon_social"]
        indexes = [
            models.Index(fields=["estado"], name="idx_contribuyente_estado"),
        ]

    def __str__(self) -> str:
        return f"{self.rnc} - {self.razon_social}"

    @property
    def esta_activo(self) -> bool:
        return self.estado == EstadoContribuyente.ACTIVO
