# fiscal/models/secuencia_ncf_models.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

NCF_NUMERO_MAXIMO = 99_999_999
NCF_DIGITOS = 8


class TipoComprobante(models.TextChoices):
    """
    Tipos de comprobante fiscal (NCF serie B) definidos por la DGII.
    Cada tipo tiene su propia secuencia independiente.
    """

    CREDITO_FISCAL = "B01", "Factura de Crédito Fiscal"
    CONSUMO = "B02", "Factura de Consumo"
    NOTA_DEBITO = "B03", "Nota de Débito"
    NOTA_CREDITO = "B04", "Nota de Crédito"
    COMPRAS = "B11", "Comprobante de Compras"
    REGISTRO_UNICO_INGRESOS = "B12", "Registro Único de Ingresos"
    GASTOS_MENORES = "B13", "Comprobante para Gastos Menores"
    REGIMENES_ESPECIALES = "B14", "Comprobante para Regímenes Especiales"
    GUBERNAMENTAL = "B15", "Comprobante Gubernamental"

    @classmethod
    def requiere_rnc(cls, tipo) -> bool:
        """Tipos que sólo pueden emitirse a un contribuyente registrado y activo."""
        return tipo in _TIPOS_REQUIEREN_RNC

    @classmethod
    def es_nota(cls, tipo) -> bool:
        return tipo in _TIPOS_NOTA


_TIPOS_REQUIEREN_RNC = frozenset(
    {
        TipoComprobante.CREDITO_FISCAL,
        TipoComprobante.REGIMENES_ESPECIALES,
        TipoComprobante.GUBERNAMENTAL,
    }
)
_TIPOS_NOTA = frozenset({TipoComprobante.NOTA_DEBITO, TipoComprobante.NOTA_CREDITO})


class EstadoAlertaSecuencia(models.TextChoices):
    ACTIVA = "ACTIVA", "Activa"
    ADVERTENCIA = "ADVERTENCIA", "Pocos números disponibles"
    CRITICA = "CRITICA", "Números casi agotados"
    AGOTADA = "AGOTADA", "Agotada"
    VENCIDA = "VENCIDA", "Vencida"


class SecuenciaNcf(models.Model):
    """
    Rango autorizado por la DGII para un tipo de comprobante.

    - numero_actual: último número emitido (el próximo es numero_actual + 1).
    - Sólo el asignador (fiscal.services.numero_service) modifica numero_actual,
      una vez por emisión y siempre hacia arriba.
    - Una secuencia usada nunca se borra; se desactiva.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    tipo = models.CharField(
        max_length=3,
        choices=TipoComprobante.choices,
        help_text="Tipo de comprobante (prefijo del NCF).",
    )

    numero_actual = models.PositiveIntegerField(
        default=0,
        help_text="Último número utilizado. Próximo será numero_actual + 1.",
    )

    numero_maximo = models.PositiveIntegerField(
        help_text="Último número autorizado por la DGII para este rango.",
    )

    activo = models.BooleanField(
        default=True,
        help_text="Sólo puede haber una secuencia activa por tipo.",
    )

    fecha_vencimiento = models.DateField(
        null=True,
        blank=True,
        help_text="A partir del día siguiente la secuencia no emite más números.",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "secuencia_ncf"
        verbose_name = "Secuencia NCF"
        verbose_name_plural = "Secuencias NCF"
        ordering = ["tipo", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tipo"],
                condition=Q(activo=True),
                name="uniq_secuencia_activa_por_tipo",
            ),
            models.CheckConstraint(
                condition=Q(numero_actual__lte=models.F("numero_maximo")),
                name="ck_secuencia_actual_lte_maximo",
            ),
            models.CheckConstraint(
                condition=Q(numero_maximo__gte=1) & Q(numero_maximo__lte=NCF_NUMERO_MAXIMO),
                name="ck_secuencia_maximo_rango",
            ),
        ]
        indexes = [
            models.Index(fields=["tipo", "activo"], name="idx_secuencia_tipo_activo"),
        ]

    def __str__(self) -> str:
        return f"{self.tipo} ({self.numero_actual}/{self.numero_maximo})"

    # ------------------------------------------------------------------
    # Estado de uso (sólo lectura, para tableros y alertas)
    # ------------------------------------------------------------------
    @property
    def proximo_numero(self) -> int:
        return self.numero_actual + 1

    @property
    def disponibles(self) -> int:
        return max(self.numero_maximo - self.numero_actual, 0)

    @property
    def agotada(self) -> bool:
        return self.numero_actual >= self.numero_maximo

    @property
    def porcentaje_uso(self) -> int:
        if not self.numero_maximo:
            return 100
        return round(self.numero_actual * 100 / self.numero_maximo)

    def vencida(self, hoy=None) -> bool:
        if self.fecha_vencimiento is None:
            return False
        hoy = hoy or timezone.localdate()
        return self.fecha_vencimiento < hoy

    def estado_alerta(self, hoy=None) -> str:
        if self.vencida(hoy):
            return EstadoAlertaSecuencia.VENCIDA
        if self.agotada:
            return EstadoAlertaSecuencia.AGOTADA
        if self.disponibles <= settings.NCF_UMBRAL_CRITICO:
            return EstadoAlertaSecuencia.CRITICA
        if self.disponibles <= settings.NCF_UMBRAL_ADVERTENCIA:
            return EstadoAlertaSecuencia.ADVERTENCIA
        return EstadoAlertaSecuencia.ACTIVA
