# fiscal/services/numero_service.py

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F, Max
from django.utils import timezone

from commons.exceptions import (
    ConflictoTransitorioError,
    ErrorValidacion,
    SecuenciaAgotadaError,
    SecuenciaVencidaError,
    SinSecuenciaActivaError,
)
from fiscal.models import SecuenciaNcf, TipoComprobante
from fiscal.models.secuencia_ncf_models import NCF_DIGITOS, NCF_NUMERO_MAXIMO
from ventas.models import Venta

logger = logging.getLogger("pos.fiscal")

NCF_REGEX = re.compile(r"^[BE]\d{2}\d{8}$")


@dataclass(frozen=True)
class NcfAsignado:
    ncf: str
    secuencia_id: UUID
    numero: int


def formatear_ncf(tipo: str, numero: int) -> str:
    """B02 + 42 -> 'B0200000042'."""
    if numero < 1 or numero > NCF_NUMERO_MAXIMO:
        raise ErrorValidacion(
            f"Número de NCF fuera de rango: {numero}.",
            tipo=tipo,
            numero=numero,
        )
    return f"{tipo}{numero:0{NCF_DIGITOS}d}"


def validar_formato_ncf(ncf: Optional[str]) -> bool:
    return bool(ncf) and bool(NCF_REGEX.match(ncf))


def _validar_tipo(tipo: str) -> str:
    if tipo not in TipoComprobante.values:
        raise ErrorValidacion(
            f"Tipo de comprobante inválido: {tipo!r}.",
            tipo=tipo,
        )
    return tipo


def asignar_ncf(tipo: str, *, hoy: Optional[date] = None) -> NcfAsignado:
    """
    Entrega el próximo NCF de la secuencia activa del tipo indicado.

    Reglas:
      - Sin secuencia activa -> SinSecuenciaActivaError.
      - numero_actual + 1 > numero_maximo -> SecuenciaAgotadaError; el
        contador no se toca.
      - fecha_vencimiento < hoy -> SecuenciaVencidaError.
      - La fila de la secuencia se bloquea (select_for_update) y el avance es
        un compare-and-set sobre el valor leído. Si otra transacción avanzó
        primero, se lanza ConflictoTransitorioError para que el llamador
        reintente la unidad de trabajo completa.
      - Llamado dentro de otra transacción, se une a ella: si la unidad
        externa hace rollback, el número vuelve a estar disponible.
    """
    _validar_tipo(tipo)
    hoy = hoy or timezone.localdate()

    with transaction.atomic():
        secuencia = (
            SecuenciaNcf.objects.select_for_update()
            .only("id", "tipo", "numero_actual", "numero_maximo", "fecha_vencimiento")
            .filter(tipo=tipo, activo=True)
            .first()
        )

        if secuencia is None:
            raise SinSecuenciaActivaError(
                f"No hay secuencia NCF activa para el tipo {tipo}.",
                tipo=tipo,
            )

        proximo = secuencia.numero_actual + 1
        if proximo > secuencia.numero_maximo:
            raise SecuenciaAgotadaError(
                f"La secuencia NCF {tipo} está agotada "
                f"({secuencia.numero_actual}/{secuencia.numero_maximo}).",
                tipo=tipo,
                secuencia_id=secuencia.id,
            )

        if secuencia.vencida(hoy):
            raise SecuenciaVencidaError(
                f"La secuencia NCF {tipo} venció el {secuencia.fecha_vencimiento:%Y-%m-%d}.",
                tipo=tipo,
                secuencia_id=secuencia.id,
            )

        actualizadas = SecuenciaNcf.objects.filter(
            pk=secuencia.pk,
            activo=True,
            numero_actual=secuencia.numero_actual,
        ).update(numero_actual=F("numero_actual") + 1, updated_at=timezone.now())

        if actualizadas != 1:
            raise ConflictoTransitorioError(
                f"La secuencia NCF {tipo} fue modificada concurrentemente.",
                tipo=tipo,
                secuencia_id=secuencia.id,
            )

    ncf = formatear_ncf(tipo, proximo)
    logger.info(
        "NCF asignado",
        extra={
            "event": "ncf_asignado",
            "tipo": tipo,
            "ncf": ncf,
            "secuencia_id": str(secuencia.id),
            "restantes": secuencia.numero_maximo - proximo,
        },
    )
    return NcfAsignado(ncf=ncf, secuencia_id=secuencia.id, numero=proximo)


# ---------------------------------------------------------------------------
# Administración de secuencias
# ---------------------------------------------------------------------------


def ultimo_numero_emitido(tipo: str) -> int:
    """Mayor número de NCF ya usado para el tipo, en secuencias o en ventas."""
    en_secuencias = SecuenciaNcf.objects.filter(tipo=tipo).aggregate(m=Max("numero_actual"))["m"] or 0
    ultimo_ncf = (
        Venta.objects.filter(ncf__startswith=tipo)
        .order_by("-ncf")
        .values_list("ncf", flat=True)
        .first()
    )
    en_ventas = int(ultimo_ncf[len(tipo):]) if ultimo_ncf and validar_formato_ncf(ultimo_ncf) else 0
    return max(en_secuencias, en_ventas)


def crear_secuencia(
    tipo: str,
    numero_maximo: int,
    numero_actual: int = 0,
    fecha_vencimiento: Optional[date] = None,
) -> SecuenciaNcf:
    """
    Registra un nuevo rango autorizado. Sólo una secuencia activa por tipo:
    la anterior debe retirarse antes de cargar la nueva. El rango nuevo debe
    arrancar en o después del último número ya emitido para el tipo.
    """
    _validar_tipo(tipo)

    if numero_maximo < 1 or numero_maximo > NCF_NUMERO_MAXIMO:
        raise ErrorValidacion(
            f"numero_maximo debe estar entre 1 y {NCF_NUMERO_MAXIMO}.",
            numero_maximo=numero_maximo,
        )
    if numero_actual < 0 or numero_actual > numero_maximo:
        raise ErrorValidacion(
            "numero_actual debe estar entre 0 y numero_maximo.",
            numero_actual=numero_actual,
            numero_maximo=numero_maximo,
        )

    try:
        with transaction.atomic():
            if SecuenciaNcf.objects.filter(tipo=tipo, activo=True).exists():
                raise ErrorValidacion(
                    f"Ya existe una secuencia activa para el tipo {tipo}.",
                    tipo=tipo,
                )
            emitido = ultimo_numero_emitido(tipo)
            if numero_actual < emitido:
                raise ErrorValidacion(
                    f"El tipo {tipo} ya emitió hasta {formatear_ncf(tipo, emitido)}; "
                    f"numero_actual debe ser al menos {emitido}.",
                    tipo=tipo,
                    numero_actual=numero_actual,
                    ultimo_emitido=emitido,
                )
            secuencia = SecuenciaNcf.objects.create(
                tipo=tipo,
                numero_actual=numero_actual,
                numero_maximo=numero_maximo,
                fecha_vencimiento=fecha_vencimiento,
                activo=True,
            )
    except IntegrityError as exc:
        raise ErrorValidacion(
            f"Ya existe una secuencia activa para el tipo {tipo}.",
            tipo=tipo,
        ) from exc

    logger.info(
        "Secuencia NCF creada",
        extra={
            "event": "secuencia_ncf_creada",
            "tipo": tipo,
            "secuencia_id": str(secuencia.id),
            "numero_maximo": numero_maximo,
        },
    )
    return secuencia


def retirar_secuencia(secuencia: SecuenciaNcf) -> bool:
    """
    Retira una secuencia. Si nunca emitió un número se borra; si ya emitió,
    sólo se desactiva (los NCF emitidos siguen apuntando a ella).

    Retorna True si la fila fue borrada.
    """
    with transaction.atomic():
        bloqueada = SecuenciaNcf.objects.select_for_update().get(pk=secuencia.pk)
        if bloqueada.numero_actual == 0 and not bloqueada.ventas.exists():
            bloqueada.delete()
            borrada = True
        else:
            bloqueada.activo = False
            bloqueada.save(update_fields=["activo", "updated_at"])
            borrada = False

    logger.info(
        "Secuencia NCF retirada",
        extra={
            "event": "secuencia_ncf_retirada",
            "tipo": secuencia.tipo,
            "secuencia_id": str(secuencia.pk),
            "borrada": borrada,
        },
    )
    return borrada
