# fiscal/services/reporte_dgii_service.py

from __future__ import annotations

import calendar
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.utils import timezone

from commons.exceptions import ErrorValidacion, IdentificadorMalformadoError, ViolacionEsquemaError
from compras.models import Compra, CompraEstado
from fiscal.dgii_xml import (
    EncabezadoDgii,
    RegistroDgii,
    ResumenTipo,
    TipoReporte,
    construir_xml,
    validar_xml_dgii,
)
from fiscal.models import ConfiguracionFiscal
from fiscal.services.itbis_service import redondear2
from fiscal.services.registro_service import (
    TipoIdentificador,
    ValidadorRegistro,
    codigo_tipo_identificacion,
)
from ventas.models import Venta, VentaEstado

logger = logging.getLogger("pos.fiscal")

RNC_CONSUMIDOR_FINAL = "000000000"

__all__ = [
    "AdvertenciaCumplimiento",
    "ReporteCumplimiento",
    "TipoReporte",
    "construir_reporte",
    "periodo_mensual",
]


@dataclass(frozen=True)
class AdvertenciaCumplimiento:
    codigo: str
    mensaje: str
    referencia: Optional[str] = None

    def as_dict(self) -> dict:
        return {"codigo": self.codigo, "mensaje": self.mensaje, "referencia": self.referencia}


@dataclass
class ReporteCumplimiento:
    tipo: TipoReporte
    inicio: date
    fin: date
    periodo: str
    xml: str
    registros: List[RegistroDgii]
    total_registros: int
    monto_total: Decimal
    itbis_total: Decimal
    desglose: Dict[str, ResumenTipo]
    advertencias: List[AdvertenciaCumplimiento] = field(default_factory=list)
    contrapartes_distintas: int = 0
    por_tipo_identificador: Dict[str, int] = field(default_factory=dict)
    excluidos_sin_ncf: int = 0
    generado_en: Optional[datetime] = None

    @property
    def nombre_archivo(self) -> str:
        return f"{self.tipo.value}_{self.periodo}.xml"

    def resumen(self) -> dict:
        """Vista previa JSON del reporte (sin el XML)."""
        return {
            "tipo": self.tipo.value,
            "periodo": self.periodo,
            "inicio": self.inicio.isoformat(),
            "fin": self.fin.isoformat(),
            "nombre_archivo": self.nombre_archivo,
            "total_registros": self.total_registros,
            "monto_total": "%.2f" % self.monto_total,
            "itbis_total": "%.2f" % self.itbis_total,
            "desglose_ncf": {
                prefijo: {
                    "cantidad": item.cantidad,
                    "monto": "%.2f" % item.monto,
                    "itbis": "%.2f" % item.itbis,
                }
                for prefijo, item in self.desglose.items()
            },
            "contrapartes_distintas": self.contrapartes_distintas,
            "tipos_contraparte": dict(self.por_tipo_identificador),
            "excluidos_sin_ncf": self.excluidos_sin_ncf,
            "advertencias": [a.as_dict() for a in self.advertencias],
            "validacion": {"valido": True, "errores": []},
            "generado_en": self.generado_en.isoformat() if self.generado_en else None,
        }


def periodo_mensual(anio: int, mes: int) -> Tuple[date, date]:
    if not 1 <= mes <= 12:
        raise ErrorValidacion(f"Mes inválido: {mes}.", mes=mes)
    ultimo = calendar.monthrange(anio, mes)[1]
    return date(anio, mes, 1), date(anio, mes, ultimo)


def _limites_datetime(inicio: date, fin: date) -> Tuple[datetime, datetime]:
    tz = timezone.get_current_timezone()
    return (
        timezone.make_aware(datetime.combine(inicio, time.min), tz),
        timezone.make_aware(datetime.combine(fin, time.max), tz),
    )


@dataclass(frozen=True)
class _Fuente:
    """Documento fuente normalizado (venta o compra)."""

    referencia: str
    ncf: str
    ncf_modificado: Optional[str]
    fecha: date
    subtotal: Decimal
    itbis: Decimal
    identificadores: Tuple[Optional[str], ...]


def _fuentes_ventas(inicio: date, fin: date) -> Tuple[List[_Fuente], int]:
    desde, hasta = _limites_datetime(inicio, fin)
    qs = (
        Venta.objects.select_related("cliente")
        .filter(estado=VentaEstado.COMPLETADA, created_at__gte=desde, created_at__lte=hasta)
        .order_by("created_at", "numero_venta")
    )

    fuentes: List[_Fuente] = []
    sin_ncf = 0
    for venta in qs:
        if not venta.ncf:
            sin_ncf += 1
            continue
        cliente = venta.cliente
        fuentes.append(
            _Fuente(
                referencia=venta.numero_venta,
                ncf=venta.ncf,
                ncf_modificado=venta.ncf_modificado or None,
                fecha=timezone.localtime(venta.created_at).date(),
                subtotal=venta.subtotal,
                itbis=venta.itbis,
                identificadores=(
                    venta.rnc_cliente,
                    cliente.rnc if cliente else None,
                    cliente.cedula if cliente else None,
                ),
            )
        )
    return fuentes, sin_ncf


def _fuentes_compras(inicio: date, fin: date) -> Tuple[List[_Fuente], int]:
    qs = Compra.objects.filter(
        estado=CompraEstado.COMPLETADA,
        fecha_comprobante__gte=inicio,
        fecha_comprobante__lte=fin,
    ).order_by("fecha_comprobante", "numero_orden")

    fuentes: List[_Fuente] = []
    sin_ncf = 0
    for compra in qs:
        if not compra.ncf:
            sin_ncf += 1
            continue
        fuentes.append(
            _Fuente(
                referencia=compra.numero_orden,
                ncf=compra.ncf,
                ncf_modificado=compra.ncf_modificado or None,
                fecha=compra.fecha_comprobante,
                subtotal=compra.subtotal,
                itbis=compra.itbis,
                identificadores=(compra.rnc_proveedor,),
            )
        )
    return fuentes, sin_ncf


def _resolver_contraparte(
    fuente: _Fuente,
    validador: ValidadorRegistro,
    advertencias: List[AdvertenciaCumplimiento],
) -> Tuple[str, Optional[TipoIdentificador]]:
    """
    Primer identificador no vacío de la fuente; sin ninguno, consumidor final.
    Retorna (rnc_para_reporte, tipo) donde tipo es None para consumidor final.
    """
    candidato = next((i.strip() for i in fuente.identificadores if i and i.strip()), None)
    if candidato is None:
        return RNC_CONSUMIDOR_FINAL, None

    try:
        tipo = validador.clasificar(candidato)
    except IdentificadorMalformadoError:
        advertencias.append(
            AdvertenciaCumplimiento(
                codigo="IDENTIFICADOR_MALFORMADO",
                mensaje=(
                    f"Identificador {candidato!r} malformado; se reporta como consumidor final."
                ),
                referencia=fuente.referencia,
            )
        )
        return RNC_CONSUMIDOR_FINAL, None

    if tipo is TipoIdentificador.PASAPORTE:
        return candidato, tipo
    return validador.normalizar(candidato), tipo


def construir_reporte(
    inicio: date,
    fin: date,
    tipo: TipoReporte,
    *,
    validador: Optional[ValidadorRegistro] = None,
    configuracion: Optional[ConfiguracionFiscal] = None,
    generado_en: Optional[datetime] = None,
) -> ReporteCumplimiento:
    """
    Arma el 606 (compras) o 607 (ventas) del período [inicio, fin].

    - Sólo documentos COMPLETADOS y con NCF.
    - El ITBIS guardado se reporta tal cual; si difiere de
      redondear2(subtotal * tasa) por más de la tolerancia se agrega una
      advertencia, nunca se rechaza.
    - Un reporte sin registros es válido (totales en cero).
    - Si el XML no pasa la verificación estructural se lanza
      ViolacionEsquemaError y no se devuelve artefacto.
    """
    tipo = TipoReporte(tipo)
    if fin < inicio:
        raise ErrorValidacion("El fin del período es anterior al inicio.", inicio=inicio, fin=fin)

    validador = validador or ValidadorRegistro()
    configuracion = configuracion or ConfiguracionFiscal.vigente()
    generado_en = generado_en or timezone.now()
    tasa = Decimal(configuracion.tasa_itbis)
    tolerancia = Decimal(str(settings.DGII_TOLERANCIA_ITBIS))

    if tipo is TipoReporte.VENTAS_607:
        fuentes, sin_ncf = _fuentes_ventas(inicio, fin)
    else:
        fuentes, sin_ncf = _fuentes_compras(inicio, fin)

    if sin_ncf:
        logger.info(
            "Documentos sin NCF excluidos del reporte DGII",
            extra={"event": "reporte_dgii_excluidos_sin_ncf", "tipo": tipo.value, "cantidad": sin_ncf},
        )

    advertencias: List[AdvertenciaCumplimiento] = []
    obsoleto = validador.advertencia_obsolescencia()
    if obsoleto:
        advertencias.append(AdvertenciaCumplimiento(codigo="REGISTRO_OBSOLETO", mensaje=obsoleto))

    registros: List[RegistroDgii] = []
    desglose: Dict[str, list] = {}
    contrapartes = set()
    por_tipo: Counter = Counter()
    monto_total = Decimal("0.00")
    itbis_total = Decimal("0.00")

    for fuente in fuentes:
        rnc, tipo_id = _resolver_contraparte(fuente, validador, advertencias)

        esperado = redondear2(fuente.subtotal * tasa)
        if abs(esperado - fuente.itbis) > tolerancia:
            advertencias.append(
                AdvertenciaCumplimiento(
                    codigo="ITBIS_DISCREPANTE",
                    mensaje=(
                        f"ITBIS registrado {fuente.itbis:.2f} difiere del esperado {esperado:.2f} "
                        f"para el NCF {fuente.ncf}."
                    ),
                    referencia=fuente.referencia,
                )
            )

        registros.append(
            RegistroDgii(
                rnc=rnc,
                tipo_identificacion=codigo_tipo_identificacion(tipo_id or TipoIdentificador.DESCONOCIDO),
                ncf=fuente.ncf,
                fecha=fuente.fecha,
                monto=redondear2(fuente.subtotal),
                itbis=redondear2(fuente.itbis),
                ncf_modificado=fuente.ncf_modificado,
            )
        )

        monto_total += fuente.subtotal
        itbis_total += fuente.itbis

        prefijo = fuente.ncf[:3]
        acumulado = desglose.setdefault(prefijo, [0, Decimal("0.00"), Decimal("0.00")])
        acumulado[0] += 1
        acumulado[1] += fuente.subtotal
        acumulado[2] += fuente.itbis

        if tipo_id is None:
            por_tipo["consumidor_final"] += 1
        else:
            contrapartes.add(rnc)
            por_tipo[tipo_id.value.lower()] += 1

    resumen_tipos = {
        prefijo: ResumenTipo(prefijo=prefijo, cantidad=c, monto=redondear2(m), itbis=redondear2(i))
        for prefijo, (c, m, i) in sorted(desglose.items())
    }

    periodo = inicio.strftime("%Y%m")
    encabezado = EncabezadoDgii(
        rnc_emisor=ValidadorRegistro.normalizar(configuracion.rnc_emisor),
        razon_social=configuracion.razon_social or configuracion.nombre_comercial,
        periodo=periodo,
        generado_en=generado_en,
        total_registros=len(registros),
        monto_total=redondear2(monto_total),
        itbis_total=redondear2(itbis_total),
        resumen_tipos=tuple(resumen_tipos.values()),
    )

    xml = construir_xml(tipo, encabezado, registros)
    errores = validar_xml_dgii(xml, tipo)
    if errores:
        logger.error(
            "Reporte DGII no cumple la estructura requerida",
            extra={"event": "reporte_dgii_invalido", "tipo": tipo.value, "periodo": periodo, "errores": errores},
        )
        raise ViolacionEsquemaError(
            f"El reporte {tipo.value} del período {periodo} no cumple la estructura DGII.",
            errores=errores,
        )

    reporte = ReporteCumplimiento(
        tipo=tipo,
        inicio=inicio,
        fin=fin,
        periodo=periodo,
        xml=xml,
        registros=registros,
        total_registros=len(registros),
        monto_total=encabezado.monto_total,
        itbis_total=encabezado.itbis_total,
        desglose=resumen_tipos,
        advertencias=advertencias,
        contrapartes_distintas=len(contrapartes),
        por_tipo_identificador=dict(por_tipo),
        excluidos_sin_ncf=sin_ncf,
        generado_en=generado_en,
    )

    logger.info(
        "Reporte DGII generado",
        extra={
            "event": "reporte_dgii_generado",
            "tipo": tipo.value,
            "periodo": periodo,
            "total_registros": reporte.total_registros,
            "advertencias": len(advertencias),
        },
    )
    return reporte
