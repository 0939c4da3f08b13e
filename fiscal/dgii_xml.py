# fiscal/dgii_xml.py
"""
Serialización y verificación estructural de los formatos de envío 606
(compras) y 607 (ventas) de la DGII.

Sólo arma y revisa XML; la selección de registros y los totales vienen
calculados desde fiscal.services.reporte_dgii_service.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from lxml import etree

XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
DGII_NS_BASE = "http://www.dgii.gov.do/rc/schemas/"

_RE_RNC_EMISOR = re.compile(r"^(\d{9}|\d{11})$")
_RE_PERIODO = re.compile(r"^\d{4}(0[1-9]|1[0-2])$")
_RE_MONTO = re.compile(r"^-?\d+\.\d{2}$")
_RE_FECHA = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_RE_NCF = re.compile(r"^[BE]\d{2}\d{8}$")
_TIPOS_IDENTIFICACION = {"1", "2", "3"}


class TipoReporte(str, Enum):
    COMPRAS_606 = "606"
    VENTAS_607 = "607"


@dataclass(frozen=True)
class _Formato:
    raiz: str
    monto_total: str
    detalle: str
    registro: str
    contraparte: str


_FORMATOS: Dict[TipoReporte, _Formato] = {
    TipoReporte.COMPRAS_606: _Formato(
        raiz="RC606",
        monto_total="MontoTotalCompras",
        detalle="DetalleCompras",
        registro="Compra",
        contraparte="RNCProveedor",
    ),
    TipoReporte.VENTAS_607: _Formato(
        raiz="RC607",
        monto_total="MontoTotalVentas",
        detalle="DetalleVentas",
        registro="Venta",
        contraparte="RNCComprador",
    ),
}

_HIJOS_REGISTRO = (
    "TipoIdentificacion",
    "NumeroComprobanteFiscal",
    "FechaComprobante",
    "MontoFacturado",
    "ITBISFacturado",
)


@dataclass(frozen=True)
class RegistroDgii:
    """Una línea de DetalleCompras / DetalleVentas."""

    rnc: str
    tipo_identificacion: str
    ncf: str
    fecha: date
    monto: Decimal
    itbis: Decimal
    ncf_modificado: Optional[str] = None


@dataclass(frozen=True)
class ResumenTipo:
    prefijo: str
    cantidad: int
    monto: Decimal
    itbis: Decimal


@dataclass(frozen=True)
class EncabezadoDgii:
    rnc_emisor: str
    razon_social: str
    periodo: str
    generado_en: datetime
    total_registros: int
    monto_total: Decimal
    itbis_total: Decimal
    resumen_tipos: Sequence[ResumenTipo] = field(default_factory=tuple)


def namespace_de(tipo: TipoReporte) -> str:
    return f"{DGII_NS_BASE}rc{TipoReporte(tipo).value}"


def formatear_monto(valor: Decimal) -> str:
    return "%.2f" % Decimal(valor)


def _sub(padre: etree._Element, ns: str, nombre: str, texto) -> etree._Element:
    elem = etree.SubElement(padre, f"{{{ns}}}{nombre}")
    elem.text = str(texto)
    return elem


def construir_xml(
    tipo: TipoReporte,
    encabezado: EncabezadoDgii,
    registros: Sequence[RegistroDgii],
) -> str:
    """Devuelve el documento completo, con declaración XML, como texto UTF-8."""
    tipo = TipoReporte(tipo)
    formato = _FORMATOS[tipo]
    ns = namespace_de(tipo)

    raiz = etree.Element(f"{{{ns}}}{formato.raiz}", nsmap={"DGII": ns, "xsi": XSI_NS})
    raiz.set(f"{{{XSI_NS}}}schemaLocation", f"{ns} {formato.raiz}.xsd")

    cab = etree.SubElement(raiz, f"{{{ns}}}Encabezado")
    _sub(cab, ns, "RNCEmisor", encabezado.rnc_emisor)
    _sub(cab, ns, "RazonSocial", encabezado.razon_social)
    _sub(cab, ns, "Periodo", encabezado.periodo)
    _sub(cab, ns, "FechaHoraGeneracion", encabezado.generado_en.isoformat(timespec="seconds"))
    _sub(cab, ns, "TotalRegistros", encabezado.total_registros)
    _sub(cab, ns, formato.monto_total, formatear_monto(encabezado.monto_total))
    _sub(cab, ns, "MontoTotalITBIS", formatear_monto(encabezado.itbis_total))

    if encabezado.resumen_tipos:
        resumen = etree.SubElement(cab, f"{{{ns}}}ResumenTipos")
        for item in encabezado.resumen_tipos:
            t = etree.SubElement(resumen, f"{{{ns}}}Tipo")
            _sub(t, ns, "Prefijo", item.prefijo)
            _sub(t, ns, "Cantidad", item.cantidad)
            _sub(t, ns, "Monto", formatear_monto(item.monto))
            _sub(t, ns, "ITBIS", formatear_monto(item.itbis))

    # el contenedor se emite aunque no haya registros
    detalle = etree.SubElement(raiz, f"{{{ns}}}{formato.detalle}")
    for reg in registros:
        r = etree.SubElement(detalle, f"{{{ns}}}{formato.registro}")
        _sub(r, ns, formato.contraparte, reg.rnc)
        _sub(r, ns, "TipoIdentificacion", reg.tipo_identificacion)
        _sub(r, ns, "NumeroComprobanteFiscal", reg.ncf)
        if reg.ncf_modificado:
            _sub(r, ns, "NCFModificado", reg.ncf_modificado)
        _sub(r, ns, "FechaComprobante", reg.fecha.strftime("%Y-%m-%d"))
        _sub(r, ns, "MontoFacturado", formatear_monto(reg.monto))
        _sub(r, ns, "ITBISFacturado", formatear_monto(reg.itbis))

    return etree.tostring(
        raiz,
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    ).decode("utf-8")


def _texto(padre: etree._Element, ns: str, nombre: str) -> Optional[str]:
    elem = padre.find(f"{{{ns}}}{nombre}")
    if elem is None:
        return None
    return (elem.text or "").strip()


def validar_xml_dgii(xml: Union[str, bytes], tipo: TipoReporte) -> List[str]:
    """
    Revisión estructural mínima del 606/607. Devuelve la lista de errores
    (vacía si el documento es aceptable).
    """
    tipo = TipoReporte(tipo)
    formato = _FORMATOS[tipo]
    ns = namespace_de(tipo)
    errores: List[str] = []

    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    try:
        raiz = etree.fromstring(xml)
    except etree.XMLSyntaxError as exc:
        return [f"XML mal formado: {exc}"]

    if raiz.tag != f"{{{ns}}}{formato.raiz}":
        errores.append(f"Elemento raíz inesperado: {raiz.tag} (se esperaba DGII:{formato.raiz}).")
        return errores

    cab = raiz.find(f"{{{ns}}}Encabezado")
    if cab is None:
        errores.append("Falta el elemento requerido: Encabezado.")
    else:
        requeridos = (
            "RNCEmisor",
            "RazonSocial",
            "Periodo",
            "FechaHoraGeneracion",
            "TotalRegistros",
            formato.monto_total,
            "MontoTotalITBIS",
        )
        valores = {nombre: _texto(cab, ns, nombre) for nombre in requeridos}
        for nombre, valor in valores.items():
            if not valor:
                errores.append(f"Falta el elemento requerido: {nombre}.")

        rnc = valores["RNCEmisor"]
        if rnc and not _RE_RNC_EMISOR.match(rnc):
            errores.append(f"RNCEmisor inválido: {rnc!r} (debe tener 9 u 11 dígitos).")

        periodo = valores["Periodo"]
        if periodo and not _RE_PERIODO.match(periodo):
            errores.append(f"Periodo inválido: {periodo!r} (formato AAAAMM).")

        for nombre in (formato.monto_total, "MontoTotalITBIS"):
            monto = valores[nombre]
            if monto and not _RE_MONTO.match(monto):
                errores.append(f"{nombre} con formato de monto inválido: {monto!r}.")

    detalle = raiz.find(f"{{{ns}}}{formato.detalle}")
    if detalle is None:
        errores.append(f"Falta el elemento requerido: {formato.detalle}.")
        registros = []
    else:
        registros = detalle.findall(f"{{{ns}}}{formato.registro}")

    for pos, reg in enumerate(registros, start=1):
        prefijo = f"{formato.registro} #{pos}"
        contraparte = _texto(reg, ns, formato.contraparte)
        if not contraparte:
            errores.append(f"{prefijo}: falta {formato.contraparte}.")
        hijos = {nombre: _texto(reg, ns, nombre) for nombre in _HIJOS_REGISTRO}
        for nombre, valor in hijos.items():
            if not valor:
                errores.append(f"{prefijo}: falta {nombre}.")

        tipo_id = hijos["TipoIdentificacion"]
        if tipo_id and tipo_id not in _TIPOS_IDENTIFICACION:
            errores.append(f"{prefijo}: TipoIdentificacion inválido {tipo_id!r}.")
        ncf = hijos["NumeroComprobanteFiscal"]
        if ncf and not _RE_NCF.match(ncf):
            errores.append(f"{prefijo}: NCF inválido {ncf!r}.")
        modificado = _texto(reg, ns, "NCFModificado")
        if modificado is not None and not _RE_NCF.match(modificado):
            errores.append(f"{prefijo}: NCFModificado inválido {modificado!r}.")
        fecha = hijos["FechaComprobante"]
        if fecha and not _RE_FECHA.match(fecha):
            errores.append(f"{prefijo}: FechaComprobante inválida {fecha!r}.")
        for nombre in ("MontoFacturado", "ITBISFacturado"):
            monto = hijos[nombre]
            if monto and not _RE_MONTO.match(monto):
                errores.append(f"{prefijo}: {nombre} con formato inválido {monto!r}.")

    if cab is not None and detalle is not None:
        total = _texto(cab, ns, "TotalRegistros")
        if total is not None and total != str(len(registros)):
            errores.append(
                f"TotalRegistros ({total}) no coincide con la cantidad de registros ({len(registros)})."
            )

    return errores
