# tests/fiscal/test_dgii_xml.py

from datetime import date, datetime, timezone
from decimal import Decimal

from lxml import etree

from fiscal.dgii_xml import (
    EncabezadoDgii,
    RegistroDgii,
    ResumenTipo,
    TipoReporte,
    construir_xml,
    namespace_de,
    validar_xml_dgii,
)

GENERADO = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _encabezado(**kwargs):
    datos = {
        "rnc_emisor": "131246754",
        "razon_social": "Colmado La Esquina SRL",
        "periodo": "202405",
        "generado_en": GENERADO,
        "total_registros": 1,
        "monto_total": Decimal("1000.00"),
        "itbis_total": Decimal("180.00"),
        "resumen_tipos": (ResumenTipo("B01", 1, Decimal("1000.00"), Decimal("180.00")),),
    }
    datos.update(kwargs)
    return EncabezadoDgii(**datos)


def _registro(**kwargs):
    datos = {
        "rnc": "101000783",
        "tipo_identificacion": "1",
        "ncf": "B0100000001",
        "fecha": date(2024, 5, 15),
        "monto": Decimal("1000.00"),
        "itbis": Decimal("180.00"),
    }
    datos.update(kwargs)
    return RegistroDgii(**datos)


def test_607_estructura_y_namespaces():
    xml = construir_xml(TipoReporte.VENTAS_607, _encabezado(), [_registro()])

    assert xml.startswith("<?xml version='1.0' encoding='UTF-8'?>")
    raiz = etree.fromstring(xml.encode("utf-8"))
    ns = namespace_de(TipoReporte.VENTAS_607)

    assert ns == "http://www.dgii.gov.do/rc/schemas/rc607"
    assert raiz.tag == f"{{{ns}}}RC607"
    assert raiz.nsmap["DGII"] == ns
    assert raiz.get("{http://www.w3.org/2001/XMLSchema-instance}schemaLocation") == f"{ns} RC607.xsd"

    cab = raiz.find(f"{{{ns}}}Encabezado")
    assert cab.findtext(f"{{{ns}}}RNCEmisor") == "131246754"
    assert cab.findtext(f"{{{ns}}}Periodo") == "202405"
    assert cab.findtext(f"{{{ns}}}MontoTotalVentas") == "1000.00"
    assert cab.findtext(f"{{{ns}}}MontoTotalITBIS") == "180.00"
    assert cab.findtext(f"{{{ns}}}ResumenTipos/{{{ns}}}Tipo/{{{ns}}}Prefijo") == "B01"

    venta = raiz.find(f"{{{ns}}}DetalleVentas/{{{ns}}}Venta")
    assert venta.findtext(f"{{{ns}}}RNCComprador") == "101000783"
    assert venta.findtext(f"{{{ns}}}FechaComprobante") == "2024-05-15"
    assert venta.find(f"{{{ns}}}NCFModificado") is None

    assert validar_xml_dgii(xml, TipoReporte.VENTAS_607) == []


def test_606_usa_elementos_de_compras():
    xml = construir_xml(TipoReporte.COMPRAS_606, _encabezado(), [_registro()])

    assert "DGII:RC606" in xml
    assert "<DGII:MontoTotalCompras>1000.00</DGII:MontoTotalCompras>" in xml
    assert "<DGII:RNCProveedor>101000783</DGII:RNCProveedor>" in xml
    assert validar_xml_dgii(xml, TipoReporte.COMPRAS_606) == []


def test_ncf_modificado_solo_cuando_existe():
    xml = construir_xml(
        TipoReporte.VENTAS_607,
        _encabezado(total_registros=2),
        [_registro(), _registro(ncf="B0400000001", ncf_modificado="B0100000001")],
    )

    assert xml.count("<DGII:NCFModificado>") == 1
    assert "<DGII:NCFModificado>B0100000001</DGII:NCFModificado>" in xml
    assert validar_xml_dgii(xml, TipoReporte.VENTAS_607) == []


def test_reporte_vacio_emite_contenedor_y_es_valido():
    xml = construir_xml(
        TipoReporte.VENTAS_607,
        _encabezado(total_registros=0, monto_total=Decimal("0"), itbis_total=Decimal("0"), resumen_tipos=()),
        [],
    )

    assert "<DGII:DetalleVentas/>" in xml
    assert "<DGII:MontoTotalVentas>0.00</DGII:MontoTotalVentas>" in xml
    assert validar_xml_dgii(xml, TipoReporte.VENTAS_607) == []


def test_validar_detecta_rnc_emisor_y_periodo_invalidos():
    xml = construir_xml(TipoReporte.VENTAS_607, _encabezado(rnc_emisor="12345", periodo="202413"), [_registro()])

    errores = validar_xml_dgii(xml, TipoReporte.VENTAS_607)

    assert any("RNCEmisor" in e for e in errores)
    assert any("Periodo" in e for e in errores)


def test_validar_trata_encabezado_vacio_como_faltante():
    xml = construir_xml(
        TipoReporte.VENTAS_607,
        _encabezado(rnc_emisor="", razon_social="  ", periodo=""),
        [_registro()],
    )

    errores = validar_xml_dgii(xml, TipoReporte.VENTAS_607)

    assert "Falta el elemento requerido: RNCEmisor." in errores
    assert "Falta el elemento requerido: RazonSocial." in errores
    assert "Falta el elemento requerido: Periodo." in errores


def test_validar_detecta_total_registros_inconsistente():
    xml = construir_xml(TipoReporte.VENTAS_607, _encabezado(total_registros=2), [_registro()])

    errores = validar_xml_dgii(xml, TipoReporte.VENTAS_607)

    assert any("TotalRegistros" in e for e in errores)


def test_validar_detecta_formatos_de_detalle():
    xml = construir_xml(TipoReporte.VENTAS_607, _encabezado(), [_registro()])
    xml = xml.replace("<DGII:MontoFacturado>1000.00<", "<DGII:MontoFacturado>1000,00<")
    xml = xml.replace("2024-05-15", "15/05/2024")

    errores = validar_xml_dgii(xml, TipoReporte.VENTAS_607)

    assert any("MontoFacturado" in e for e in errores)
    assert any("FechaComprobante" in e for e in errores)


def test_validar_xml_mal_formado_y_raiz_equivocada():
    assert validar_xml_dgii("<DGII:RC607", TipoReporte.VENTAS_607)[0].startswith("XML mal formado")

    xml_606 = construir_xml(TipoReporte.COMPRAS_606, _encabezado(), [_registro()])
    errores = validar_xml_dgii(xml_606, TipoReporte.VENTAS_607)
    assert errores and "raíz" in errores[0]
