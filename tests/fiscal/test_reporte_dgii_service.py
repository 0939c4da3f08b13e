# tests/fiscal/test_reporte_dgii_service.py

import itertools
import logging
from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal

import pytest
from django.utils import timezone
from lxml import etree

from commons.exceptions import ViolacionEsquemaError
from compras.models import CompraEstado
from fiscal.dgii_xml import namespace_de, validar_xml_dgii
from fiscal.services.reporte_dgii_service import (
    RNC_CONSUMIDOR_FINAL,
    TipoReporte,
    construir_reporte,
    periodo_mensual,
)
from ventas.models import MetodoPago, Venta, VentaEstado

GENERADO = datetime(2024, 6, 1, 8, 30, tzinfo=dt_timezone.utc)
_numeros = itertools.count(1)


def _venta(ncf, subtotal, itbis, **kwargs):
    subtotal = Decimal(subtotal)
    itbis = Decimal(itbis)
    datos = {
        "numero_venta": f"VTA-{next(_numeros):06d}",
        "ncf": ncf,
        "tipo_comprobante": ncf[:3] if ncf else None,
        "subtotal": subtotal,
        "itbis": itbis,
        "total": subtotal + itbis,
        "metodo_pago": MetodoPago.EFECTIVO,
        "estado": VentaEstado.COMPLETADA,
    }
    datos.update(kwargs)
    return Venta.objects.create(**datos)


def _mes_actual():
    hoy = timezone.localdate()
    return periodo_mensual(hoy.year, hoy.month)


def test_periodo_mensual():
    assert periodo_mensual(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert periodo_mensual(2023, 12) == (date(2023, 12, 1), date(2023, 12, 31))


@pytest.mark.django_db
def test_reporte_vacio_es_valido(configuracion_fiscal, contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    inicio, fin = periodo_mensual(2024, 5)

    reporte = construir_reporte(
        inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal, generado_en=GENERADO
    )

    assert reporte.total_registros == 0
    assert reporte.monto_total == Decimal("0.00")
    assert reporte.itbis_total == Decimal("0.00")
    assert reporte.desglose == {}
    assert reporte.advertencias == []
    assert reporte.nombre_archivo == "607_202405.xml"
    assert "<DGII:DetalleVentas/>" in reporte.xml
    assert "<DGII:FechaHoraGeneracion>2024-06-01T08:30:00+00:00</DGII:FechaHoraGeneracion>" in reporte.xml
    assert validar_xml_dgii(reporte.xml, TipoReporte.VENTAS_607) == []


@pytest.mark.django_db
def test_607_totales_desglose_y_contrapartes(configuracion_fiscal, contribuyente_factory, cliente_factory):
    """
    Escenario:
    - B01 a contribuyente registrado, B02 a consumidor final, B02 a cliente
      con cédula, una venta sin NCF y una venta cancelada.

    Esperado:
    - 3 registros; la venta sin NCF y la cancelada quedan fuera.
    - Desglose por prefijo y conteo por tipo de contraparte.
    """
    contribuyente_factory(rnc="101000783")
    cliente = cliente_factory(cedula="40212345678")

    _venta("B0100000001", "1000.00", "180.00", rnc_cliente="101000783")
    _venta("B0200000001", "100.00", "18.00")
    _venta("B0200000002", "50.00", "9.00", cliente=cliente)
    _venta(None, "30.00", "5.40")
    _venta("B0200000003", "70.00", "12.60", estado=VentaEstado.CANCELADA)

    inicio, fin = _mes_actual()
    reporte = construir_reporte(
        inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal, generado_en=GENERADO
    )

    assert reporte.total_registros == 3
    assert reporte.monto_total == Decimal("1150.00")
    assert reporte.itbis_total == Decimal("207.00")
    assert reporte.excluidos_sin_ncf == 1
    assert reporte.desglose["B01"].cantidad == 1
    assert reporte.desglose["B02"].cantidad == 2
    assert reporte.desglose["B02"].monto == Decimal("150.00")
    assert reporte.desglose["B02"].itbis == Decimal("27.00")
    assert reporte.por_tipo_identificador == {"rnc": 1, "consumidor_final": 1, "cedula": 1}
    assert reporte.contrapartes_distintas == 2

    por_ncf = {r.ncf: r for r in reporte.registros}
    assert por_ncf["B0100000001"].rnc == "101000783"
    assert por_ncf["B0100000001"].tipo_identificacion == "1"
    assert por_ncf["B0200000001"].rnc == RNC_CONSUMIDOR_FINAL
    assert por_ncf["B0200000002"].rnc == "40212345678"
    assert por_ncf["B0200000002"].tipo_identificacion == "2"

    ns = namespace_de(TipoReporte.VENTAS_607)
    raiz = etree.fromstring(reporte.xml.encode("utf-8"))
    assert raiz.findtext(f"{{{ns}}}Encabezado/{{{ns}}}TotalRegistros") == "3"
    assert raiz.findtext(f"{{{ns}}}Encabezado/{{{ns}}}MontoTotalVentas") == "1150.00"
    assert len(raiz.findall(f"{{{ns}}}DetalleVentas/{{{ns}}}Venta")) == 3

    resumen = reporte.resumen()
    assert resumen["total_registros"] == 3
    assert resumen["monto_total"] == "1150.00"
    assert resumen["desglose_ncf"]["B02"] == {"cantidad": 2, "monto": "150.00", "itbis": "27.00"}
    assert resumen["validacion"] == {"valido": True, "errores": []}


@pytest.mark.django_db
def test_607_excluye_ventas_fuera_del_periodo(configuracion_fiscal, contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    venta = _venta("B0200000001", "100.00", "18.00")
    Venta.objects.filter(pk=venta.pk).update(created_at=timezone.now() - timedelta(days=45))
    _venta("B0200000002", "200.00", "36.00")

    inicio, fin = _mes_actual()
    reporte = construir_reporte(inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal)

    assert [r.ncf for r in reporte.registros] == ["B0200000002"]


@pytest.mark.django_db
def test_itbis_discrepante_es_advertencia(configuracion_fiscal, contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    _venta("B0200000001", "100.00", "18.00")
    _venta("B0200000002", "100.00", "17.50")

    inicio, fin = _mes_actual()
    reporte = construir_reporte(inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal)

    assert reporte.total_registros == 2
    assert reporte.itbis_total == Decimal("35.50")
    codigos = [a.codigo for a in reporte.advertencias]
    assert codigos == ["ITBIS_DISCREPANTE"]
    assert "B0200000002" in reporte.advertencias[0].mensaje


@pytest.mark.django_db
def test_identificador_malformado_usa_consumidor_final(configuracion_fiscal, contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    _venta("B0200000001", "100.00", "18.00", rnc_cliente="12345")

    inicio, fin = _mes_actual()
    reporte = construir_reporte(inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal)

    assert reporte.registros[0].rnc == RNC_CONSUMIDOR_FINAL
    assert [a.codigo for a in reporte.advertencias] == ["IDENTIFICADOR_MALFORMADO"]


@pytest.mark.django_db
def test_ncf_modificado_en_el_607(configuracion_fiscal, contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    _venta("B0400000001", "50.00", "9.00", ncf_modificado="B0100000007", rnc_cliente="101000783")

    inicio, fin = _mes_actual()
    reporte = construir_reporte(inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal)

    assert "<DGII:NCFModificado>B0100000007</DGII:NCFModificado>" in reporte.xml


@pytest.mark.django_db
def test_padron_obsoleto_se_informa_como_advertencia(configuracion_fiscal):
    inicio, fin = periodo_mensual(2024, 5)

    reporte = construir_reporte(inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal)

    assert [a.codigo for a in reporte.advertencias] == ["REGISTRO_OBSOLETO"]


@pytest.mark.django_db
def test_606_toma_compras_completadas_del_periodo(configuracion_fiscal, contribuyente_factory, compra_factory):
    contribuyente_factory(rnc="101000783")
    inicio, fin = periodo_mensual(2024, 5)

    compra_factory(fecha_comprobante=date(2024, 5, 3), ncf="B0100000010")
    compra_factory(fecha_comprobante=date(2024, 5, 31), ncf="B1100000001", rnc_proveedor="", subtotal=Decimal("200.00"), itbis=Decimal("36.00"), total=Decimal("236.00"))
    compra_factory(fecha_comprobante=date(2024, 6, 1), ncf="B0100000011")
    compra_factory(fecha_comprobante=date(2024, 5, 10), ncf="B0100000012", estado=CompraEstado.PENDIENTE)

    reporte = construir_reporte(inicio, fin, TipoReporte.COMPRAS_606, configuracion=configuracion_fiscal)

    assert reporte.total_registros == 2
    assert reporte.monto_total == Decimal("1200.00")
    assert reporte.itbis_total == Decimal("216.00")
    assert reporte.nombre_archivo == "606_202405.xml"
    assert "<DGII:RNCProveedor>101000783</DGII:RNCProveedor>" in reporte.xml
    assert f"<DGII:RNCProveedor>{RNC_CONSUMIDOR_FINAL}</DGII:RNCProveedor>" in reporte.xml
    assert validar_xml_dgii(reporte.xml, TipoReporte.COMPRAS_606) == []


@pytest.mark.django_db
def test_rnc_emisor_invalido_lanza_violacion_de_esquema(configuracion_fiscal, caplog):
    configuracion_fiscal.rnc_emisor = "123"
    configuracion_fiscal.save()
    inicio, fin = periodo_mensual(2024, 5)
    caplog.set_level(logging.ERROR, logger="pos.fiscal")

    with pytest.raises(ViolacionEsquemaError) as exc:
        construir_reporte(inicio, fin, TipoReporte.VENTAS_607, configuracion=configuracion_fiscal)

    assert exc.value.code == "DGII_5001"
    assert any("RNCEmisor" in e for e in exc.value.errores)
    assert any(getattr(r, "event", None) == "reporte_dgii_invalido" for r in caplog.records)


@pytest.mark.django_db
def test_sin_configuracion_usa_emisor_de_settings(settings, contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    settings.EMISOR_RNC = "131246754"
    settings.EMISOR_RAZON_SOCIAL = "Emisor Por Defecto SRL"
    inicio, fin = periodo_mensual(2024, 5)

    reporte = construir_reporte(inicio, fin, TipoReporte.VENTAS_607)

    assert "<DGII:RNCEmisor>131246754</DGII:RNCEmisor>" in reporte.xml
    assert "Emisor Por Defecto SRL" in reporte.xml
