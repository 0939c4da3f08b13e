# tests/fiscal/test_registro_service.py

from datetime import timedelta

import pytest
from django.utils import timezone

from commons.exceptions import ErrorValidacion, IdentificadorMalformadoError
from fiscal.models import EstadoContribuyente, RegistroContribuyente
from fiscal.services.registro_service import (
    TipoIdentificador,
    ValidadorRegistro,
    buscar_contribuyentes,
    codigo_tipo_identificacion,
    formatear_rnc,
)


def test_normalizar_quita_todo_lo_que_no_es_digito():
    assert ValidadorRegistro.normalizar("1-01-00078-3") == "101000783"
    assert ValidadorRegistro.normalizar(" 001-0000001-8 ") == "00100000018"
    assert ValidadorRegistro.normalizar(None) == ""


def test_formatear_rnc():
    assert formatear_rnc("101000783") == "1-01-00078-3"
    assert formatear_rnc("00100000018") == "001-0000001-8"
    assert formatear_rnc("12345") == "12345"


def test_codigos_tipo_identificacion():
    assert codigo_tipo_identificacion(TipoIdentificador.RNC) == "1"
    assert codigo_tipo_identificacion(TipoIdentificador.CEDULA) == "2"
    assert codigo_tipo_identificacion(TipoIdentificador.PASAPORTE) == "3"
    assert codigo_tipo_identificacion(TipoIdentificador.DESCONOCIDO) == "3"


@pytest.mark.django_db
def test_clasificar(contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    contribuyente_factory(rnc="00100000018")
    validador = ValidadorRegistro()

    assert validador.clasificar("1-01-00078-3") is TipoIdentificador.RNC
    assert validador.clasificar("001-0000001-8") is TipoIdentificador.RNC
    assert validador.clasificar("40212345678") is TipoIdentificador.CEDULA
    assert validador.clasificar("130000001") is TipoIdentificador.DESCONOCIDO
    assert validador.clasificar("AB1234567") is TipoIdentificador.PASAPORTE


@pytest.mark.django_db
@pytest.mark.parametrize("valor", ["", "   ", "12345", "1234567890", "123456789012", "---"])
def test_clasificar_malformado(valor):
    with pytest.raises(IdentificadorMalformadoError) as exc:
        ValidadorRegistro().clasificar(valor)

    assert exc.value.code == "VALIDACION_1002"


@pytest.mark.django_db
def test_registrado_y_activo(contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    contribuyente_factory(rnc="131246754", estado=EstadoContribuyente.SUSPENDIDO)
    validador = ValidadorRegistro()

    assert validador.esta_registrado_y_activo("101000783") is True
    assert validador.esta_registrado_y_activo("1-01-00078-3") is True
    assert validador.esta_registrado_y_activo("131246754") is False
    assert validador.esta_registrado_y_activo("130000001") is False
    assert validador.esta_registrado_y_activo("") is False


@pytest.mark.django_db
def test_cache_es_por_instancia(contribuyente_factory):
    contribuyente_factory(rnc="101000783")
    validador = ValidadorRegistro()
    assert validador.esta_registrado_y_activo("101000783") is True

    RegistroContribuyente.objects.filter(rnc="101000783").delete()

    assert validador.esta_registrado_y_activo("101000783") is True
    assert ValidadorRegistro().esta_registrado_y_activo("101000783") is False


@pytest.mark.django_db
def test_advertencia_padron_vacio():
    assert "vacío" in ValidadorRegistro().advertencia_obsolescencia()


@pytest.mark.django_db
def test_advertencia_padron_desactualizado(contribuyente_factory, settings):
    settings.REGISTRO_DGII_MAX_EDAD_HORAS = 48
    contribuyente_factory(rnc="101000783", ultima_sincronizacion=timezone.now() - timedelta(hours=72))

    assert ValidadorRegistro().advertencia_obsolescencia() is not None


@pytest.mark.django_db
def test_sin_advertencia_con_padron_reciente(contribuyente_factory):
    contribuyente_factory(rnc="101000783")

    assert ValidadorRegistro().advertencia_obsolescencia() is None


@pytest.mark.django_db
def test_verificar(contribuyente_factory):
    contribuyente_factory(rnc="101000783", razon_social="Ferretería Central SRL")

    verificacion = ValidadorRegistro().verificar("1-01-00078-3")

    assert verificacion.tipo is TipoIdentificador.RNC
    assert verificacion.registrado is True
    assert verificacion.activo is True
    assert verificacion.estado == EstadoContribuyente.ACTIVO
    assert verificacion.razon_social == "Ferretería Central SRL"
    assert verificacion.advertencia is None
    assert verificacion.as_dict()["rnc_formateado"] == "1-01-00078-3"


@pytest.mark.django_db
def test_verificar_cedula_no_registrada():
    verificacion = ValidadorRegistro().verificar("402-1234567-8")

    assert verificacion.tipo is TipoIdentificador.CEDULA
    assert verificacion.registrado is False
    assert verificacion.activo is False
    assert verificacion.advertencia is not None


@pytest.mark.django_db
def test_buscar_por_nombre_y_por_rnc(contribuyente_factory):
    contribuyente_factory(rnc="101000783", razon_social="Ferretería Central SRL")
    contribuyente_factory(rnc="131246754", razon_social="Farmacia Los Prados")
    contribuyente_factory(rnc="101999999", razon_social="Ferretería Cerrada", estado=EstadoContribuyente.DADO_DE_BAJA)

    por_nombre = buscar_contribuyentes("ferret")
    assert [c.rnc for c in por_nombre] == ["101000783"]

    por_rnc = buscar_contribuyentes("1312")
    assert [c.rnc for c in por_rnc] == ["131246754"]


@pytest.mark.django_db
def test_buscar_exige_tres_caracteres():
    with pytest.raises(ErrorValidacion):
        buscar_contribuyentes("ab")


@pytest.mark.django_db
def test_buscar_limita_a_cincuenta(contribuyente_factory):
    for n in range(60):
        contribuyente_factory(rnc=f"1{n:08d}", razon_social=f"Colmado {n:02d}")

    assert len(buscar_contribuyentes("colmado", limite=500)) == 50
    assert len(buscar_contribuyentes("colmado", limite=5)) == 5
