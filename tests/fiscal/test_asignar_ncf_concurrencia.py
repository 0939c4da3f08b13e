# tests/fiscal/test_asignar_ncf_concurrencia.py

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
from django.db import close_old_connections

from commons.exceptions import SecuenciaAgotadaError
from fiscal.models import SecuenciaNcf
from fiscal.services.numero_service import asignar_ncf, formatear_ncf


@pytest.mark.django_db(transaction=True)
def test_asignacion_concurrente_sin_huecos_ni_duplicados():
    """
    Escenario:
    - Secuencia B02 con capacidad 100.
    - 120 asignaciones en paralelo (más pedidos que números).

    Esperado:
    - Exactamente 100 NCF, B0200000001..B0200000100, sin duplicados.
    - Las 20 restantes fallan con SecuenciaAgotadaError.
    - numero_actual termina en 100.
    """
    secuencia = SecuenciaNcf.objects.create(tipo="B02", numero_actual=0, numero_maximo=100)

    def worker(_):
        close_old_connections()
        try:
            return asignar_ncf("B02").ncf
        except SecuenciaAgotadaError:
            return None
        finally:
            close_old_connections()

    with ThreadPoolExecutor(max_workers=10) as ex:
        resultados = [f.result() for f in as_completed([ex.submit(worker, i) for i in range(120)])]

    emitidos = [r for r in resultados if r is not None]
    assert len(emitidos) == 100
    assert len(set(emitidos)) == 100
    assert sorted(emitidos) == [formatear_ncf("B02", n) for n in range(1, 101)]
    assert resultados.count(None) == 20

    secuencia.refresh_from_db()
    assert secuencia.numero_actual == 100
