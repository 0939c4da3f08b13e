# conftest.py (en la raíz del proyecto)

import itertools
import logging
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.utils import timezone
from rest_framework.test import APIClient

from clientes.models import Cliente
from compras.models import Compra, CompraEstado
from fiscal.models import ConfiguracionFiscal, EstadoContribuyente, RegistroContribuyente, SecuenciaNcf
from productos.models import Producto

logger = logging.getLogger(__name__)

_seq = itertools.count(1)


# =============================================================================
# FACTORIES DE DOMINIO
# =============================================================================


@pytest.fixture
def producto_factory(db):
    def _factory(**kwargs):
        n = next(_seq)
        defaults = {
            "codigo": f"P-{n:05d}",
            "descripcion": f"Producto {n}",
            "precio_venta": Decimal("100.00"),
            "stock": Decimal("100.000"),
            "activo": True,
        }
        defaults.update(kwargs)
        return Producto.objects.create(**defaults)

    return _factory


@pytest.fixture
def secuencia_factory(db):
    def _factory(tipo="B02", numero_actual=0, numero_maximo=50_000_000, **kwargs):
        return SecuenciaNcf.objects.create(
            tipo=tipo,
            numero_actual=numero_actual,
            numero_maximo=numero_maximo,
            **kwargs,
        )

    return _factory


@pytest.fixture
def contribuyente_factory(db):
    def _factory(rnc="101000783", **kwargs):
        defaults = {
            "razon_social": f"Contribuyente {rnc} SRL",
            "estado": EstadoContribuyente.ACTIVO,
            "ultima_sincronizacion": timezone.now() - timedelta(hours=1),
        }
        defaults.update(kwargs)
        return RegistroContribuyente.objects.create(rnc=rnc, **defaults)

    return _factory


@pytest.fixture
def cliente_factory(db):
    def _factory(**kwargs):
        n = next(_seq)
        defaults = {"nombre": f"Cliente {n}"}
        defaults.update(kwargs)
        return Cliente.objects.create(**defaults)

    return _factory


@pytest.fixture
def compra_factory(db):
    def _factory(**kwargs):
        n = next(_seq)
        defaults = {
            "numero_orden": f"OC-{n:06d}",
            "proveedor_nombre": f"Proveedor {n}",
            "rnc_proveedor": "101000783",
            "ncf": f"B01{n:08d}",
            "fecha_comprobante": timezone.localdate(),
            "subtotal": Decimal("1000.00"),
            "itbis": Decimal("180.00"),
            "total": Decimal("1180.00"),
            "estado": CompraEstado.COMPLETADA,
        }
        defaults.update(kwargs)
        return Compra.objects.create(**defaults)

    return _factory


@pytest.fixture
def configuracion_fiscal(db):
    return ConfiguracionFiscal.objects.create(
        rnc_emisor="131246754",
        razon_social="Colmado La Esquina SRL",
        nombre_comercial="La Esquina",
        tasa_itbis=Decimal("0.18"),
    )


# =============================================================================
# USUARIOS Y CLIENTES HTTP
# =============================================================================


@pytest.fixture
def usuario_factory(db):
    """
    Crea usuarios con los permisos indicados ("app_label.codename").
    """
    User = get_user_model()

    def _factory(username=None, permisos=(), **kwargs):
        user = User.objects.create_user(
            username=username or f"cajero{next(_seq)}",
            password="123456",
            **kwargs,
        )
        for permiso in permisos:
            app_label, codename = permiso.split(".", 1)
            user.user_permissions.add(
                Permission.objects.get(content_type__app_label=app_label, codename=codename)
            )
        # has_perm usa cache por instancia; se devuelve una instancia fresca
        return User.objects.get(pk=user.pk)

    return _factory


@pytest.fixture
def api_client_factory():
    def _factory(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client

    return _factory
