# ventas/services/registrar_venta_service.py

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from clientes.models import Cliente
from commons.exceptions import (
    ConflictoTransitorioError,
    ContribuyenteNoRegistradoError,
    ErrorDominio,
    ErrorValidacion,
    LineaInvalidaError,
    NcfDuplicadoError,
    StockInsuficienteError,
)
from fiscal.models import ConfiguracionFiscal, TipoComprobante
from fiscal.services.itbis_service import TotalesCalculados, calcular_totales
from fiscal.services.numero_service import asignar_ncf, validar_formato_ncf
from fiscal.services.registro_service import TipoIdentificador, ValidadorRegistro
from productos.models import Producto
from ventas.models import MetodoPago, Venta, VentaEstado, VentaItem
from ventas.services.dto import ItemSolicitud, ResultadoRegistroVenta, SolicitudVenta

logger = logging.getLogger("pos.fiscal")

PREFIJO_NUMERO_VENTA = "VTA-"


# ---------------------------------------------------------------------------
# Helpers internos
# ---------------------------------------------------------------------------


def _como_uuid(valor, campo: str) -> uuid.UUID:
    try:
        return valor if isinstance(valor, uuid.UUID) else uuid.UUID(str(valor))
    except (TypeError, ValueError, AttributeError):
        raise ErrorValidacion(f"{campo} inválido: {valor!r}.", campo=campo)


def _cantidad(item: ItemSolicitud, indice: int) -> Decimal:
    try:
        cantidad = Decimal(str(item.cantidad))
    except (InvalidOperation, TypeError, ValueError):
        raise LineaInvalidaError(
            f"Línea {indice + 1}: cantidad no es un número válido.",
            linea=indice,
        )
    if not cantidad.is_finite() or cantidad < 1:
        raise LineaInvalidaError(
            f"Línea {indice + 1}: la cantidad debe ser mayor o igual a 1.",
            linea=indice,
            cantidad=item.cantidad,
        )
    return cantidad


def _validar_solicitud(solicitud: SolicitudVenta) -> Dict[uuid.UUID, Producto]:
    """
    Validación de forma y existencia. No toca nada en la base.
    Retorna los productos referenciados indexados por id.
    """
    if not solicitud.items:
        raise ErrorValidacion("La venta debe tener al menos una línea.")

    if solicitud.metodo_pago not in MetodoPago.values:
        raise ErrorValidacion(
            f"Método de pago inválido: {solicitud.metodo_pago!r}.",
            metodo_pago=solicitud.metodo_pago,
        )

    if solicitud.tipo_comprobante and solicitud.tipo_comprobante not in TipoComprobante.values:
        raise ErrorValidacion(
            f"Tipo de comprobante inválido: {solicitud.tipo_comprobante!r}.",
            tipo_comprobante=solicitud.tipo_comprobante,
        )

    if solicitud.ncf_modificado and not validar_formato_ncf(solicitud.ncf_modificado):
        raise ErrorValidacion(
            f"NCF modificado con formato inválido: {solicitud.ncf_modificado!r}.",
            ncf_modificado=solicitud.ncf_modificado,
        )

    ids: List[uuid.UUID] = []
    for indice, item in enumerate(solicitud.items):
        _cantidad(item, indice)
        ids.append(_como_uuid(item.producto_id, "producto_id"))

    productos = Producto.objects.in_bulk(set(ids))
    for pid in ids:
        producto = productos.get(pid)
        if producto is None or not producto.activo:
            raise ErrorValidacion(
                f"Producto {pid} no existe o está inactivo.",
                producto_id=pid,
            )
    return productos


def _resolver_cliente(solicitud: SolicitudVenta) -> Optional[Cliente]:
    if not solicitud.cliente_id:
        return None
    cliente_id = _como_uuid(solicitud.cliente_id, "cliente_id")
    cliente = Cliente.objects.filter(pk=cliente_id).first()
    if cliente is None:
        raise ErrorValidacion(f"Cliente {cliente_id} no existe.", cliente_id=cliente_id)
    return cliente


def _identificador_comprador(
    solicitud: SolicitudVenta,
    cliente: Optional[Cliente],
    validador: ValidadorRegistro,
    advertencias: List[str],
) -> Optional[str]:
    """
    Resuelve el identificador fiscal que se guarda en la venta y, para los
    tipos que lo exigen, verifica que sea un contribuyente activo.
    """
    crudo = (solicitud.rnc_cliente or "").strip() or (cliente.rnc if cliente else None)
    tipo = solicitud.tipo_comprobante

    if tipo and TipoComprobante.requiere_rnc(tipo):
        if not crudo:
            raise ErrorValidacion(
                f"El comprobante {tipo} requiere el RNC del cliente.",
                tipo_comprobante=tipo,
            )
        clase = validador.clasificar(crudo)
        if clase is not TipoIdentificador.RNC or not validador.esta_registrado_y_activo(crudo):
            raise ContribuyenteNoRegistradoError(
                f"El RNC {crudo} no está registrado como contribuyente activo en la DGII; "
                f"no se puede emitir {tipo}.",
                rnc=crudo,
                tipo_comprobante=tipo,
            )
        advertencia = validador.advertencia_obsolescencia()
        if advertencia:
            advertencias.append(advertencia)
        return validador.normalizar(crudo)

    if not crudo:
        return None
    if any(ch.isalpha() for ch in crudo):
        # pasaporte: se guarda tal cual
        return crudo
    return validador.normalizar(crudo) or None


def _siguiente_numero_venta() -> str:
    ultimo = (
        Venta.objects.filter(numero_venta__startswith=PREFIJO_NUMERO_VENTA)
        .order_by("-numero_venta")
        .values_list("numero_venta", flat=True)
        .first()
    )
    proximo = int(ultimo[len(PREFIJO_NUMERO_VENTA):]) + 1 if ultimo else 1
    return f"{PREFIJO_NUMERO_VENTA}{proximo:06d}"


def _descontar_stock(cantidades: Dict[uuid.UUID, Decimal], productos: Dict[uuid.UUID, Producto]) -> None:
    """
    Bloquea las filas de producto en orden de pk y descuenta con UPDATE
    condicional (stock >= cantidad). Nunca deja stock negativo.
    """
    ids = sorted(cantidades)
    list(Producto.objects.select_for_update().filter(pk__in=ids).order_by("pk").values_list("pk", flat=True))

    ahora = timezone.now()
    for pid in ids:
        cantidad = cantidades[pid]
        actualizados = Producto.objects.filter(pk=pid, activo=True, stock__gte=cantidad).update(
            stock=F("stock") - cantidad,
            updated_at=ahora,
        )
        if actualizados != 1:
            producto = productos[pid]
            raise StockInsuficienteError(
                f"Stock insuficiente para {producto.descripcion} (solicitado {cantidad}).",
                producto_id=pid,
                cantidad=cantidad,
            )


def _persistir_venta(
    solicitud: SolicitudVenta,
    *,
    productos: Dict[uuid.UUID, Producto],
    cliente: Optional[Cliente],
    rnc_cliente: Optional[str],
    totales: TotalesCalculados,
    cajero,
) -> Venta:
    """Unidad de trabajo atómica: NCF + venta + líneas + stock."""
    with transaction.atomic():
        asignado = asignar_ncf(solicitud.tipo_comprobante) if solicitud.tipo_comprobante else None
        if asignado and Venta.objects.filter(ncf=asignado.ncf).exists():
            # secuencia recargada por debajo de lo ya emitido
            raise NcfDuplicadoError(
                f"El NCF {asignado.ncf} ya fue emitido en otra venta; "
                f"revise la secuencia activa del tipo {solicitud.tipo_comprobante}.",
                ncf=asignado.ncf,
                secuencia_id=asignado.secuencia_id,
            )

        venta = Venta.objects.create(
            numero_venta=_siguiente_numero_venta(),
            ncf=asignado.ncf if asignado else None,
            tipo_comprobante=solicitud.tipo_comprobante or None,
            secuencia_id=asignado.secuencia_id if asignado else None,
            ncf_modificado=solicitud.ncf_modificado or None,
            subtotal=totales.subtotal,
            itbis=totales.itbis,
            total=totales.total,
            metodo_pago=solicitud.metodo_pago,
            cliente=cliente,
            rnc_cliente=rnc_cliente,
            estado=VentaEstado.COMPLETADA,
            cajero=cajero,
            notas=solicitud.notas or "",
        )

        cantidades: Dict[uuid.UUID, Decimal] = defaultdict(Decimal)
        items = []
        for indice, item in enumerate(solicitud.items):
            pid = _como_uuid(item.producto_id, "producto_id")
            cantidad = _cantidad(item, indice)
            cantidades[pid] += cantidad
            items.append(
                VentaItem(
                    venta=venta,
                    producto_id=pid,
                    descripcion=productos[pid].descripcion,
                    cantidad=cantidad,
                    precio_unitario=Decimal(str(item.precio_unitario)),
                    total_linea=totales.lineas[indice],
                )
            )
        VentaItem.objects.bulk_create(items)

        _descontar_stock(cantidades, productos)

    return venta


# ---------------------------------------------------------------------------
# API pública
# ---------------------------------------------------------------------------


def registrar_venta(
    solicitud: SolicitudVenta,
    *,
    cajero=None,
    validador: Optional[ValidadorRegistro] = None,
    max_reintentos: Optional[int] = None,
) -> ResultadoRegistroVenta:
    """
    Registra una venta completa o nada.

    Flujo:
      1) Valida la solicitud (líneas, productos, método de pago, cliente).
      2) Si el tipo de comprobante lo exige, verifica el RNC en el padrón
         antes de tocar cualquier secuencia.
      3) Calcula subtotal / ITBIS / total.
      4) En una sola transacción: asigna NCF, crea Venta + VentaItem y
         descuenta stock. Cualquier falla revierte todo, incluido el NCF.
      5) Conflictos de concurrencia reintentan sólo el paso 4.
    """
    validador = validador or ValidadorRegistro()
    if max_reintentos is None:
        max_reintentos = settings.VENTAS_MAX_REINTENTOS
    if max_reintentos < 1:
        raise ErrorValidacion("max_reintentos debe ser al menos 1.", max_reintentos=max_reintentos)
    cajero = cajero if getattr(cajero, "pk", None) else None
    advertencias: List[str] = []

    try:
        productos = _validar_solicitud(solicitud)
        cliente = _resolver_cliente(solicitud)
        rnc_cliente = _identificador_comprador(solicitud, cliente, validador, advertencias)
        totales = calcular_totales(solicitud.items, tasa=ConfiguracionFiscal.vigente().tasa_itbis)

        ultimo_error: Optional[Exception] = None
        for intento in range(1, max_reintentos + 1):
            try:
                venta = _persistir_venta(
                    solicitud,
                    productos=productos,
                    cliente=cliente,
                    rnc_cliente=rnc_cliente,
                    totales=totales,
                    cajero=cajero,
                )
                break
            except (ConflictoTransitorioError, OperationalError, IntegrityError) as exc:
                ultimo_error = exc
                logger.warning(
                    "Conflicto al registrar venta; reintentando",
                    extra={
                        "event": "venta_conflicto_reintento",
                        "intento": intento,
                        "max_reintentos": max_reintentos,
                        "tipo_comprobante": solicitud.tipo_comprobante,
                        "error": str(exc),
                    },
                )
        else:
            raise ConflictoTransitorioError(
                f"No se pudo registrar la venta tras {max_reintentos} intentos por contención concurrente.",
                intentos=max_reintentos,
            ) from ultimo_error

    except ErrorDominio as exc:
        logger.warning(
            "Venta rechazada",
            extra={
                "event": "venta_rechazada",
                "code": exc.code,
                "motivo": exc.message,
                "tipo_comprobante": solicitud.tipo_comprobante,
            },
        )
        raise

    logger.info(
        "Venta registrada",
        extra={
            "event": "venta_registrada",
            "venta_id": str(venta.id),
            "numero_venta": venta.numero_venta,
            "ncf": venta.ncf,
            "total": str(venta.total),
            "cajero_id": getattr(cajero, "pk", None),
        },
    )
    return ResultadoRegistroVenta(venta=venta, advertencias=advertencias)
