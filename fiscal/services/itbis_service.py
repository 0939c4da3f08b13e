# fiscal/services/itbis_service.py

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Optional, Protocol, Tuple

from commons.exceptions import LineaInvalidaError

CENTAVO = Decimal("0.01")


def redondear2(valor) -> Decimal:
    """
    Redondeo monetario único del sistema: al centavo, mitades hacia arriba
    (lejos de cero). Todo monto persistido o reportado pasa por aquí.
    """
    return Decimal(valor).quantize(CENTAVO, rounding=ROUND_HALF_UP)


class LineaCalculable(Protocol):
    cantidad: Decimal
    precio_unitario: Decimal


@dataclass(frozen=True)
class TotalesCalculados:
    subtotal: Decimal
    itbis: Decimal
    total: Decimal
    lineas: Tuple[Decimal, ...]


def _como_decimal(valor, campo: str, indice: int) -> Decimal:
    if isinstance(valor, float):
        # float arrastra error binario; se pasa por str como hace el serializer
        valor = str(valor)
    try:
        dec = Decimal(valor)
    except (InvalidOperation, TypeError, ValueError):
        raise LineaInvalidaError(
            f"Línea {indice + 1}: {campo} no es un número válido.",
            linea=indice,
            campo=campo,
        )
    if not dec.is_finite():
        raise LineaInvalidaError(
            f"Línea {indice + 1}: {campo} no es un número válido.",
            linea=indice,
            campo=campo,
        )
    return dec


def calcular_total_linea(cantidad, precio_unitario, indice: int = 0) -> Decimal:
    cantidad = _como_decimal(cantidad, "cantidad", indice)
    precio_unitario = _como_decimal(precio_unitario, "precio_unitario", indice)

    if cantidad < 0:
        raise LineaInvalidaError(
            f"Línea {indice + 1}: la cantidad no puede ser negativa.",
            linea=indice,
            cantidad=cantidad,
        )
    if precio_unitario < 0:
        raise LineaInvalidaError(
            f"Línea {indice + 1}: el precio unitario no puede ser negativo.",
            linea=indice,
            precio_unitario=precio_unitario,
        )

    return redondear2(cantidad * precio_unitario)


def calcular_itbis(subtotal, tasa) -> Decimal:
    return redondear2(Decimal(subtotal) * Decimal(tasa))


def calcular_totales(
    lineas: Iterable[LineaCalculable],
    tasa: Optional[Decimal] = None,
) -> TotalesCalculados:
    """
    Calcula subtotal, ITBIS y total de una transacción.

    Orden obligatorio:
      1. cada línea se redondea al centavo (cantidad x precio);
      2. se suman las líneas ya redondeadas;
      3. itbis = redondear2(subtotal * tasa);
      4. total = redondear2(subtotal + itbis).

    Sumar productos sin redondear y redondear una sola vez da diferencias de
    centavo en algunos casos; no es intercambiable.
    """
    if tasa is None:
        from fiscal.models import ConfiguracionFiscal

        tasa = ConfiguracionFiscal.vigente().tasa_itbis
    tasa = Decimal(tasa)

    totales_linea: List[Decimal] = [
        calcular_total_linea(linea.cantidad, linea.precio_unitario, indice)
        for indice, linea in enumerate(lineas)
    ]

    subtotal = redondear2(sum(totales_linea, Decimal("0.00")))
    itbis = calcular_itbis(subtotal, tasa)
    total = redondear2(subtotal + itbis)

    return TotalesCalculados(
        subtotal=subtotal,
        itbis=itbis,
        total=total,
        lineas=tuple(totales_linea),
    )
