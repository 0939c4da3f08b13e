# ventas/services/dto.py

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence, Union
from uuid import UUID

from ventas.models import Venta


@dataclass(frozen=True)
class ItemSolicitud:
    producto_id: Union[UUID, str]
    cantidad: Decimal
    precio_unitario: Decimal


@dataclass(frozen=True)
class SolicitudVenta:
    """
    Pedido de registro de venta tal como llega desde la caja.

    tipo_comprobante vacío = venta sin comprobante fiscal (no consume NCF).
    """

    items: Sequence[ItemSolicitud]
    metodo_pago: str
    tipo_comprobante: Optional[str] = None
    cliente_id: Optional[Union[UUID, str]] = None
    rnc_cliente: Optional[str] = None
    ncf_modificado: Optional[str] = None
    notas: str = ""


@dataclass
class ResultadoRegistroVenta:
    venta: Venta
    advertencias: List[str] = field(default_factory=list)
