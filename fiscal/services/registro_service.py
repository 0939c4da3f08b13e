# fiscal/services/registro_service.py

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Dict, List, Optional

from django.conf import settings
from django.db.models import Max, Q
from django.utils import timezone

from commons.exceptions import ErrorValidacion, IdentificadorMalformadoError
from fiscal.models import EstadoContribuyente, RegistroContribuyente

logger = logging.getLogger("pos.fiscal")

RNC_DIGITOS = 9
CEDULA_DIGITOS = 11
BUSQUEDA_MIN_CARACTERES = 3
BUSQUEDA_MAX_RESULTADOS = 50

_NO_DIGITOS = re.compile(r"\D")
_LETRAS = re.compile(r"[A-Za-z]")


class TipoIdentificador(str, Enum):
    RNC = "RNC"
    CEDULA = "CEDULA"
    PASAPORTE = "PASAPORTE"
    DESCONOCIDO = "DESCONOCIDO"


_CODIGOS_DGII = {
    TipoIdentificador.RNC: "1",
    TipoIdentificador.CEDULA: "2",
    TipoIdentificador.PASAPORTE: "3",
    TipoIdentificador.DESCONOCIDO: "3",
}


def codigo_tipo_identificacion(tipo: TipoIdentificador) -> str:
    """Código TipoIdentificacion de los formatos 606/607."""
    return _CODIGOS_DGII[TipoIdentificador(tipo)]


def formatear_rnc(tax_id: str) -> str:
    """
    Formato de presentación:
      9 dígitos  -> 1-01-00078-3
      11 dígitos -> 001-0000001-8
    Cualquier otro largo se devuelve sin cambios.
    """
    digitos = _NO_DIGITOS.sub("", tax_id or "")
    if len(digitos) == RNC_DIGITOS:
        return f"{digitos[0]}-{digitos[1:3]}-{digitos[3:8]}-{digitos[8]}"
    if len(digitos) == CEDULA_DIGITOS:
        return f"{digitos[0:3]}-{digitos[3:10]}-{digitos[10]}"
    return tax_id


@dataclass(frozen=True)
class VerificacionContribuyente:
    tax_id: str
    tipo: TipoIdentificador
    registrado: bool
    activo: bool
    estado: Optional[str] = None
    razon_social: Optional[str] = None
    nombre_comercial: Optional[str] = None
    advertencia: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "rnc": self.tax_id,
            "rnc_formateado": formatear_rnc(self.tax_id),
            "tipo": self.tipo.value,
            "registrado": self.registrado,
            "activo": self.activo,
            "estado": self.estado,
            "razon_social": self.razon_social,
            "nombre_comercial": self.nombre_comercial,
            "advertencia": self.advertencia,
        }


class ValidadorRegistro:
    """
    Consulta el padrón local de la DGII.

    Cada instancia tiene su propio cache de consultas; se crea una por unidad
    de trabajo (venta, reporte, request) y se inyecta donde haga falta.
    """

    def __init__(self, *, max_edad_horas: Optional[int] = None):
        if max_edad_horas is None:
            max_edad_horas = settings.REGISTRO_DGII_MAX_EDAD_HORAS
        self.max_edad = timedelta(hours=max_edad_horas)
        self._cache: Dict[str, Optional[RegistroContribuyente]] = {}

    @staticmethod
    def normalizar(tax_id: Optional[str]) -> str:
        return _NO_DIGITOS.sub("", tax_id or "")

    def _buscar(self, digitos: str) -> Optional[RegistroContribuyente]:
        if digitos not in self._cache:
            self._cache[digitos] = RegistroContribuyente.objects.filter(rnc=digitos).first()
        return self._cache[digitos]

    def clasificar(self, tax_id: Optional[str]) -> TipoIdentificador:
        valor = (tax_id or "").strip()
        if _LETRAS.search(valor):
            return TipoIdentificador.PASAPORTE

        digitos = self.normalizar(valor)
        if len(digitos) not in (RNC_DIGITOS, CEDULA_DIGITOS):
            raise IdentificadorMalformadoError(
                f"Identificador fiscal malformado: {tax_id!r}.",
                tax_id=tax_id,
                digitos=len(digitos),
            )

        if self._buscar(digitos) is not None:
            return TipoIdentificador.RNC
        if len(digitos) == CEDULA_DIGITOS:
            return TipoIdentificador.CEDULA
        return TipoIdentificador.DESCONOCIDO

    def esta_registrado_y_activo(self, tax_id: Optional[str]) -> bool:
        digitos = self.normalizar(tax_id)
        if not digitos:
            return False
        registro = self._buscar(digitos)
        return registro is not None and registro.esta_activo

    def advertencia_obsolescencia(self) -> Optional[str]:
        """
        Devuelve un aviso si el padrón local está vacío o desactualizado.
        Nunca bloquea la operación.
        """
        ultima = RegistroContribuyente.objects.aggregate(m=Max("ultima_sincronizacion"))["m"]
        if ultima is None:
            mensaje = "El padrón DGII local está vacío; la validación de RNC puede ser incorrecta."
        elif timezone.now() - ultima > self.max_edad:
            mensaje = (
                "El padrón DGII local no se sincroniza desde "
                f"{ultima:%Y-%m-%d %H:%M}; la validación de RNC puede estar desactualizada."
            )
        else:
            return None

        logger.warning(
            mensaje,
            extra={
                "event": "registro_dgii_obsoleto",
                "ultima_sincronizacion": ultima.isoformat() if ultima else None,
            },
        )
        return mensaje

    def verificar(self, tax_id: Optional[str]) -> VerificacionContribuyente:
        tipo = self.clasificar(tax_id)
        digitos = self.normalizar(tax_id)
        registro = self._buscar(digitos) if tipo is not TipoIdentificador.PASAPORTE else None

        return VerificacionContribuyente(
            tax_id=digitos if tipo is not TipoIdentificador.PASAPORTE else (tax_id or "").strip(),
            tipo=tipo,
            registrado=registro is not None,
            activo=bool(registro and registro.esta_activo),
            estado=registro.estado if registro else None,
            razon_social=registro.razon_social if registro else None,
            nombre_comercial=(registro.nombre_comercial or None) if registro else None,
            advertencia=self.advertencia_obsolescencia(),
        )


def buscar_contribuyentes(consulta: str, limite: int = 20) -> List[RegistroContribuyente]:
    """
    Busca contribuyentes activos por RNC parcial o por nombre.
    Exige al menos 3 caracteres y nunca devuelve más de 50 resultados.
    """
    consulta = (consulta or "").strip()
    if len(consulta) < BUSQUEDA_MIN_CARACTERES:
        raise ErrorValidacion(
            f"La búsqueda requiere al menos {BUSQUEDA_MIN_CARACTERES} caracteres.",
            consulta=consulta,
        )
    limite = max(1, min(int(limite), BUSQUEDA_MAX_RESULTADOS))

    filtro = Q(razon_social__icontains=consulta) | Q(nombre_comercial__icontains=consulta)
    digitos = ValidadorRegistro.normalizar(consulta)
    if digitos:
        filtro |= Q(rnc__contains=digitos)

    return list(
        RegistroContribuyente.objects.filter(filtro, estado=EstadoContribuyente.ACTIVO)
        .order_by("razon_social")[:limite]
    )
