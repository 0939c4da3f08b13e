# commons/exceptions.py

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ErrorDominio(Exception):
    """
    Base de los errores de negocio del motor fiscal.

    Todos cargan un `code` estable (usado por la capa HTTP y por los logs)
    y un `message` legible para el operador.
    """

    code = "DOMINIO_0000"

    def __init__(self, message: str, *, code: Optional[str] = None, **contexto: Any):
        if code is not None:
            self.code = code
        self.message = message
        self.contexto: Dict[str, Any] = contexto
        super().__init__(message)

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.contexto:
            payload["contexto"] = {k: _jsonable(v) for k, v in self.contexto.items()}
        return payload


def _jsonable(valor):
    if isinstance(valor, (str, int, float, bool)) or valor is None:
        return valor
    if isinstance(valor, (list, tuple)):
        return [_jsonable(v) for v in valor]
    return str(valor)


# ---------------------------------------------------------------------------
# Validación (entrada mal formada, sin efectos secundarios)
# ---------------------------------------------------------------------------


class ErrorValidacion(ErrorDominio):
    code = "VALIDACION_1000"


class LineaInvalidaError(ErrorValidacion):
    """Cantidad o precio negativo / no numérico en una línea."""

    code = "VALIDACION_1001"


class IdentificadorMalformadoError(ErrorValidacion):
    """RNC/cédula con cantidad de dígitos imposible."""

    code = "VALIDACION_1002"


# ---------------------------------------------------------------------------
# Reglas de negocio (recuperables, nada queda persistido)
# ---------------------------------------------------------------------------


class ViolacionReglaNegocio(ErrorDominio):
    code = "NEGOCIO_2000"


class StockInsuficienteError(ViolacionReglaNegocio):
    code = "NEGOCIO_2001"


class ContribuyenteNoRegistradoError(ViolacionReglaNegocio):
    code = "NEGOCIO_2002"


class ErrorSecuencia(ViolacionReglaNegocio):
    """Base de las fallas del asignador de NCF."""

    code = "FISCAL_3000"


class SinSecuenciaActivaError(ErrorSecuencia):
    code = "FISCAL_3001"


class SecuenciaAgotadaError(ErrorSecuencia):
    code = "FISCAL_3002"


class SecuenciaVencidaError(ErrorSecuencia):
    code = "FISCAL_3003"


class NcfDuplicadoError(ErrorSecuencia):
    """La secuencia activa entrega un NCF que ya figura en una venta."""

    code = "FISCAL_3004"


# ---------------------------------------------------------------------------
# Concurrencia / esquema
# ---------------------------------------------------------------------------


class ConflictoTransitorioError(ErrorDominio):
    """
    Contención de escritura concurrente. Se reintenta internamente;
    sólo llega al llamador cuando se agotan los reintentos.
    """

    code = "CONCURRENCIA_4001"


class ViolacionEsquemaError(ErrorDominio):
    """El XML armado no cumple la estructura mínima exigida por la DGII."""

    code = "DGII_5001"

    def __init__(self, message: str, *, errores: Optional[List[str]] = None, **contexto: Any):
        self.errores: List[str] = list(errores or [])
        super().__init__(message, errores=self.errores, **contexto)
