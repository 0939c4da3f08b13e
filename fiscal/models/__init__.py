from .configuracion_fiscal_models import ConfiguracionFiscal
from .registro_contribuyente_models import EstadoContribuyente, RegistroContribuyente
from .secuencia_ncf_models import (
    EstadoAlertaSecuencia,
    SecuenciaNcf,
    TipoComprobante,
)


__all__ = [
    "ConfiguracionFiscal",
    "EstadoAlertaSecuencia",
    "EstadoContribuyente",
    "RegistroContribuyente",
    "SecuenciaNcf",
    "TipoComprobante",
]
