from .compra_models import Compra, CompraEstado

__all__ = ["Compra", "CompraEstado"]
