from .productos_models import Producto

__all__ = ["Producto"]
