from .cliente_models import Cliente

__all__ = ["Cliente"]
