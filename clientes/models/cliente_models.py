# clientes/models/cliente_models.py

import uuid

from django.db import models


class Cliente(models.Model):
    """
    Cliente del comercio. Puede tener RNC (empresa / persona física
    registrada) y/o cédula; ambos se guardan sólo con dígitos.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    nombre = models.CharField(max_length=255)
    rnc = models.CharField(max_length=11, blank=True, null=True, db_index=True)
    cedula = models.CharField(max_length=11, blank=True, null=True)
    email = models.EmailField(blank=True, default="")
    telefono = models.CharField(max_length=30, blank=True, default="")
    activo = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cliente"
        verbose_name = "Cliente"
        verbose_name_plural = "Clientes"
        ordering = ["nombre"]

    def __str__(self) -> str:
        return self.nombre

    @property
    def identificador_fiscal(self):
        """RNC si lo tiene, si no la cédula."""
        return self.rnc or self.cedula or None
