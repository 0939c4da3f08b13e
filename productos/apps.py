from django.apps import AppConfig


class ProductosConfig(AppConfig):
    name = "productos"
    verbose_name = "Productos"
