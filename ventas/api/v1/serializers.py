# ventas/api/v1/serializers.py
from rest_framework import serializers

from fiscal.models import TipoComprobante
from ventas.models import MetodoPago, Venta, VentaItem
from ventas.services.dto import ItemSolicitud, SolicitudVenta


class ItemSolicitudSerializer(serializers.Serializer):
    producto_id = serializers.UUIDField()
    cantidad = serializers.DecimalField(max_digits=12, decimal_places=3)
    precio_unitario = serializers.DecimalField(max_digits=12, decimal_places=2)


class RegistrarVentaInputSerializer(serializers.Serializer):
    """
    Forma del pedido. Las reglas de negocio (cantidad >= 1, productos
    activos, RNC registrado, stock) se validan en la service.
    """

    tipo_comprobante = serializers.ChoiceField(
        choices=TipoComprobante.choices,
        required=False,
        allow_null=True,
        allow_blank=True,
    )
    cliente_id = serializers.UUIDField(required=False, allow_null=True)
    rnc_cliente = serializers.CharField(max_length=20, required=False, allow_null=True, allow_blank=True)
    ncf_modificado = serializers.CharField(max_length=13, required=False, allow_null=True, allow_blank=True)
    metodo_pago = serializers.ChoiceField(choices=MetodoPago.choices)
    notas = serializers.CharField(required=False, allow_blank=True, default="")
    items = ItemSolicitudSerializer(many=True, allow_empty=False)

    def to_solicitud(self) -> SolicitudVenta:
        data = self.validated_data
        return SolicitudVenta(
            items=[
                ItemSolicitud(
                    producto_id=item["producto_id"],
                    cantidad=item["cantidad"],
                    precio_unitario=item["precio_unitario"],
                )
                for item in data["items"]
            ],
            metodo_pago=data["metodo_pago"],
            tipo_comprobante=data.get("tipo_comprobante") or None,
            cliente_id=data.get("cliente_id"),
            rnc_cliente=data.get("rnc_cliente") or None,
            ncf_modificado=data.get("ncf_modificado") or None,
            notas=data.get("notas", ""),
        )


class VentaItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = VentaItem
        fields = ["id", "producto", "descripcion", "cantidad", "precio_unitario", "total_linea"]


class VentaSerializer(serializers.ModelSerializer):
    items = VentaItemSerializer(many=True, read_only=True)

    class Meta:
        model = Venta
        fields = [
            "id",
            "numero_venta",
            "ncf",
            "tipo_comprobante",
            "ncf_modificado",
            "subtotal",
            "itbis",
            "total",
            "metodo_pago",
            "cliente",
            "rnc_cliente",
            "estado",
            "cajero",
            "notas",
            "items",
            "created_at",
        ]
