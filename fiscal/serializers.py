# fiscal/serializers.py
from rest_framework import serializers

from fiscal.models import RegistroContribuyente, SecuenciaNcf, TipoComprobante
from fiscal.models.secuencia_ncf_models import NCF_NUMERO_MAXIMO
from fiscal.services.registro_service import formatear_rnc


class SecuenciaNcfSerializer(serializers.ModelSerializer):
    """Secuencia con su estado de uso, para tableros y alertas."""

    tipo_nombre = serializers.CharField(source="get_tipo_display", read_only=True)
    proximo_numero = serializers.IntegerField(read_only=True)
    disponibles = serializers.IntegerField(read_only=True)
    porcentaje_uso = serializers.IntegerField(read_only=True)
    vencida = serializers.SerializerMethodField()
    estado_alerta = serializers.SerializerMethodField()

    class Meta:
        model = SecuenciaNcf
        fields = [
            "id",
            "tipo",
            "tipo_nombre",
            "numero_actual",
            "numero_maximo",
            "activo",
            "fecha_vencimiento",
            "proximo_numero",
            "disponibles",
            "porcentaje_uso",
            "vencida",
            "estado_alerta",
            "created_at",
            "updated_at",
        ]

    def get_vencida(self, obj) -> bool:
        return obj.vencida()

    def get_estado_alerta(self, obj) -> str:
        return obj.estado_alerta()


class CrearSecuenciaInputSerializer(serializers.Serializer):
    tipo = serializers.ChoiceField(choices=TipoComprobante.choices)
    numero_maximo = serializers.IntegerField(min_value=1, max_value=NCF_NUMERO_MAXIMO)
    numero_actual = serializers.IntegerField(min_value=0, max_value=NCF_NUMERO_MAXIMO, default=0)
    fecha_vencimiento = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["numero_actual"] > attrs["numero_maximo"]:
            raise serializers.ValidationError(
                {"numero_actual": "numero_actual no puede superar numero_maximo."}
            )
        return attrs


class ContribuyenteSerializer(serializers.ModelSerializer):
    rnc_formateado = serializers.SerializerMethodField()

    class Meta:
        model = RegistroContribuyente
        fields = [
            "rnc",
            "rnc_formateado",
            "razon_social",
            "nombre_comercial",
            "categoria",
            "estado",
            "ultima_sincronizacion",
        ]

    def get_rnc_formateado(self, obj) -> str:
        return formatear_rnc(obj.rnc)


class ReporteDgiiInputSerializer(serializers.Serializer):
    tipo = serializers.ChoiceField(choices=[("606", "606 - Compras"), ("607", "607 - Ventas")])
    mes = serializers.RegexField(r"^\d{4}-(0[1-9]|1[0-2])$", help_text="Período AAAA-MM.")
    formato = serializers.ChoiceField(choices=[("xml", "XML"), ("resumen", "Resumen JSON")], default="resumen")
