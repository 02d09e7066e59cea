from rest_framework import serializers

from .models import ROUTE_PRIORITY_CHOICES, ApiUsageLog, DistanceCache

LAT_RANGE = (33, 39)
LNG_RANGE = (124, 132)


class CoordinatesSerializer(serializers.Serializer):
    lat = serializers.FloatField()
    lng = serializers.FloatField()

    def validate(self, attrs):
        if not LAT_RANGE[0] <= attrs['lat'] <= LAT_RANGE[1] or not LNG_RANGE[0] <= attrs['lng'] <= LNG_RANGE[1]:
            raise serializers.ValidationError('Coordinates are outside the supported area')
        return attrs


class DistanceRequestSerializer(serializers.Serializer):
    pickup_address_id = serializers.IntegerField()
    delivery_address_id = serializers.IntegerField()
    pickup_coordinates = CoordinatesSerializer(required=False)
    delivery_coordinates = CoordinatesSerializer(required=False)
    priority = serializers.ChoiceField(choices=ROUTE_PRIORITY_CHOICES, default='RECOMMEND')
    force_refresh = serializers.BooleanField(default=False)


class DistanceCacheSerializer(serializers.ModelSerializer):
    class Meta:
        model = DistanceCache
        fields = ['id', 'pickup_address', 'delivery_address', 'pickup_coordinates', 'delivery_coordinates',
                  'priority', 'distance_km', 'duration_min', 'route_summary', 'is_valid', 'hit_count',
                  'created_at', 'updated_at']


class ApiUsageLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ApiUsageLog
        fields = ['id', 'api_type', 'endpoint', 'request_params', 'response_status', 'response_time_ms',
                  'success', 'error_message', 'result_count', 'user', 'ip_address', 'estimated_cost',
                  'created_at']
