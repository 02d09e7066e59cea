from rest_framework import serializers
from .models import Address


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ['id', 'name', 'type', 'road_address', 'jibun_address', 'detail_address', 'postal_code',
                  'metadata', 'contact_name', 'contact_phone', 'memo', 'is_frequent', 'company',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_metadata(self, value):
        if value in (None, ''):
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError("metadata must be an object")
        for key in ('lat', 'lng'):
            if value.get(key) in (None, ''):
                continue
            try:
                value[key] = float(value[key])
            except (TypeError, ValueError):
                raise serializers.ValidationError(f"metadata.{key} must be a number")
        return value
