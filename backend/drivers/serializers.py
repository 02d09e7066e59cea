from django.utils import timezone
from rest_framework import serializers
from .models import Driver, DriverNote


class DriverSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)

    class Meta:
        model = Driver
        fields = ['id', 'name', 'phone_number', 'vehicle_number', 'vehicle_type', 'vehicle_weight',
                  'company', 'company_name', 'company_type', 'business_number', 'manufacture_year',
                  'address_snapshot', 'bank_code', 'bank_account_number', 'bank_account_holder',
                  'is_active', 'inactive_reason', 'last_dispatched_at',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['last_dispatched_at', 'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_vehicle_number(self, value):
        return value.strip()

    def validate_manufacture_year(self, value):
        if value is not None and not 1980 <= value <= timezone.now().year + 1:
            raise serializers.ValidationError("Manufacture year is out of range")
        return value

    def validate(self, attrs):
        is_active = attrs.get('is_active', getattr(self.instance, 'is_active', True))
        if is_active:
            attrs['inactive_reason'] = ''
        return attrs


class DriverNoteSerializer(serializers.ModelSerializer):
    class Meta:
        model = DriverNote
        fields = ['id', 'driver', 'content', 'date', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['driver', 'created_by', 'created_at', 'updated_at']
