from rest_framework import serializers
from .models import Company, CompanyWarning


class CompanySerializer(serializers.ModelSerializer):
    warning_count = serializers.IntegerField(source='warnings.count', read_only=True)

    class Meta:
        model = Company
        fields = ['id', 'name', 'business_number', 'ceo_name', 'type', 'status',
                  'address_postal_code', 'address_road', 'address_detail',
                  'contact_tel', 'contact_mobile', 'contact_email',
                  'bank_code', 'bank_account_number', 'bank_account_holder',
                  'warning_count', 'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_business_number(self, value):
        value = value.strip()
        digits = value.replace('-', '')
        if not digits.isdigit() or len(digits) != 10:
            raise serializers.ValidationError("Business number must contain 10 digits")
        return value


class CompanyWarningSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanyWarning
        fields = ['id', 'company', 'text', 'category', 'sort_order', 'created_at', 'updated_at']
        read_only_fields = ['company', 'created_at', 'updated_at']
