from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, ChangeLog


class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'display_name', 'phone',
                  'access_level', 'company', 'company_name', 'department', 'position',
                  'status', 'is_active', 'is_staff', 'is_superuser', 'created_at', 'updated_at']
        read_only_fields = ['is_active', 'created_at', 'updated_at']

    def validate_email(self, value):
        if value:
            duplicates = User.objects.filter(email__iexact=value)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError("This email is already in use")
        return value

    def update(self, instance, validated_data):
        # Only active users can sign in
        if 'status' in validated_data:
            validated_data['is_active'] = validated_data['status'] == 'active'
        return super().update(instance, validated_data)


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name',
                  'phone', 'access_level', 'company', 'department', 'position']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class ChangeLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ChangeLog
        fields = ['id', 'entity_type', 'entity_id', 'changed_by', 'changed_by_name', 'changed_by_email',
                  'changed_by_access_level', 'change_type', 'old_data', 'new_data', 'diff',
                  'reason', 'ip_address', 'created_at']
