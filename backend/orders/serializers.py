from rest_framework import serializers

from backend.addresses.models import Address
from backend.addresses.serializers import AddressSerializer
from backend.companies.models import Company
from backend.core.utils import make_snapshot
from backend.drivers.models import Driver
from backend.drivers.serializers import DriverSerializer
from .models import Order, OrderDispatch

ADDRESS_SNAPSHOT_KEYS = ['id', 'name', 'road_address', 'jibun_address', 'detail_address',
                         'postal_code', 'metadata', 'contact_name', 'contact_phone']
DRIVER_SNAPSHOT_KEYS = ['id', 'name', 'phone_number', 'vehicle_number', 'vehicle_type',
                        'vehicle_weight', 'business_number', 'bank_code', 'bank_account_number',
                        'bank_account_holder']


def address_snapshot(address):
    data = make_snapshot(AddressSerializer, address) or {}
    return {key: data.get(key) for key in ADDRESS_SNAPSHOT_KEYS}


def driver_snapshot(driver):
    data = make_snapshot(DriverSerializer, driver) or {}
    return {key: data.get(key) for key in DRIVER_SNAPSHOT_KEYS}


def user_snapshot(user):
    if user is None:
        return {}
    return {
        'id': user.pk,
        'name': user.display_name,
        'email': user.email,
        'phone': user.phone or '',
    }


class OrderSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True)
    pickup_address = serializers.PrimaryKeyRelatedField(queryset=Address.objects.all(), required=False, allow_null=True)
    delivery_address = serializers.PrimaryKeyRelatedField(queryset=Address.objects.all(), required=False, allow_null=True)
    has_dispatch = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'company', 'company_name', 'contact_user', 'contact_snapshot', 'flow_status',
                  'cargo_name', 'requested_vehicle_type', 'requested_vehicle_weight',
                  'pickup_address', 'pickup_snapshot', 'pickup_name', 'pickup_contact_name',
                  'pickup_contact_phone', 'pickup_date', 'pickup_time',
                  'delivery_address', 'delivery_snapshot', 'delivery_name', 'delivery_contact_name',
                  'delivery_contact_phone', 'delivery_date', 'delivery_time',
                  'estimated_price_amount', 'price_type', 'tax_type',
                  'estimated_distance_km', 'estimated_duration_min',
                  'is_canceled', 'memo', 'has_dispatch',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['contact_snapshot', 'pickup_snapshot', 'delivery_snapshot', 'is_canceled',
                            'created_by', 'updated_by', 'created_at', 'updated_at']

    def get_has_dispatch(self, obj):
        return OrderDispatch.objects.filter(order_id=obj.pk).exists()

    def validate(self, attrs):
        pickup_date = attrs.get('pickup_date', getattr(self.instance, 'pickup_date', None))
        delivery_date = attrs.get('delivery_date', getattr(self.instance, 'delivery_date', None))
        if pickup_date and delivery_date and delivery_date < pickup_date:
            raise serializers.ValidationError({'delivery_date': 'Delivery date cannot be before pickup date'})

        for side in ('pickup', 'delivery'):
            address = attrs.get(f'{side}_address')
            has_address = address is not None or (self.instance is not None and getattr(self.instance, f'{side}_address_id'))
            if not has_address and not (self.instance and getattr(self.instance, f'{side}_snapshot')):
                raise serializers.ValidationError({f'{side}_address': f'{side.capitalize()} address is required'})
        return attrs

    def _apply_snapshots(self, validated_data):
        for side in ('pickup', 'delivery'):
            if f'{side}_address' not in validated_data:
                continue
            address = validated_data[f'{side}_address']
            if address is None:
                continue
            validated_data[f'{side}_snapshot'] = address_snapshot(address)
            if not validated_data.get(f'{side}_name'):
                validated_data[f'{side}_name'] = address.name
            if not validated_data.get(f'{side}_contact_name'):
                validated_data[f'{side}_contact_name'] = address.contact_name
            if not validated_data.get(f'{side}_contact_phone'):
                validated_data[f'{side}_contact_phone'] = address.contact_phone
        if 'contact_user' in validated_data:
            validated_data['contact_snapshot'] = user_snapshot(validated_data['contact_user'])
        return validated_data

    def create(self, validated_data):
        return super().create(self._apply_snapshots(validated_data))

    def update(self, instance, validated_data):
        return super().update(instance, self._apply_snapshots(validated_data))


class OrderDispatchSerializer(serializers.ModelSerializer):
    broker_company = serializers.PrimaryKeyRelatedField(queryset=Company.objects.filter(type='broker'))
    driver = serializers.PrimaryKeyRelatedField(queryset=Driver.objects.all())
    broker_company_name = serializers.CharField(source='broker_company.name', read_only=True)

    class Meta:
        model = OrderDispatch
        fields = ['id', 'order', 'broker_company', 'broker_company_name', 'broker_manager',
                  'driver', 'driver_snapshot', 'vehicle_number', 'vehicle_type', 'vehicle_weight',
                  'vehicle_connection', 'agreed_freight_cost', 'broker_memo', 'broker_flow_status',
                  'is_closed', 'closed_at', 'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['order', 'driver_snapshot', 'is_closed', 'closed_at',
                            'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_driver(self, value):
        if not value.is_active:
            raise serializers.ValidationError("Driver is inactive")
        return value

    def validate_agreed_freight_cost(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Freight cost cannot be negative")
        return value

    def create(self, validated_data):
        validated_data['driver_snapshot'] = driver_snapshot(validated_data['driver'])
        return super().create(validated_data)

    def update(self, instance, validated_data):
        if 'driver' in validated_data:
            validated_data['driver_snapshot'] = driver_snapshot(validated_data['driver'])
        return super().update(instance, validated_data)


class OrderDetailSerializer(OrderSerializer):
    dispatch = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['dispatch']

    def get_dispatch(self, obj):
        dispatch = OrderDispatch.objects.filter(order_id=obj.pk).first()
        return OrderDispatchSerializer(dispatch).data if dispatch else None
