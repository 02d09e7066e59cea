from decimal import Decimal

from rest_framework import serializers

from backend.core.utils import get_default_tax_rate
from .models import (
    ADJUSTMENT_TYPE_CHOICES, ChargeGroup, ChargeLine, OrderSale, OrderPurchase,
    SalesBundle, SalesBundleItem, SalesBundleAdjustment, SalesItemAdjustment,
    PurchaseBundle, PurchaseBundleItem, PurchaseBundleAdjustment, PurchaseItemAdjustment,
)


class ChargeLineSerializer(serializers.ModelSerializer):
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2, required=False)

    class Meta:
        model = ChargeLine
        fields = ['id', 'group', 'side', 'amount', 'tax_rate', 'tax_amount', 'memo',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['group', 'tax_amount', 'created_by', 'created_at', 'updated_at']

    def validate_tax_rate(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("Tax rate must be between 0 and 100")
        return value

    def create(self, validated_data):
        validated_data.setdefault('tax_rate', get_default_tax_rate())
        return super().create(validated_data)


class ChargeGroupSerializer(serializers.ModelSerializer):
    lines = ChargeLineSerializer(many=True, read_only=True)
    sales_total = serializers.SerializerMethodField()
    purchase_total = serializers.SerializerMethodField()

    class Meta:
        model = ChargeGroup
        fields = ['id', 'order', 'dispatch', 'stage', 'reason', 'description', 'is_locked',
                  'lines', 'sales_total', 'purchase_total', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['order', 'created_by', 'created_at', 'updated_at']

    def _side_total(self, obj, side):
        return str(sum((line.amount for line in obj.lines.all() if line.side == side), Decimal('0.00')))

    def get_sales_total(self, obj):
        return self._side_total(obj, 'sales')

    def get_purchase_total(self, obj):
        return self._side_total(obj, 'purchase')

    def validate(self, attrs):
        dispatch = attrs.get('dispatch')
        order = self.context.get('order') or getattr(self.instance, 'order', None)
        if dispatch is not None and order is not None and dispatch.order_id != order.pk:
            raise serializers.ValidationError({'dispatch': 'Dispatch belongs to another order'})
        return attrs


class SettlementRecordSerializer(serializers.ModelSerializer):
    order_cargo_name = serializers.CharField(source='order.cargo_name', read_only=True)
    company_name = serializers.SerializerMethodField()
    bundle_id = serializers.SerializerMethodField()

    class Meta:
        fields = ['id', 'order', 'order_cargo_name', 'company', 'company_name', 'invoice_number', 'status',
                  'issue_date', 'due_date', 'payment_date', 'subtotal_amount', 'tax_amount',
                  'total_amount', 'financial_snapshot', 'memo', 'bundle_id',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['invoice_number', 'total_amount', 'financial_snapshot',
                            'created_by', 'updated_by', 'created_at', 'updated_at']

    def get_company_name(self, obj):
        return obj.company.name if obj.company_id else None

    def get_bundle_id(self, obj):
        item = getattr(obj, 'bundle_item', None)
        return item.bundle_id if item else None

    def validate(self, attrs):
        # A paid row is frozen apart from its status
        if self.instance is not None and self.instance.status == 'paid':
            changed = {key for key in attrs if key != 'status'}
            if changed:
                raise serializers.ValidationError(
                    {'error': 'Paid settlements can only have their status changed', 'fields': sorted(changed)}
                )
        # Bundled rows follow their bundle's status
        if (self.instance is not None and 'status' in attrs and attrs['status'] != self.instance.status
                and getattr(self.instance, 'bundle_item', None) is not None):
            raise serializers.ValidationError(
                {'status': 'This row is in a bundle; change the bundle status instead'}
            )
        for field in ('subtotal_amount', 'tax_amount'):
            if field in attrs and attrs[field] < 0:
                raise serializers.ValidationError({field: 'Amount cannot be negative'})
        return attrs


class OrderSaleSerializer(SettlementRecordSerializer):
    class Meta(SettlementRecordSerializer.Meta):
        model = OrderSale


class OrderPurchaseSerializer(SettlementRecordSerializer):
    driver_name = serializers.SerializerMethodField()

    class Meta(SettlementRecordSerializer.Meta):
        model = OrderPurchase
        fields = SettlementRecordSerializer.Meta.fields + ['driver', 'driver_name']

    def get_driver_name(self, obj):
        return obj.driver.name if obj.driver_id else None

    def validate(self, attrs):
        attrs = super().validate(attrs)
        company = attrs.get('company', getattr(self.instance, 'company', None))
        driver = attrs.get('driver', getattr(self.instance, 'driver', None))
        if company is None and driver is None:
            raise serializers.ValidationError({'driver': 'A purchase needs a company or a driver'})
        return attrs


class SettlementCreateSerializer(serializers.Serializer):
    order = serializers.IntegerField()
    issue_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    memo = serializers.CharField(required=False, allow_blank=True, default='')


class AdjustmentInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ADJUSTMENT_TYPE_CHOICES)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)


class BundleItemInputSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    base_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True,
                                           min_value=Decimal('0'))
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, allow_null=True)
    adjustments = AdjustmentInputSerializer(many=True, required=False)


class AdjustmentSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=Decimal('0.00'))

    class Meta:
        fields = ['id', 'type', 'description', 'amount', 'tax_amount', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']


class SalesBundleAdjustmentSerializer(AdjustmentSerializer):
    class Meta(AdjustmentSerializer.Meta):
        model = SalesBundleAdjustment
        fields = AdjustmentSerializer.Meta.fields + ['bundle']
        read_only_fields = AdjustmentSerializer.Meta.read_only_fields + ['bundle']


class SalesItemAdjustmentSerializer(AdjustmentSerializer):
    class Meta(AdjustmentSerializer.Meta):
        model = SalesItemAdjustment
        fields = AdjustmentSerializer.Meta.fields + ['item']
        read_only_fields = AdjustmentSerializer.Meta.read_only_fields + ['item']


class PurchaseBundleAdjustmentSerializer(AdjustmentSerializer):
    class Meta(AdjustmentSerializer.Meta):
        model = PurchaseBundleAdjustment
        fields = AdjustmentSerializer.Meta.fields + ['bundle']
        read_only_fields = AdjustmentSerializer.Meta.read_only_fields + ['bundle']


class PurchaseItemAdjustmentSerializer(AdjustmentSerializer):
    class Meta(AdjustmentSerializer.Meta):
        model = PurchaseItemAdjustment
        fields = AdjustmentSerializer.Meta.fields + ['item']
        read_only_fields = AdjustmentSerializer.Meta.read_only_fields + ['item']


class SalesBundleItemSerializer(serializers.ModelSerializer):
    adjustments = SalesItemAdjustmentSerializer(many=True, read_only=True)
    order_sale = OrderSaleSerializer(read_only=True)

    class Meta:
        model = SalesBundleItem
        fields = ['id', 'bundle', 'order_sale', 'base_amount', 'tax_amount', 'adjustments', 'created_at']


class PurchaseBundleItemSerializer(serializers.ModelSerializer):
    adjustments = PurchaseItemAdjustmentSerializer(many=True, read_only=True)
    order_purchase = OrderPurchaseSerializer(read_only=True)

    class Meta:
        model = PurchaseBundleItem
        fields = ['id', 'bundle', 'order_purchase', 'base_amount', 'tax_amount', 'adjustments', 'created_at']


BUNDLE_FIELDS = ['id', 'period_from', 'period_to', 'period_type', 'status', 'manager', 'manager_snapshot',
                 'payment_method', 'bank_code', 'bank_account_number', 'bank_account_holder',
                 'settlement_memo', 'issued_date', 'due_date', 'paid_date', 'settled_at',
                 'settlement_batch_id', 'total_amount', 'total_tax_amount', 'total_amount_with_tax',
                 'item_extra_amount', 'item_extra_amount_tax', 'bundle_extra_amount',
                 'bundle_extra_amount_tax', 'order_count', 'item_count',
                 'created_by', 'updated_by', 'created_at', 'updated_at']

BUNDLE_READ_ONLY_FIELDS = ['manager_snapshot', 'total_amount', 'total_tax_amount', 'total_amount_with_tax',
                           'item_extra_amount', 'item_extra_amount_tax', 'bundle_extra_amount',
                           'bundle_extra_amount_tax', 'order_count',
                           'created_by', 'updated_by', 'created_at', 'updated_at']


class BundleSerializer(serializers.ModelSerializer):
    item_count = serializers.SerializerMethodField()

    def get_item_count(self, obj):
        return obj.items.count()

    def validate(self, attrs):
        # A paid bundle is frozen apart from its status
        if self.instance is not None and self.instance.status == 'paid':
            changed = {key for key in attrs if key != 'status'}
            if changed:
                raise serializers.ValidationError(
                    {'error': 'Paid bundles can only have their status changed', 'fields': sorted(changed)}
                )
        period_from = attrs.get('period_from', getattr(self.instance, 'period_from', None))
        period_to = attrs.get('period_to', getattr(self.instance, 'period_to', None))
        if period_from and period_to and period_to < period_from:
            raise serializers.ValidationError({'period_to': 'Period end cannot be before period start'})
        return attrs


class SalesBundleSerializer(BundleSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True)

    class Meta:
        model = SalesBundle
        fields = BUNDLE_FIELDS + ['company', 'company_name', 'company_snapshot', 'invoice_no']
        read_only_fields = BUNDLE_READ_ONLY_FIELDS + ['company_snapshot']


class PurchaseBundleSerializer(BundleSerializer):
    counterparty_name = serializers.SerializerMethodField()

    class Meta:
        model = PurchaseBundle
        fields = BUNDLE_FIELDS + ['company', 'driver', 'counterparty_name', 'counterparty_snapshot', 'payment_no']
        read_only_fields = BUNDLE_READ_ONLY_FIELDS + ['counterparty_snapshot']

    def get_counterparty_name(self, obj):
        if obj.driver_id:
            return obj.driver.name
        if obj.company_id:
            return obj.company.name
        return None

    def validate(self, attrs):
        attrs = super().validate(attrs)
        company = attrs.get('company', getattr(self.instance, 'company', None))
        driver = attrs.get('driver', getattr(self.instance, 'driver', None))
        if (company is None) == (driver is None):
            raise serializers.ValidationError({'error': 'Exactly one of company or driver is required'})
        return attrs


class SalesBundleDetailSerializer(SalesBundleSerializer):
    items = SalesBundleItemSerializer(many=True, read_only=True)
    adjustments = SalesBundleAdjustmentSerializer(many=True, read_only=True)

    class Meta(SalesBundleSerializer.Meta):
        fields = SalesBundleSerializer.Meta.fields + ['items', 'adjustments']


class PurchaseBundleDetailSerializer(PurchaseBundleSerializer):
    items = PurchaseBundleItemSerializer(many=True, read_only=True)
    adjustments = PurchaseBundleAdjustmentSerializer(many=True, read_only=True)

    class Meta(PurchaseBundleSerializer.Meta):
        fields = PurchaseBundleSerializer.Meta.fields + ['items', 'adjustments']


BUNDLE_SERIALIZERS = {
    'sales': {
        'bundle': SalesBundleSerializer,
        'detail': SalesBundleDetailSerializer,
        'bundle_adjustment': SalesBundleAdjustmentSerializer,
        'item_adjustment': SalesItemAdjustmentSerializer,
    },
    'purchase': {
        'bundle': PurchaseBundleSerializer,
        'detail': PurchaseBundleDetailSerializer,
        'bundle_adjustment': PurchaseBundleAdjustmentSerializer,
        'item_adjustment': PurchaseItemAdjustmentSerializer,
    },
}
