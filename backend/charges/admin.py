from django.contrib import admin
from .models import (
    ChargeGroup, ChargeLine, OrderSale, OrderPurchase,
    SalesBundle, SalesBundleItem, SalesBundleAdjustment,
    PurchaseBundle, PurchaseBundleItem, PurchaseBundleAdjustment,
)


class ChargeLineInline(admin.TabularInline):
    model = ChargeLine
    extra = 0
    readonly_fields = ['tax_amount', 'created_at']


@admin.register(ChargeGroup)
class ChargeGroupAdmin(admin.ModelAdmin):
    list_display = ['order', 'stage', 'reason', 'is_locked', 'created_at']
    list_filter = ['stage', 'reason', 'is_locked']
    search_fields = ['order__cargo_name', 'description']
    inlines = [ChargeLineInline]


@admin.register(OrderSale)
class OrderSaleAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'order', 'company', 'status', 'total_amount', 'issue_date']
    list_filter = ['status']
    search_fields = ['invoice_number', 'company__name']
    readonly_fields = ['total_amount', 'financial_snapshot', 'created_at', 'updated_at']


@admin.register(OrderPurchase)
class OrderPurchaseAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'order', 'company', 'driver', 'status', 'total_amount', 'issue_date']
    list_filter = ['status']
    search_fields = ['invoice_number', 'company__name', 'driver__name']
    readonly_fields = ['total_amount', 'financial_snapshot', 'created_at', 'updated_at']


class SalesBundleItemInline(admin.TabularInline):
    model = SalesBundleItem
    extra = 0
    raw_id_fields = ['order_sale']


class SalesBundleAdjustmentInline(admin.TabularInline):
    model = SalesBundleAdjustment
    extra = 0


@admin.register(SalesBundle)
class SalesBundleAdmin(admin.ModelAdmin):
    list_display = ['invoice_no', 'company', 'status', 'total_amount_with_tax', 'order_count', 'created_at']
    list_filter = ['status', 'period_type']
    search_fields = ['invoice_no', 'company__name']
    inlines = [SalesBundleItemInline, SalesBundleAdjustmentInline]


class PurchaseBundleItemInline(admin.TabularInline):
    model = PurchaseBundleItem
    extra = 0
    raw_id_fields = ['order_purchase']


class PurchaseBundleAdjustmentInline(admin.TabularInline):
    model = PurchaseBundleAdjustment
    extra = 0


@admin.register(PurchaseBundle)
class PurchaseBundleAdmin(admin.ModelAdmin):
    list_display = ['payment_no', 'company', 'driver', 'status', 'total_amount_with_tax', 'order_count', 'created_at']
    list_filter = ['status', 'period_type']
    search_fields = ['payment_no', 'company__name', 'driver__name']
    inlines = [PurchaseBundleItemInline, PurchaseBundleAdjustmentInline]
