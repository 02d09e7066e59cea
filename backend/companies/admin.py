from django.contrib import admin
from .models import Company, CompanyWarning


class CompanyWarningInline(admin.TabularInline):
    model = CompanyWarning
    extra = 0


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'business_number', 'ceo_name', 'type', 'status', 'contact_tel', 'created_at']
    list_filter = ['type', 'status']
    search_fields = ['name', 'business_number', 'ceo_name']
    ordering = ['name']
    inlines = [CompanyWarningInline]
