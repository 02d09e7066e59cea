from django.contrib import admin
from .models import Address


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'road_address', 'contact_name', 'contact_phone', 'is_frequent', 'deleted_at', 'updated_at']
    list_filter = ['type', 'is_frequent']
    search_fields = ['name', 'road_address', 'jibun_address', 'contact_name']
    ordering = ['-updated_at']

    def get_queryset(self, request):
        return Address.all_objects.all()
