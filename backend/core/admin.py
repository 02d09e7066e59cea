from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Setting, ChangeLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'access_level', 'company', 'is_active', 'date_joined']
    list_filter = ['status', 'is_active', 'is_staff', 'access_level', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'phone']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Company', {'fields': ('phone', 'access_level', 'company', 'department', 'position')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Company', {'fields': ('phone', 'access_level', 'company')}),
    )


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(ChangeLog)
class ChangeLogAdmin(admin.ModelAdmin):
    list_display = ['entity_type', 'entity_id', 'change_type', 'changed_by_name', 'ip_address', 'created_at']
    list_filter = ['entity_type', 'change_type', 'created_at']
    search_fields = ['changed_by_name', 'changed_by_email', 'entity_id', 'reason']
    ordering = ['-created_at']
    readonly_fields = ['entity_type', 'entity_id', 'changed_by', 'changed_by_name', 'changed_by_email',
                       'changed_by_access_level', 'change_type', 'old_data', 'new_data', 'diff',
                       'reason', 'ip_address', 'created_at']
