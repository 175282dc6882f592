from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'name', 'role', 'is_active', 'two_factor_enabled', 'created_at']
    list_filter = ['role', 'is_active', 'is_superuser', 'two_factor_enabled']
    search_fields = ['username', 'email', 'name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Dashboard', {'fields': ('name', 'phone', 'role', 'avatar', 'two_factor_enabled')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Dashboard', {'fields': ('email', 'name', 'role')}),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'target_type', 'target_id', 'ip_address', 'created_at']
    list_filter = ['action', 'target_type', 'created_at']
    search_fields = ['user__username', 'user__name', 'target_type', 'target_id', 'details']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'target_type', 'target_id', 'details', 'changes', 'ip_address', 'created_at']
