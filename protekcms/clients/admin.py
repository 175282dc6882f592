from django.contrib import admin
from .models import (
    Client, ClientProfile, Discount, LegalEntity, Requisite, Contract,
    ClientContact, Vehicle, DeliveryAddress,
)


@admin.register(ClientProfile)
class ClientProfileAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'base_markup', 'price_markup', 'order_discount']
    search_fields = ['name', 'code']
    readonly_fields = ['created_at', 'updated_at']


class LegalEntityInline(admin.StackedInline):
    model = LegalEntity
    extra = 0


class RequisiteInline(admin.TabularInline):
    model = Requisite
    extra = 0


class ContractInline(admin.TabularInline):
    model = Contract
    extra = 0


class ClientContactInline(admin.TabularInline):
    model = ClientContact
    extra = 0


class VehicleInline(admin.TabularInline):
    model = Vehicle
    extra = 0


class DeliveryAddressInline(admin.TabularInline):
    model = DeliveryAddress
    extra = 0


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['phone', 'last_name', 'first_name', 'email', 'profile_type', 'status', 'is_verified',
                    'registration_date']
    list_filter = ['status', 'is_verified', 'profile_type']
    search_fields = ['phone', 'first_name', 'last_name', 'email']
    readonly_fields = ['registration_date', 'created_at', 'updated_at']
    inlines = [LegalEntityInline, RequisiteInline, ContractInline, ClientContactInline, VehicleInline,
               DeliveryAddressInline]


@admin.register(Discount)
class DiscountAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'code', 'discount_percent', 'fixed_discount', 'min_order_amount', 'is_active']
    list_filter = ['type', 'is_active']
    search_fields = ['name', 'code']
    filter_horizontal = ['profiles']
