from rest_framework import serializers
from .models import (
    Client, ClientProfile, Discount, LegalEntity, Requisite, Contract,
    ClientContact, Vehicle, DeliveryAddress,
)


class ClientProfileSerializer(serializers.ModelSerializer):
    clients_count = serializers.SerializerMethodField()

    class Meta:
        model = ClientProfile
        fields = ['id', 'name', 'code', 'comment', 'base_markup', 'price_markup', 'order_discount',
                  'clients_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_clients_count(self, obj):
        count = getattr(obj, 'clients_count', None)
        return count if count is not None else obj.clients.count()


class ClientProfileWriteSerializer(serializers.ModelSerializer):
    # Uniqueness is checked in the service layer so both APIs report it the same way
    name = serializers.CharField(max_length=255)
    code = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = ClientProfile
        fields = ['name', 'code', 'comment', 'base_markup', 'price_markup', 'order_discount']
        extra_kwargs = {
            'comment': {'required': False, 'allow_blank': True, 'allow_null': True},
            'price_markup': {'required': False, 'allow_blank': True, 'allow_null': True},
            'order_discount': {'required': False, 'allow_blank': True, 'allow_null': True},
        }


class ProfileBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClientProfile
        fields = ['id', 'name', 'code']


class DiscountSerializer(serializers.ModelSerializer):
    profiles = ProfileBriefSerializer(many=True, read_only=True)

    class Meta:
        model = Discount
        fields = ['id', 'name', 'type', 'code', 'min_order_amount', 'discount_percent', 'fixed_discount',
                  'profiles', 'is_active', 'created_at', 'updated_at']
        read_only_fields = fields


class DiscountWriteSerializer(serializers.ModelSerializer):
    code = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    profile_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100,
                                                required=False, allow_null=True)
    fixed_discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0,
                                              required=False, allow_null=True)
    min_order_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = Discount
        fields = ['name', 'type', 'code', 'min_order_amount', 'discount_percent', 'fixed_discount',
                  'profile_ids', 'is_active']

    def validate(self, attrs):
        instance = self.instance

        def current(field):
            if field in attrs:
                return attrs[field]
            return getattr(instance, field) if instance is not None else None

        discount_type = current('type')
        code = (current('code') or '').strip()
        if discount_type == Discount.TYPE_PROMO_CODE:
            if not code:
                raise serializers.ValidationError({'code': 'A promo code requires a code'})
            attrs['code'] = code
        elif 'type' in attrs or 'code' in attrs:
            attrs['code'] = None

        if current('discount_percent') is None and current('fixed_discount') is None:
            raise serializers.ValidationError(
                {'discount_percent': 'Either a percent or a fixed discount is required'}
            )
        return attrs


class ClientSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    profile_name = serializers.CharField(source='profile.name', read_only=True, default=None)

    class Meta:
        model = Client
        fields = ['id', 'phone', 'email', 'first_name', 'last_name', 'full_name', 'profile_type',
                  'profile', 'profile_name', 'status', 'is_verified', 'registration_date',
                  'last_login_date', 'comment', 'created_at', 'updated_at']
        read_only_fields = fields


class ClientWriteSerializer(serializers.ModelSerializer):
    phone = serializers.CharField(max_length=20)
    profile = serializers.PrimaryKeyRelatedField(queryset=ClientProfile.objects.all(), required=False,
                                                 allow_null=True)

    class Meta:
        model = Client
        fields = ['phone', 'email', 'first_name', 'last_name', 'profile_type', 'profile', 'status',
                  'is_verified', 'comment']
        extra_kwargs = {
            'email': {'required': False, 'allow_blank': True, 'allow_null': True},
            'first_name': {'required': False, 'allow_blank': True, 'allow_null': True},
            'last_name': {'required': False, 'allow_blank': True, 'allow_null': True},
            'comment': {'required': False, 'allow_blank': True, 'allow_null': True},
        }

    def validate_phone(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Phone is required')
        return value


class LegalEntitySerializer(serializers.ModelSerializer):
    class Meta:
        model = LegalEntity
        fields = ['id', 'name', 'short_name', 'full_name', 'form', 'legal_address', 'tax_system',
                  'responsible_name', 'responsible_position', 'responsible_phone', 'accountant',
                  'signatory', 'inn', 'kpp', 'ogrn', 'vat_percent', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class RequisiteSerializer(serializers.ModelSerializer):
    legal_entity_name = serializers.CharField(source='legal_entity.name', read_only=True, default=None)

    class Meta:
        model = Requisite
        fields = ['id', 'legal_entity', 'legal_entity_name', 'name', 'bank_name', 'bik', 'account_number',
                  'correspondent_account', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_legal_entity(self, value):
        client = self.context.get('client')
        if value is not None and client is not None and value.client_id != client.pk:
            raise serializers.ValidationError('Legal entity belongs to another client')
        return value


class ContractSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contract
        fields = ['id', 'number', 'date', 'type', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class ClientContactSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClientContact
        fields = ['id', 'name', 'phone', 'email', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class VehicleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vehicle
        fields = ['id', 'name', 'vin_or_frame', 'code_type', 'make', 'model', 'modification', 'year',
                  'license_plate', 'mileage', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_vin_or_frame(self, value):
        return value.strip().upper()


class DeliveryAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = DeliveryAddress
        fields = ['id', 'name', 'address', 'delivery_type', 'comment', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class ClientDetailSerializer(ClientSerializer):
    """Client card with every sub-record"""
    legal_entities = LegalEntitySerializer(many=True, read_only=True)
    requisites = RequisiteSerializer(many=True, read_only=True)
    contracts = ContractSerializer(many=True, read_only=True)
    contacts = ClientContactSerializer(many=True, read_only=True)
    vehicles = VehicleSerializer(many=True, read_only=True)
    delivery_addresses = DeliveryAddressSerializer(many=True, read_only=True)

    class Meta(ClientSerializer.Meta):
        fields = ClientSerializer.Meta.fields + ['legal_entities', 'requisites', 'contracts', 'contacts',
                                                 'vehicles', 'delivery_addresses']
        read_only_fields = fields
