"""
Client, profile and discount operations shared by the REST views and the
GraphQL schema.
"""
import logging
import secrets

from django.db import transaction

from protekcms.core.exceptions import ServiceError
from protekcms.core.models import AuditLog
from protekcms.core.utils import create_audit_log, casefold_matches
from .models import Client, ClientProfile, Discount, DEFAULT_PROFILE_NAME
from .serializers import ClientWriteSerializer, ClientProfileWriteSerializer, DiscountWriteSerializer

logger = logging.getLogger(__name__)


def _diff(instance, validated):
    return {
        field: {'old': str(getattr(instance, field)), 'new': str(value)}
        for field, value in validated.items()
        if getattr(instance, field) != value
    }


# Clients
def _phone_taken(phone, exclude_pk=None):
    queryset = Client.objects.filter(phone=phone)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset.exists()


def create_client(data, request=None):
    """
    Create a client from the dashboard.

    Dashboard-created clients are verified. Without an explicit profile the
    client is attached to the retail profile when it exists.
    """
    serializer = ClientWriteSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)

    if _phone_taken(validated['phone']):
        raise ServiceError('A client with this phone number already exists')

    if validated.get('profile') is None:
        profile_name = validated.get('profile_type') or DEFAULT_PROFILE_NAME
        validated['profile'] = ClientProfile.objects.filter(name=profile_name).first()
    if validated['profile'] is not None and not validated.get('profile_type'):
        validated['profile_type'] = validated['profile'].name
    validated.setdefault('is_verified', True)

    client = Client.objects.create(**validated)
    create_audit_log(request, AuditLog.ACTION_CREATE, 'client', client.pk,
                     details=f'Client created: {client.display_name}',
                     changes={'phone': client.phone, 'profile_id': client.profile_id})
    return client


def update_client(client, data, request=None):
    serializer = ClientWriteSerializer(client, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)

    if 'phone' in validated and _phone_taken(validated['phone'], exclude_pk=client.pk):
        raise ServiceError('A client with this phone number already exists')
    if validated.get('profile') is not None and 'profile_type' not in validated:
        validated['profile_type'] = validated['profile'].name

    changes = _diff(client, validated)
    for attr, value in validated.items():
        setattr(client, attr, value)
    client.save()
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'client', client.pk,
                     details=f'Client updated: {client.display_name}', changes=changes)
    return client


def delete_client(client, request=None):
    client_id, name = client.pk, client.display_name
    client.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'client', client_id,
                     details=f'Client deleted: {name}')


def save_sub_record(client, serializer_class, data, target_type, instance=None, request=None):
    """Create or partially update one of a client's sub-records (contract, vehicle, ...)"""
    serializer = serializer_class(instance, data=data, partial=instance is not None,
                                  context={'client': client})
    serializer.is_valid(raise_exception=True)
    changes = _diff(instance, serializer.validated_data) if instance is not None else {}
    record = serializer.save(client=client)
    action = AuditLog.ACTION_UPDATE if instance is not None else AuditLog.ACTION_CREATE
    create_audit_log(request, action, target_type, record.pk,
                     details=f'{target_type.replace("_", " ").capitalize()} '
                             f'{"updated" if instance is not None else "created"} '
                             f'for client {client.display_name}',
                     changes=dict(changes, client_id=client.pk))
    return record


def delete_sub_record(client, record, target_type, request=None):
    record_id = record.pk
    record.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, target_type, record_id,
                     details=f'{target_type.replace("_", " ").capitalize()} deleted '
                             f'for client {client.display_name}',
                     changes={'client_id': client.pk})


# Profiles
def _generate_profile_code():
    while True:
        code = f'PROF-{secrets.token_hex(3).upper()}'
        if not ClientProfile.objects.filter(code=code).exists():
            return code


def _check_profile_unique(name, code, exclude_pk=None):
    queryset = ClientProfile.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    if name is not None and casefold_matches(queryset, 'name', name):
        raise ServiceError('A profile with this name already exists')
    if code is not None and casefold_matches(queryset, 'code', code):
        raise ServiceError('A profile with this code already exists')


def create_profile(data, request=None):
    serializer = ClientProfileWriteSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)
    validated['name'] = validated['name'].strip()
    validated['code'] = (validated.get('code') or '').strip() or _generate_profile_code()

    _check_profile_unique(validated['name'], validated['code'])
    profile = ClientProfile.objects.create(**validated)
    create_audit_log(request, AuditLog.ACTION_CREATE, 'client_profile', profile.pk,
                     details=f'Client profile created: {profile.name} ({profile.code})')
    return profile


def update_profile(profile, data, request=None):
    serializer = ClientProfileWriteSerializer(profile, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)
    if 'name' in validated:
        validated['name'] = validated['name'].strip()
    if 'code' in validated:
        validated['code'] = (validated['code'] or '').strip() or profile.code

    _check_profile_unique(validated.get('name'), validated.get('code'), exclude_pk=profile.pk)
    changes = _diff(profile, validated)
    for attr, value in validated.items():
        setattr(profile, attr, value)
    profile.save()
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'client_profile', profile.pk,
                     details=f'Client profile updated: {profile.name}', changes=changes)
    return profile


def delete_profile(profile, request=None):
    """Delete a profile; its clients keep their profile_type label but lose the link"""
    profile_id, name = profile.pk, profile.name
    clients_count = profile.clients.count()
    if clients_count:
        logger.info(f"Detaching {clients_count} clients from profile {profile_id} before delete")
    profile.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'client_profile', profile_id,
                     details=f'Client profile deleted: {name}',
                     changes={'detached_clients': clients_count})


# Discounts
def _resolve_profiles(profile_ids):
    profile_ids = list(dict.fromkeys(profile_ids))
    profiles = list(ClientProfile.objects.filter(pk__in=profile_ids))
    missing = sorted(set(profile_ids) - {profile.pk for profile in profiles})
    if missing:
        raise ServiceError(f'Unknown client profiles: {", ".join(str(pk) for pk in missing)}')
    return profiles


def _code_taken(code, exclude_pk=None):
    queryset = Discount.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return bool(casefold_matches(queryset, 'code', code))


@transaction.atomic
def create_discount(data, request=None):
    serializer = DiscountWriteSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)
    profile_ids = validated.pop('profile_ids', [])

    profiles = _resolve_profiles(profile_ids)
    if validated.get('code') and _code_taken(validated['code']):
        raise ServiceError('A discount with this code already exists')

    discount = Discount.objects.create(**validated)
    discount.profiles.set(profiles)
    create_audit_log(request, AuditLog.ACTION_CREATE, 'discount', discount.pk,
                     details=f'Discount created: {discount.name}',
                     changes={'type': discount.type, 'profile_ids': [p.pk for p in profiles]})
    return discount


@transaction.atomic
def update_discount(discount, data, request=None):
    serializer = DiscountWriteSerializer(discount, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)
    profile_ids = validated.pop('profile_ids', None)

    profiles = _resolve_profiles(profile_ids) if profile_ids is not None else None
    if validated.get('code') and _code_taken(validated['code'], exclude_pk=discount.pk):
        raise ServiceError('A discount with this code already exists')

    changes = _diff(discount, validated)
    for attr, value in validated.items():
        setattr(discount, attr, value)
    discount.save()
    if profiles is not None:
        discount.profiles.set(profiles)
        changes['profile_ids'] = [p.pk for p in profiles]
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'discount', discount.pk,
                     details=f'Discount updated: {discount.name}', changes=changes)
    return discount


def delete_discount(discount, request=None):
    discount_id, name = discount.pk, discount.name
    discount.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'discount', discount_id,
                     details=f'Discount deleted: {name}')
