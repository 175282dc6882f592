from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from protekcms.core.exceptions import ServiceError
from protekcms.core.utils import paginate_params, paginate_queryset
from . import services
from .filters import ClientFilter
from .models import (
    Client, ClientProfile, Discount, LegalEntity, Requisite, Contract,
    ClientContact, Vehicle, DeliveryAddress,
)
from .serializers import (
    ClientSerializer, ClientDetailSerializer, ClientProfileSerializer, DiscountSerializer,
    LegalEntitySerializer, RequisiteSerializer, ContractSerializer, ClientContactSerializer,
    VehicleSerializer, DeliveryAddressSerializer,
)

# (model, serializer, audit target type) per nested resource
SUB_RESOURCES = {
    'legal-entities': (LegalEntity, LegalEntitySerializer, 'legal_entity'),
    'requisites': (Requisite, RequisiteSerializer, 'requisite'),
    'contracts': (Contract, ContractSerializer, 'contract'),
    'contacts': (ClientContact, ClientContactSerializer, 'client_contact'),
    'vehicles': (Vehicle, VehicleSerializer, 'vehicle'),
    'delivery-addresses': (DeliveryAddress, DeliveryAddressSerializer, 'delivery_address'),
}


def _error(e):
    return Response({'error': e.detail}, status=e.status_code)


def _client_detail_queryset():
    return Client.objects.select_related('profile').prefetch_related(
        'legal_entities', 'requisites__legal_entity', 'contracts', 'contacts', 'vehicles', 'delivery_addresses',
    )


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List clients with filtering and pagination, or create a client"""
    if request.method == 'GET':
        filterset = ClientFilter(request.query_params, queryset=Client.objects.select_related('profile'))
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

        page, limit = paginate_params(request, default_limit=10)
        items, pagination = paginate_queryset(filterset.qs, page, limit)
        return Response({
            'clients': ClientSerializer(items, many=True).data,
            'total': pagination['total'],
            'page': pagination['page'],
            'limit': pagination['limit'],
            'total_pages': pagination['pages'],
        })
    else:
        try:
            client = services.create_client(request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(ClientSerializer(client).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    client = get_object_or_404(_client_detail_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(ClientDetailSerializer(client).data)
    elif request.method == 'PATCH':
        try:
            client = services.update_client(client, request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(ClientSerializer(client).data)
    else:  # DELETE
        services.delete_client(client, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Nested client records
def _sub_list_create(request, pk, resource):
    model, serializer_class, target_type = SUB_RESOURCES[resource]
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        records = model.objects.filter(client=client)
        return Response(serializer_class(records, many=True).data)
    record = services.save_sub_record(client, serializer_class, request.data, target_type, request=request)
    return Response(serializer_class(record).data, status=status.HTTP_201_CREATED)


def _sub_detail(request, pk, sub_pk, resource):
    model, serializer_class, target_type = SUB_RESOURCES[resource]
    client = get_object_or_404(Client, pk=pk)
    # Scoped to the client so another client's record is a 404
    record = get_object_or_404(model, pk=sub_pk, client=client)

    if request.method == 'GET':
        return Response(serializer_class(record).data)
    elif request.method == 'PATCH':
        record = services.save_sub_record(client, serializer_class, request.data, target_type,
                                          instance=record, request=request)
        return Response(serializer_class(record).data)
    else:  # DELETE
        services.delete_sub_record(client, record, target_type, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def legal_entity_list_create(request, pk):
    return _sub_list_create(request, pk, 'legal-entities')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def legal_entity_detail(request, pk, sub_pk):
    return _sub_detail(request, pk, sub_pk, 'legal-entities')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def requisite_list_create(request, pk):
    return _sub_list_create(request, pk, 'requisites')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def requisite_detail(request, pk, sub_pk):
    return _sub_detail(request, pk, sub_pk, 'requisites')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contract_list_create(request, pk):
    return _sub_list_create(request, pk, 'contracts')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def contract_detail(request, pk, sub_pk):
    return _sub_detail(request, pk, sub_pk, 'contracts')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contact_list_create(request, pk):
    return _sub_list_create(request, pk, 'contacts')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def contact_detail(request, pk, sub_pk):
    return _sub_detail(request, pk, sub_pk, 'contacts')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vehicle_list_create(request, pk):
    """Client garage"""
    return _sub_list_create(request, pk, 'vehicles')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vehicle_detail(request, pk, sub_pk):
    return _sub_detail(request, pk, sub_pk, 'vehicles')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def delivery_address_list_create(request, pk):
    return _sub_list_create(request, pk, 'delivery-addresses')


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def delivery_address_detail(request, pk, sub_pk):
    return _sub_detail(request, pk, sub_pk, 'delivery-addresses')


# Client profile views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def profile_list_create(request):
    if request.method == 'GET':
        profiles = ClientProfile.objects.annotate(clients_count=Count('clients'))
        return Response(ClientProfileSerializer(profiles, many=True).data)
    else:
        try:
            profile = services.create_profile(request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(ClientProfileSerializer(profile).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def profile_detail(request, pk):
    profile = get_object_or_404(ClientProfile, pk=pk)

    if request.method == 'GET':
        return Response(ClientProfileSerializer(profile).data)
    elif request.method == 'PATCH':
        try:
            profile = services.update_profile(profile, request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(ClientProfileSerializer(profile).data)
    else:  # DELETE
        services.delete_profile(profile, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Discount views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def discount_list_create(request):
    if request.method == 'GET':
        discounts = Discount.objects.prefetch_related('profiles')
        discount_type = request.query_params.get('type')
        if discount_type:
            discounts = discounts.filter(type=discount_type)
        return Response(DiscountSerializer(discounts, many=True).data)
    else:
        try:
            discount = services.create_discount(request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(DiscountSerializer(discount).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def discount_detail(request, pk):
    discount = get_object_or_404(Discount.objects.prefetch_related('profiles'), pk=pk)

    if request.method == 'GET':
        return Response(DiscountSerializer(discount).data)
    elif request.method == 'PATCH':
        try:
            discount = services.update_discount(discount, request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(DiscountSerializer(discount).data)
    else:  # DELETE
        services.delete_discount(discount, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)
