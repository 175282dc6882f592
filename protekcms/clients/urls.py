from django.urls import path
from .views import (
    client_list_create, client_detail,
    legal_entity_list_create, legal_entity_detail,
    requisite_list_create, requisite_detail,
    contract_list_create, contract_detail,
    contact_list_create, contact_detail,
    vehicle_list_create, vehicle_detail,
    delivery_address_list_create, delivery_address_detail,
    profile_list_create, profile_detail,
    discount_list_create, discount_detail,
)

urlpatterns = [
    # Client endpoints
    path('clients/', client_list_create, name='client-list-create'),
    path('clients/<int:pk>/', client_detail, name='client-detail'),

    # Nested client records
    path('clients/<int:pk>/legal-entities/', legal_entity_list_create, name='client-legal-entity-list'),
    path('clients/<int:pk>/legal-entities/<int:sub_pk>/', legal_entity_detail, name='client-legal-entity-detail'),
    path('clients/<int:pk>/requisites/', requisite_list_create, name='client-requisite-list'),
    path('clients/<int:pk>/requisites/<int:sub_pk>/', requisite_detail, name='client-requisite-detail'),
    path('clients/<int:pk>/contracts/', contract_list_create, name='client-contract-list'),
    path('clients/<int:pk>/contracts/<int:sub_pk>/', contract_detail, name='client-contract-detail'),
    path('clients/<int:pk>/contacts/', contact_list_create, name='client-contact-list'),
    path('clients/<int:pk>/contacts/<int:sub_pk>/', contact_detail, name='client-contact-detail'),
    path('clients/<int:pk>/vehicles/', vehicle_list_create, name='client-vehicle-list'),
    path('clients/<int:pk>/vehicles/<int:sub_pk>/', vehicle_detail, name='client-vehicle-detail'),
    path('clients/<int:pk>/delivery-addresses/', delivery_address_list_create,
         name='client-delivery-address-list'),
    path('clients/<int:pk>/delivery-addresses/<int:sub_pk>/', delivery_address_detail,
         name='client-delivery-address-detail'),

    # Client profile endpoints
    path('client-profiles/', profile_list_create, name='client-profile-list-create'),
    path('client-profiles/<int:pk>/', profile_detail, name='client-profile-detail'),

    # Discount endpoints
    path('discounts/', discount_list_create, name='discount-list-create'),
    path('discounts/<int:pk>/', discount_detail, name='discount-detail'),
]
