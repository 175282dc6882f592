"""
Tests for clients, their nested records, client profiles and discounts
"""
from django.test import TestCase
from rest_framework import status

from protekcms.clients.models import Client, ClientProfile, Discount, Requisite, DEFAULT_PROFILE_NAME
from protekcms.core.models import AuditLog
from protekcms.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ClientModelTests(TestCase):
    def test_full_name(self):
        client = TestDataFactory.create_client(first_name='Иван', last_name='Петров')
        self.assertEqual(client.full_name, 'Петров Иван')

    def test_full_name_placeholder(self):
        client = TestDataFactory.create_client(phone='+79000000001', first_name='Иван')
        self.assertEqual(client.full_name, 'Не указано')
        self.assertEqual(client.display_name, '+79000000001')


class ClientAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_requires_authentication(self):
        self.client.logout()
        self.assertEqual(self.client.get('/api/v1/clients/').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_client_defaults(self):
        retail = TestDataFactory.create_client_profile(name=DEFAULT_PROFILE_NAME)
        response = self.client.post('/api/v1/clients/', {'phone': ' +79001112233 ', 'first_name': 'Анна'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['phone'], '+79001112233')
        self.assertTrue(response.data['is_verified'])
        self.assertEqual(response.data['profile'], retail.pk)
        self.assertEqual(response.data['profile_type'], DEFAULT_PROFILE_NAME)
        self.assertEqual(response.data['status'], Client.STATUS_ACTIVE)
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_CREATE, target_type='client').exists())

    def test_create_without_retail_profile(self):
        response = self.client.post('/api/v1/clients/', {'phone': '+79001112233'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['profile'])

    def test_phone_is_required(self):
        response = self.client.post('/api/v1/clients/', {'first_name': 'Nobody'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_phone(self):
        TestDataFactory.create_client(phone='+79001112233')
        response = self.client.post('/api/v1/clients/', {'phone': '+79001112233'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A client with this phone number already exists')

    def test_update_to_taken_phone(self):
        TestDataFactory.create_client(phone='+79001112233')
        client = TestDataFactory.create_client()
        response = self.client.patch(f'/api/v1/clients/{client.pk}/', {'phone': '+79001112233'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_profile_sets_profile_type(self):
        wholesale = TestDataFactory.create_client_profile(name='Оптовый')
        client = TestDataFactory.create_client()
        response = self.client.patch(f'/api/v1/clients/{client.pk}/',
                                     {'profile': wholesale.pk, 'status': Client.STATUS_BLOCKED}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['profile_type'], 'Оптовый')
        self.assertEqual(response.data['profile_name'], 'Оптовый')
        self.assertEqual(response.data['status'], Client.STATUS_BLOCKED)

    def test_list_filters_and_pagination(self):
        TestDataFactory.create_client(first_name='Ivan', last_name='Petrov', is_verified=True)
        TestDataFactory.create_client(first_name='Olga', status=Client.STATUS_BLOCKED)
        for _ in range(10):
            TestDataFactory.create_client()

        response = self.client.get('/api/v1/clients/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['clients']), 10)
        self.assertEqual(response.data['total'], 12)
        self.assertEqual(response.data['total_pages'], 2)

        response = self.client.get('/api/v1/clients/', {'search': 'petrov'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['clients'][0]['full_name'], 'Petrov Ivan')

        response = self.client.get('/api/v1/clients/', {'status': 'blocked'})
        self.assertEqual(response.data['total'], 1)

        response = self.client.get('/api/v1/clients/', {'is_verified': 'true'})
        self.assertEqual(response.data['total'], 1)

    def test_filter_profile_type_ignores_case(self):
        wholesale = TestDataFactory.create_client_profile(name='Оптовый')
        TestDataFactory.create_client(profile=wholesale)
        TestDataFactory.create_client()
        response = self.client.get('/api/v1/clients/', {'profile_type': 'оптовый'})
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['clients'][0]['profile_type'], 'Оптовый')

    def test_detail_includes_sub_records(self):
        client = TestDataFactory.create_client()
        client.vehicles.create(vin_or_frame='WVWZZZ1JZXW000001')
        response = self.client.get(f'/api/v1/clients/{client.pk}/')
        self.assertEqual(len(response.data['vehicles']), 1)
        self.assertEqual(response.data['legal_entities'], [])

    def test_delete_client(self):
        client = TestDataFactory.create_client()
        client.contacts.create(name='Manager')
        response = self.client.delete(f'/api/v1/clients/{client.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.exists())


class ClientSubRecordTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.customer = TestDataFactory.create_client()
        self.base = f'/api/v1/clients/{self.customer.pk}'

    def test_legal_entity_defaults(self):
        response = self.client.post(f'{self.base}/legal-entities/', {'name': 'ООО Ромашка', 'inn': '7701234567'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['vat_percent'], '20.00')
        self.assertTrue(AuditLog.objects.filter(target_type='legal_entity', action=AuditLog.ACTION_CREATE).exists())

    def test_contract_requires_number_and_date(self):
        response = self.client.post(f'{self.base}/contracts/', {'number': 'A-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'{self.base}/contracts/', {'number': 'A-1', 'date': '2024-03-01'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type'], 'SERVICE')

    def test_contact_default_name(self):
        response = self.client.post(f'{self.base}/contacts/', {'phone': '+79005554433'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Новый контакт')

    def test_vehicle_crud(self):
        response = self.client.post(f'{self.base}/vehicles/', {
            'vin_or_frame': 'wvwzzz1jzxw000001', 'make': 'VW', 'model': 'Golf', 'year': 2015,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['vin_or_frame'], 'WVWZZZ1JZXW000001')
        self.assertEqual(response.data['code_type'], 'VIN')
        vehicle_id = response.data['id']

        response = self.client.patch(f'{self.base}/vehicles/{vehicle_id}/', {'mileage': 120000}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['mileage'], 120000)

        response = self.client.delete(f'{self.base}/vehicles/{vehicle_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(f'{self.base}/vehicles/').data, [])

    def test_delivery_address_requires_address(self):
        response = self.client.post(f'{self.base}/delivery-addresses/', {'name': 'Office'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_clients_record_is_404(self):
        other = TestDataFactory.create_client()
        contact = other.contacts.create(name='Stranger')
        self.assertEqual(self.client.get(f'{self.base}/contacts/{contact.pk}/').status_code,
                         status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.delete(f'{self.base}/contacts/{contact.pk}/').status_code,
                         status.HTTP_404_NOT_FOUND)

    def test_requisite_legal_entity_must_belong_to_client(self):
        own = self.customer.legal_entities.create(name='Own LLC')
        foreign = TestDataFactory.create_client().legal_entities.create(name='Foreign LLC')

        response = self.client.post(f'{self.base}/requisites/',
                                    {'account_number': '40702810900000000001', 'legal_entity': foreign.pk},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'{self.base}/requisites/',
                                    {'account_number': '40702810900000000001', 'legal_entity': own.pk},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['legal_entity_name'], 'Own LLC')
        self.assertEqual(response.data['name'], 'Основной счет')
        self.assertEqual(Requisite.objects.get().client_id, self.customer.pk)


class ClientProfileTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_generates_code(self):
        response = self.client.post('/api/v1/client-profiles/', {'name': 'Оптовый', 'base_markup': '10'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertRegex(response.data['code'], r'^PROF-[0-9A-F]{6}$')

    def test_base_markup_required(self):
        response = self.client.post('/api/v1/client-profiles/', {'name': 'Оптовый'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_name_and_code_unique(self):
        TestDataFactory.create_client_profile(name='VIP', code='VIP-1')
        response = self.client.post('/api/v1/client-profiles/', {'name': 'vip', 'base_markup': '0'},
                                    format='json')
        self.assertEqual(response.data['error'], 'A profile with this name already exists')
        response = self.client.post('/api/v1/client-profiles/',
                                    {'name': 'Other', 'code': 'VIP-1', 'base_markup': '0'}, format='json')
        self.assertEqual(response.data['error'], 'A profile with this code already exists')

    def test_cyrillic_name_unique_ignoring_case(self):
        response = self.client.post('/api/v1/client-profiles/', {'name': 'Оптовый', 'base_markup': '10'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/client-profiles/', {'name': 'оптовый', 'base_markup': '5'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A profile with this name already exists')
        self.assertEqual(ClientProfile.objects.count(), 1)

    def test_list_counts_clients(self):
        profile = TestDataFactory.create_client_profile()
        TestDataFactory.create_client(profile=profile)
        response = self.client.get('/api/v1/client-profiles/')
        self.assertEqual(response.data[0]['clients_count'], 1)

    def test_update_keeps_code_when_blank(self):
        profile = TestDataFactory.create_client_profile(code='KEEP-1')
        response = self.client.patch(f'/api/v1/client-profiles/{profile.pk}/', {'code': '', 'comment': 'x'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['code'], 'KEEP-1')

    def test_delete_detaches_clients(self):
        profile = TestDataFactory.create_client_profile()
        client = TestDataFactory.create_client(profile=profile)
        response = self.client.delete(f'/api/v1/client-profiles/{profile.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        client.refresh_from_db()
        self.assertIsNone(client.profile_id)
        self.assertFalse(ClientProfile.objects.exists())


class DiscountTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.profile = TestDataFactory.create_client_profile()

    def test_create_discount_with_profiles(self):
        response = self.client.post('/api/v1/discounts/', {
            'name': 'Spring sale',
            'type': Discount.TYPE_DISCOUNT,
            'code': 'IGNORED',
            'discount_percent': '7.5',
            'profile_ids': [self.profile.pk],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['code'])
        self.assertEqual([p['id'] for p in response.data['profiles']], [self.profile.pk])

    def test_promo_code_requires_code(self):
        response = self.client.post('/api/v1/discounts/', {
            'name': 'Promo', 'type': Discount.TYPE_PROMO_CODE, 'fixed_discount': '100',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('code', response.data)

    def test_percent_or_fixed_required(self):
        response = self.client.post('/api/v1/discounts/', {'name': 'Empty', 'type': Discount.TYPE_DISCOUNT},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_percent_range(self):
        response = self.client.post('/api/v1/discounts/', {
            'name': 'Too much', 'type': Discount.TYPE_DISCOUNT, 'discount_percent': '150',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_promo_code_unique_ignoring_case(self):
        TestDataFactory.create_discount(name='Spring', type=Discount.TYPE_PROMO_CODE, code='ВЕСНА')
        response = self.client.post('/api/v1/discounts/', {
            'name': 'Spring again', 'type': Discount.TYPE_PROMO_CODE, 'code': 'весна',
            'discount_percent': '5',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A discount with this code already exists')

    def test_unknown_profile(self):
        response = self.client.post('/api/v1/discounts/', {
            'name': 'Ghost', 'type': Discount.TYPE_DISCOUNT, 'discount_percent': '5', 'profile_ids': [9999],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('9999', response.data['error'])

    def test_duplicate_promo_code(self):
        TestDataFactory.create_discount(type=Discount.TYPE_PROMO_CODE, code='SPRING')
        response = self.client.post('/api/v1/discounts/', {
            'name': 'Again', 'type': Discount.TYPE_PROMO_CODE, 'code': 'spring', 'fixed_discount': '50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_filter_by_type(self):
        discount = TestDataFactory.create_discount()
        TestDataFactory.create_discount(type=Discount.TYPE_PROMO_CODE, code='PROMO')
        response = self.client.patch(f'/api/v1/discounts/{discount.pk}/',
                                     {'is_active': False, 'profile_ids': [self.profile.pk]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertEqual(len(response.data['profiles']), 1)

        response = self.client.get('/api/v1/discounts/', {'type': Discount.TYPE_PROMO_CODE})
        self.assertEqual([d['code'] for d in response.data], ['PROMO'])

    def test_delete(self):
        discount = TestDataFactory.create_discount()
        response = self.client.delete(f'/api/v1/discounts/{discount.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(AuditLog.objects.filter(target_type='discount', action=AuditLog.ACTION_DELETE).exists())
