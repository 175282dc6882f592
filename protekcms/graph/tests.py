"""
Tests for the GraphQL endpoint
"""
from django.test import TestCase

from protekcms.catalog.models import Product
from protekcms.clients.models import Client
from protekcms.content.models import PageSection
from protekcms.core.models import AuditLog
from protekcms.core.test_utils import TestDataFactory, AuthenticatedAPIClient, TEST_PASSWORD

GRAPHQL_URL = '/api/graphql/'


class GraphQLTestCase(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)

    def query(self, query, variables=None):
        payload = {'query': query}
        if variables is not None:
            payload['variables'] = variables
        return self.client.post(GRAPHQL_URL, payload, format='json').json()

    def error_messages(self, result):
        return [error['message'] for error in result.get('errors', [])]


class AccessTests(GraphQLTestCase):
    def test_anonymous_access_denied(self):
        self.client.logout()
        result = self.query('{ pagesList { pages { id } } }')
        self.assertIn('Access denied', self.error_messages(result))

    def test_invalid_token_is_anonymous(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        result = self.query('{ currentUser { id } }')
        self.assertIsNone(result['data']['currentUser'])

    def test_current_user(self):
        result = self.query('{ currentUser { username role isAdmin } }')
        self.assertEqual(result['data']['currentUser']['username'], self.user.username)
        self.assertFalse(result['data']['currentUser']['isAdmin'])

    def test_users_admin_only(self):
        result = self.query('{ users { id } }')
        self.assertIn('Insufficient permissions', self.error_messages(result))

        self.client.authenticate_user(TestDataFactory.create_admin())
        result = self.query('{ users { id username } }')
        self.assertNotIn('errors', result)
        self.assertEqual(len(result['data']['users']), 2)

    def test_audit_logs_admin_only(self):
        TestDataFactory.create_client()
        result = self.query('{ auditLogs { meta { total } } }')
        self.assertIn('Insufficient permissions', self.error_messages(result))

        admin = TestDataFactory.create_admin()
        AuditLog.objects.create(user=admin, action=AuditLog.ACTION_CREATE, target_type='page', target_id='1')
        AuditLog.objects.create(user=admin, action=AuditLog.ACTION_DELETE, target_type='media', target_id='2')
        self.client.authenticate_user(admin)
        result = self.query(
            'query($type: String) { auditLogs(targetType: $type, limit: 10) '
            '{ data { action targetType user { username } } meta { total limit offset } } }',
            {'type': 'page'},
        )
        logs = result['data']['auditLogs']
        self.assertEqual(logs['meta'], {'total': 1, 'limit': 10, 'offset': 0})
        self.assertEqual(logs['data'][0]['user']['username'], admin.username)


class ContentQueryTests(GraphQLTestCase):
    def test_page_by_slug_is_public_and_hides_inactive_sections(self):
        page = TestDataFactory.create_page(slug='home')
        TestDataFactory.create_section(page, type='hero')
        TestDataFactory.create_section(page, type='benefits', is_active=False)
        self.client.logout()

        result = self.query('query($slug: String!) { pageBySlug(slug: $slug) { title sections { type content } } }',
                            {'slug': 'home'})
        sections = result['data']['pageBySlug']['sections']
        self.assertEqual([section['type'] for section in sections], ['hero'])
        self.assertIn('subtitle', sections[0]['content'])

    def test_page_by_slug_hidden_page(self):
        TestDataFactory.create_page(slug='draft', is_active=False)
        result = self.query('{ pageBySlug(slug: "draft") { id } }')
        self.assertIsNone(result['data']['pageBySlug'])

    def test_pages_list_include_hidden(self):
        TestDataFactory.create_page(title='Visible')
        TestDataFactory.create_page(title='Hidden', is_active=False)
        result = self.query('{ pagesList { pages { title } } }')
        self.assertEqual([p['title'] for p in result['data']['pagesList']['pages']], ['Visible'])
        result = self.query('{ pagesList(includeHidden: true) { pages { title } } }')
        self.assertEqual(len(result['data']['pagesList']['pages']), 2)

    def test_section_types(self):
        result = self.query('{ sectionTypes { type label defaultContent } }')
        types = {entry['type']: entry for entry in result['data']['sectionTypes']}
        self.assertEqual(types['hero']['label'], 'Заголовок')


class ContentMutationTests(GraphQLTestCase):
    def test_create_page_writes_audit_entry(self):
        result = self.query(
            'mutation($input: CreatePageInput!) { createPage(input: $input) { id slug isActive } }',
            {'input': {'title': 'Contacts', 'isActive': True}},
        )
        self.assertEqual(result['data']['createPage']['slug'], 'contacts')
        entry = AuditLog.objects.get(target_type='page', action=AuditLog.ACTION_CREATE)
        self.assertEqual(entry.user, self.user)

    def test_create_page_duplicate_slug(self):
        TestDataFactory.create_page(slug='contacts')
        result = self.query('mutation { createPage(input: {title: "Contacts"}) { id } }')
        self.assertIn('A page with this slug already exists', self.error_messages(result))

    def test_section_lifecycle(self):
        page = TestDataFactory.create_page()
        result = self.query(
            'mutation($input: CreatePageSectionInput!) { createPageSection(input: $input) { id type order } }',
            {'input': {'pageId': page.pk, 'type': 'hero'}},
        )
        created = result['data']['createPageSection']
        self.assertEqual(created['order'], 0)

        result = self.query(
            'mutation($id: ID!) { updatePageSection(id: $id, input: {isActive: false}) { isActive content } }',
            {'id': created['id']},
        )
        self.assertFalse(result['data']['updatePageSection']['isActive'])
        self.assertEqual(result['data']['updatePageSection']['content']['title'], 'ОПТОВИКАМ')

        result = self.query('mutation($id: ID!) { deletePageSection(id: $id) }', {'id': created['id']})
        self.assertTrue(result['data']['deletePageSection'])
        self.assertFalse(PageSection.objects.exists())

    def test_invalid_section_content(self):
        section = TestDataFactory.create_section(TestDataFactory.create_page())
        result = self.query(
            'mutation($id: ID!, $content: GenericScalar) '
            '{ updatePageSection(id: $id, input: {content: $content}) { id } }',
            {'id': section.pk, 'content': {'title': '', 'subtitle': [], 'imageUrl': ''}},
        )
        error = result['errors'][0]
        self.assertEqual(error['extensions']['code'], 'BAD_USER_INPUT')
        self.assertIn('content', error['extensions']['fields'])

    def test_missing_page(self):
        result = self.query('mutation { deletePage(id: 999) }')
        self.assertIn('Page not found', self.error_messages(result))


class CatalogGraphQLTests(GraphQLTestCase):
    def test_products_list_filters(self):
        category = TestDataFactory.create_category()
        TestDataFactory.create_product(name='Oil filter', category=category)
        TestDataFactory.create_product(name='Air filter', stock=0)
        TestDataFactory.create_product(name='Brake pad', is_visible=False)

        result = self.query('{ productsList(search: "filter") { products { name } pagination { total pages } } }')
        self.assertEqual(result['data']['productsList']['pagination'], {'total': 2, 'pages': 1})

        result = self.query('query($id: ID) { productsList(categoryId: $id) { products { name } } }',
                            {'id': category.pk})
        self.assertEqual([p['name'] for p in result['data']['productsList']['products']], ['Oil filter'])

        result = self.query('{ productsList(stockFilter: "out_of_stock") { products { name } } }')
        self.assertEqual([p['name'] for p in result['data']['productsList']['products']], ['Air filter'])

        result = self.query('{ productsList(visibilityFilter: "hidden") { products { name } } }')
        self.assertEqual([p['name'] for p in result['data']['productsList']['products']], ['Brake pad'])

    def test_categories_tree(self):
        root = TestDataFactory.create_category(name='Engine')
        TestDataFactory.create_category(name='Filters', parent=root)
        TestDataFactory.create_category(name='Hidden', parent=root, is_visible=False)
        result = self.query('{ categoriesList { categories { name subcategories { name } } } }')
        categories = result['data']['categoriesList']['categories']
        self.assertEqual(categories, [{'name': 'Engine', 'subcategories': [{'name': 'Filters'}]}])

    def test_bulk_mutations_return_counts(self):
        products = [TestDataFactory.create_product() for _ in range(3)]
        ids = [p.pk for p in products]

        result = self.query(
            'mutation($input: BulkUpdateProductsInput!) { bulkUpdateProducts(input: $input) }',
            {'input': {'productIds': ids[:2], 'data': {'isVisible': False, 'stock': 0}}},
        )
        self.assertEqual(result['data']['bulkUpdateProducts'], 2)
        self.assertEqual(Product.objects.filter(is_visible=False, stock=0).count(), 2)

        result = self.query('mutation($ids: [ID!]!) { bulkDeleteProducts(productIds: $ids) }', {'ids': ids})
        self.assertEqual(result['data']['bulkDeleteProducts'], 3)
        self.assertFalse(Product.objects.exists())
        self.assertTrue(AuditLog.objects.filter(target_type='product', action=AuditLog.ACTION_DELETE).exists())

    def test_bulk_update_without_fields(self):
        product = TestDataFactory.create_product()
        result = self.query(
            'mutation($input: BulkUpdateProductsInput!) { bulkUpdateProducts(input: $input) }',
            {'input': {'productIds': [product.pk], 'data': {}}},
        )
        self.assertEqual(result['errors'][0]['extensions']['code'], 'BAD_USER_INPUT')


class ClientGraphQLTests(GraphQLTestCase):
    def test_clients_list(self):
        TestDataFactory.create_client(first_name='Ivan', last_name='Petrov', is_verified=True)
        TestDataFactory.create_client(status=Client.STATUS_BLOCKED)
        result = self.query('{ clientsList(isVerified: true) { clients { fullName } total totalPages } }')
        data = result['data']['clientsList']
        self.assertEqual(data['total'], 1)
        self.assertEqual(data['totalPages'], 1)
        self.assertEqual(data['clients'][0]['fullName'], 'Petrov Ivan')

        result = self.query('{ clientsList(status: "blocked") { total } }')
        self.assertEqual(result['data']['clientsList']['total'], 1)

    def test_client_with_sub_records(self):
        client = TestDataFactory.create_client()
        client.vehicles.create(vin_or_frame='WVWZZZ1JZXW000001', make='VW')
        result = self.query('query($id: ID!) { client(id: $id) { phone vehicles { vinOrFrame make } } }',
                            {'id': client.pk})
        self.assertEqual(result['data']['client']['vehicles'], [{'vinOrFrame': 'WVWZZZ1JZXW000001', 'make': 'VW'}])

    def test_create_client(self):
        profile = TestDataFactory.create_client_profile(name='Оптовый')
        result = self.query(
            'mutation($input: ClientInput!) { createClient(input: $input) { id isVerified profileType } }',
            {'input': {'phone': '+79001112233', 'profileId': profile.pk}},
        )
        created = result['data']['createClient']
        self.assertTrue(created['isVerified'])
        self.assertEqual(created['profileType'], 'Оптовый')
        self.assertTrue(AuditLog.objects.filter(target_type='client', target_id=created['id']).exists())

    def test_create_client_duplicate_phone(self):
        TestDataFactory.create_client(phone='+79001112233')
        result = self.query('mutation { createClient(input: {phone: "+79001112233"}) { id } }')
        self.assertIn('A client with this phone number already exists', self.error_messages(result))

    def test_update_and_delete_client(self):
        client = TestDataFactory.create_client()
        result = self.query(
            'mutation($id: ID!) { updateClient(id: $id, input: {firstName: "Olga", lastName: "Ivanova"}) '
            '{ fullName } }',
            {'id': client.pk},
        )
        self.assertEqual(result['data']['updateClient']['fullName'], 'Ivanova Olga')

        result = self.query('mutation($id: ID!) { deleteClient(id: $id) }', {'id': client.pk})
        self.assertTrue(result['data']['deleteClient'])
        self.assertFalse(Client.objects.exists())

    def test_profiles_and_discounts(self):
        profile = TestDataFactory.create_client_profile(name='VIP')
        TestDataFactory.create_discount(name='Spring', profiles=[profile])
        result = self.query('{ clientProfilesList { name } discountsList { name profiles { name } } }')
        self.assertEqual(result['data']['clientProfilesList'], [{'name': 'VIP'}])
        self.assertEqual(result['data']['discountsList'][0]['profiles'], [{'name': 'VIP'}])


class AccountMutationTests(GraphQLTestCase):
    def test_update_user(self):
        result = self.query('mutation { updateUser(input: {name: "New Name"}) { name } }')
        self.assertEqual(result['data']['updateUser']['name'], 'New Name')
        self.assertTrue(AuditLog.objects.filter(target_type='user', target_id=str(self.user.pk)).exists())

    def test_update_user_taken_email(self):
        TestDataFactory.create_user(email='taken@test.com')
        result = self.query('mutation { updateUser(input: {email: "taken@test.com"}) { email } }')
        self.assertEqual(result['errors'][0]['extensions']['code'], 'BAD_USER_INPUT')

    def test_change_password(self):
        result = self.query(
            'mutation($input: ChangePasswordInput!) { changePassword(input: $input) { id } }',
            {'input': {'currentPassword': TEST_PASSWORD, 'newPassword': 'Fresh#Pass-2024'}},
        )
        self.assertNotIn('errors', result)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('Fresh#Pass-2024'))

    def test_change_password_wrong_current(self):
        result = self.query(
            'mutation { changePassword(input: {currentPassword: "wrong", newPassword: "Fresh#Pass-2024"}) { id } }'
        )
        self.assertIn('current_password', result['errors'][0]['extensions']['fields'])
