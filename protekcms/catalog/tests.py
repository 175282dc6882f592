"""
Tests for the catalog: category tree, products, bulk operations, import and export
"""
import csv
import io
import json
from decimal import Decimal

from django.test import TestCase
from openpyxl import load_workbook
from rest_framework import status

from protekcms.catalog.models import Category, Product, ProductImage
from protekcms.catalog.utils import unique_slug, descendant_ids, parse_bool
from protekcms.core.models import AuditLog
from protekcms.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CatalogUtilsTests(TestCase):
    def test_unique_slug_transliterates_and_suffixes(self):
        self.assertEqual(unique_slug(Product, 'Масляный фильтр'), 'maslianyi-filtr')
        pump = TestDataFactory.create_product(name='Pump')
        Product.objects.filter(pk=pump.pk).update(slug='pump')
        self.assertEqual(unique_slug(Product, 'Pump'), 'pump-1')
        self.assertEqual(unique_slug(Product, '!!!', fallback='product'), 'product')

    def test_descendant_ids(self):
        root = TestDataFactory.create_category(name='Root')
        child = TestDataFactory.create_category(name='Child', parent=root)
        grandchild = TestDataFactory.create_category(name='Grandchild', parent=child)
        self.assertEqual(sorted(descendant_ids(root.pk)), sorted([child.pk, grandchild.pk]))
        self.assertEqual(descendant_ids(grandchild.pk), [])

    def test_parse_bool(self):
        self.assertTrue(parse_bool('True'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('no'))
        self.assertFalse(parse_bool(False))


class CategoryAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_root_and_child(self):
        response = self.client.post('/api/v1/catalog/categories/', {'name': 'Фильтры'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['level'], 0)
        self.assertEqual(response.data['slug'], 'filtry')

        response = self.client.post('/api/v1/catalog/categories/',
                                    {'name': 'Масляные', 'parent': response.data['id']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['level'], 1)

    def test_duplicate_name_under_same_parent(self):
        TestDataFactory.create_category(name='Oils')
        response = self.client.post('/api/v1/catalog/categories/', {'name': 'oils'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_cyrillic_name_ignores_case(self):
        TestDataFactory.create_category(name='Масла')
        response = self.client.post('/api/v1/catalog/categories/', {'name': 'масла'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'],
                         'A category with this name already exists under the selected parent')

    def test_tree_hides_invisible_by_default(self):
        root = TestDataFactory.create_category(name='Root')
        TestDataFactory.create_category(name='Visible', parent=root)
        TestDataFactory.create_category(name='Hidden', parent=root, is_visible=False)

        response = self.client.get('/api/v1/catalog/categories/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual([c['name'] for c in response.data[0]['subcategories']], ['Visible'])

        response = self.client.get('/api/v1/catalog/categories/', {'include_hidden': 'true'})
        self.assertEqual(len(response.data[0]['subcategories']), 2)

    def test_flat_list(self):
        root = TestDataFactory.create_category(name='Root')
        TestDataFactory.create_category(name='Child', parent=root)
        response = self.client.get('/api/v1/catalog/categories/all/')
        self.assertEqual([c['name'] for c in response.data], ['Root', 'Child'])

    def test_move_under_descendant_rejected(self):
        root = TestDataFactory.create_category(name='Root')
        child = TestDataFactory.create_category(name='Child', parent=root)
        response = self.client.patch(f'/api/v1/catalog/categories/{root.pk}/', {'parent': child.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/catalog/categories/{root.pk}/', {'parent': root.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_cannot_be_its_own_parent(self):
        parent = TestDataFactory.create_category(name='Parent')
        category = TestDataFactory.create_category(name='Self', parent=parent)
        response = self.client.patch(f'/api/v1/catalog/categories/{category.pk}/', {'parent': category.pk},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A category cannot be its own parent')
        category.refresh_from_db()
        self.assertEqual(category.parent_id, parent.pk)

    def test_move_relevels_subtree(self):
        first = TestDataFactory.create_category(name='First')
        second = TestDataFactory.create_category(name='Second')
        child = TestDataFactory.create_category(name='Child', parent=second)
        response = self.client.patch(f'/api/v1/catalog/categories/{second.pk}/', {'parent': first.pk},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        child.refresh_from_db()
        self.assertEqual(child.level, 2)

    def test_delete_moves_children_up(self):
        root = TestDataFactory.create_category(name='Root')
        middle = TestDataFactory.create_category(name='Middle', parent=root)
        leaf = TestDataFactory.create_category(name='Leaf', parent=middle)
        product = TestDataFactory.create_product(category=middle)

        response = self.client.delete(f'/api/v1/catalog/categories/{middle.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        leaf.refresh_from_db()
        product.refresh_from_db()
        self.assertEqual(leaf.parent_id, root.pk)
        self.assertEqual(leaf.level, 1)
        self.assertIsNone(product.category_id)

    def test_toggle_include_subcategories(self):
        category = TestDataFactory.create_category()
        url = f'/api/v1/catalog/categories/{category.pk}/toggle-include-subcategories/'
        self.assertTrue(self.client.post(url).data['include_subcategory_products'])
        self.assertFalse(self.client.post(url).data['include_subcategory_products'])


class ProductAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.category = TestDataFactory.create_category(name='Filters')

    def _payload(self, **overrides):
        payload = {
            'name': 'Oil filter',
            'sku': 'OF-100',
            'wholesale_price': '120.50',
            'retail_price': '199.00',
            'stock': 5,
            'category': self.category.pk,
            'images': [{'url': 'https://cdn.example.com/of-100.jpg', 'alt': 'front'}],
            'characteristics': [{'name': 'Thread', 'value': 'M20x1.5'}],
            'options': [{'name': 'Pack', 'type': 'single', 'values': [{'value': '1 pc'}, {'value': '10 pcs',
                                                                                          'price': '50'}]}],
        }
        payload.update(overrides)
        return payload

    def test_create_product_with_nested_data(self):
        response = self.client.post('/api/v1/catalog/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'oil-filter')
        self.assertEqual(response.data['main_image'], 'https://cdn.example.com/of-100.jpg')
        self.assertEqual(len(response.data['options'][0]['values']), 2)
        self.assertEqual(response.data['characteristics'][0]['value'], 'M20x1.5')

    def test_duplicate_sku(self):
        TestDataFactory.create_product(sku='OF-100')
        response = self.client.post('/api/v1/catalog/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A product with this SKU already exists')

    def test_invalid_image_url(self):
        response = self.client.post('/api/v1/catalog/products/',
                                    self._payload(images=[{'url': 'ftp://bad/image.jpg'}]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_price(self):
        response = self.client.post('/api/v1/catalog/products/', self._payload(retail_price='-1'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_replaces_only_supplied_collections(self):
        product_id = self.client.post('/api/v1/catalog/products/', self._payload(), format='json').data['id']
        response = self.client.patch(f'/api/v1/catalog/products/{product_id}/', {
            'stock': 0,
            'images': [{'url': '/media/media/a.png'}, {'url': '/uploads/b.png'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 0)
        self.assertEqual(len(response.data['images']), 2)
        self.assertEqual(len(response.data['characteristics']), 1)

    def test_list_filters(self):
        child = TestDataFactory.create_category(name='Child', parent=self.category)
        TestDataFactory.create_product(name='In parent', category=self.category, stock=3)
        TestDataFactory.create_product(name='In child', category=child, stock=0)
        TestDataFactory.create_product(name='Hidden', is_visible=False)

        response = self.client.get('/api/v1/catalog/products/', {'category': self.category.pk})
        self.assertEqual(response.data['pagination']['total'], 1)

        self.category.include_subcategory_products = True
        self.category.save()
        response = self.client.get('/api/v1/catalog/products/', {'category': self.category.pk})
        self.assertEqual(response.data['pagination']['total'], 2)

        response = self.client.get('/api/v1/catalog/products/', {'stock_filter': 'out_of_stock'})
        self.assertEqual([p['name'] for p in response.data['products']], ['In child'])

        response = self.client.get('/api/v1/catalog/products/', {'visibility_filter': 'hidden'})
        self.assertEqual([p['name'] for p in response.data['products']], ['Hidden'])

        response = self.client.get('/api/v1/catalog/products/', {'search': 'parent'})
        self.assertEqual([p['name'] for p in response.data['products']], ['In parent'])

    def test_bulk_update(self):
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        response = self.client.post('/api/v1/catalog/products/bulk-update/', {
            'product_ids': [first.pk, second.pk],
            'data': {'is_visible': False, 'category': self.category.pk, 'retail_price': '10.00'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        first.refresh_from_db()
        self.assertFalse(first.is_visible)
        self.assertEqual(first.category_id, self.category.pk)
        self.assertEqual(first.retail_price, Decimal('10.00'))

    def test_bulk_update_requires_fields(self):
        product = TestDataFactory.create_product()
        response = self.client.post('/api/v1/catalog/products/bulk-update/',
                                    {'product_ids': [product.pk], 'data': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bulk_delete(self):
        products = [TestDataFactory.create_product() for _ in range(3)]
        response = self.client.post('/api/v1/catalog/products/bulk-delete/',
                                    {'product_ids': [products[0].pk, products[1].pk, 9999]}, format='json')
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(Product.objects.count(), 1)

    def test_history(self):
        product_id = self.client.post('/api/v1/catalog/products/', self._payload(), format='json').data['id']
        self.client.patch(f'/api/v1/catalog/products/{product_id}/', {'stock': 1}, format='json')
        response = self.client.get(f'/api/v1/catalog/products/{product_id}/history/')
        self.assertEqual([entry['action'] for entry in response.data], [AuditLog.ACTION_UPDATE, AuditLog.ACTION_CREATE])

    def test_delete_product_cascades_images(self):
        product_id = self.client.post('/api/v1/catalog/products/', self._payload(), format='json').data['id']
        response = self.client.delete(f'/api/v1/catalog/products/{product_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductImage.objects.exists())


class ImportExportTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.category = TestDataFactory.create_category(name='Масла')

    def test_import(self):
        TestDataFactory.create_product(sku='EXISTS')
        response = self.client.post('/api/v1/catalog/import/', {'products': [
            {'name': 'Motor oil', 'sku': 'MO-1', 'wholesale_price': '500', 'retail_price': '650',
             'category_name': 'масла', 'characteristics': {'Volume': '4 L'}},
            {'name': 'Dup', 'sku': 'EXISTS', 'wholesale_price': '1', 'retail_price': '1'},
            {'name': 'Broken', 'sku': 'BR-1'},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['success'], 1)
        self.assertEqual(response.data['skipped'], 1)
        self.assertEqual(response.data['failed'], 1)

        product = Product.objects.get(sku='MO-1')
        self.assertEqual(product.category_id, self.category.pk)
        self.assertEqual(product.characteristics.get().value, '4 L')
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_IMPORT).exists())

    def test_import_requires_list(self):
        response = self.client.post('/api/v1/catalog/import/', {'products': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_export_csv(self):
        product = TestDataFactory.create_product(name='Filter', sku='F-1', category=self.category)
        ProductImage.objects.create(product=product, url='https://cdn.example.com/f.jpg', order=0)
        response = self.client.post('/api/v1/catalog/export/', {'format': 'csv'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn('attachment; filename="products-export-', response['Content-Disposition'])

        rows = list(csv.DictReader(io.StringIO(response.content.decode('utf-8'))))
        self.assertEqual(rows[0]['sku'], 'F-1')
        self.assertEqual(rows[0]['category'], 'Масла')
        self.assertEqual(rows[0]['images'], 'https://cdn.example.com/f.jpg')
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_EXPORT).exists())

    def test_export_excel(self):
        product = TestDataFactory.create_product(name='Фильтр', sku='F-2', category=self.category)
        product.characteristics.create(name='Диаметр', value='80')
        response = self.client.post('/api/v1/catalog/export/', {'format': 'excel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'],
                         'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
        self.assertIn('.xlsx"', response['Content-Disposition'])

        workbook = load_workbook(io.BytesIO(response.content))
        rows = list(workbook.active.iter_rows(values_only=True))
        header = list(rows[0])
        record = dict(zip(header, rows[1]))
        self.assertEqual(len(rows), 2)
        self.assertEqual(record['sku'], 'F-2')
        self.assertEqual(record['name'], 'Фильтр')
        self.assertEqual(record['category'], 'Масла')
        self.assertEqual(record['characteristics'], 'Диаметр: 80')
        self.assertTrue(AuditLog.objects.filter(action=AuditLog.ACTION_EXPORT,
                                                changes__format='excel').exists())

    def test_export_json_by_category(self):
        TestDataFactory.create_product(sku='IN', category=self.category)
        TestDataFactory.create_product(sku='OUT')
        response = self.client.post('/api/v1/catalog/export/', {
            'format': 'json', 'category': self.category.pk, 'include_options': False,
        }, format='json')
        data = json.loads(response.content)
        self.assertEqual([row['sku'] for row in data], ['IN'])
        self.assertNotIn('options', data[0])

    def test_export_rejects_unknown_format(self):
        response = self.client.post('/api/v1/catalog/export/', {'format': 'xlsx'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PublicCatalogTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.root = TestDataFactory.create_category(name='Двигатель')
        self.child = TestDataFactory.create_category(name='Фильтры', parent=self.root)
        self.in_root = TestDataFactory.create_product(name='Ремень ГРМ', sku='BELT-1', category=self.root)
        self.in_child = TestDataFactory.create_product(name='Фильтр масляный', sku='FLT-1', category=self.child)
        self.hidden = TestDataFactory.create_product(sku='HIDDEN', category=self.root, is_visible=False)
        self.sold_out = TestDataFactory.create_product(sku='SOLD-OUT', category=self.root, stock=0)

    def _skus(self, response):
        return sorted(p['sku'] for p in response.data['products'])

    def test_list_without_auth_shows_visible_in_stock(self):
        response = self.client.get('/api/v1/public/catalog/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._skus(response), ['BELT-1', 'FLT-1'])
        self.assertEqual(response.data['pagination']['total'], 2)
        self.assertNotIn('wholesale_price', response.data['products'][0])

    def test_list_by_category(self):
        response = self.client.get('/api/v1/public/catalog/products/', {'categoryId': self.root.pk})
        self.assertEqual(self._skus(response), ['BELT-1'])

    def test_list_include_subcategories_param(self):
        response = self.client.get('/api/v1/public/catalog/products/',
                                   {'categoryId': self.root.pk, 'includeSubcategories': 'true'})
        self.assertEqual(self._skus(response), ['BELT-1', 'FLT-1'])

    def test_list_follows_category_flag(self):
        Category.objects.filter(pk=self.root.pk).update(include_subcategory_products=True)
        response = self.client.get('/api/v1/public/catalog/products/', {'categoryId': self.root.pk})
        self.assertEqual(self._skus(response), ['BELT-1', 'FLT-1'])

    def test_list_search_and_paging(self):
        response = self.client.get('/api/v1/public/catalog/products/', {'search': 'Фильтр'})
        self.assertEqual(self._skus(response), ['FLT-1'])

        response = self.client.get('/api/v1/public/catalog/products/', {'limit': 1, 'page': 2})
        self.assertEqual(len(response.data['products']), 1)
        self.assertEqual(response.data['pagination']['pages'], 2)

    def test_detail_by_id_and_slug(self):
        response = self.client.get(f'/api/v1/public/catalog/products/{self.in_root.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sku'], 'BELT-1')
        self.assertNotIn('wholesale_price', response.data)

        response = self.client.get(f'/api/v1/public/catalog/products/slug/{self.in_child.slug}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['sku'], 'FLT-1')

    def test_hidden_product_is_404(self):
        response = self.client.get(f'/api/v1/public/catalog/products/{self.hidden.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(f'/api/v1/public/catalog/products/slug/{self.hidden.slug}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get(f'/api/v1/public/catalog/products/related/{self.hidden.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_related_products(self):
        neighbour = TestDataFactory.create_product(sku='BELT-2', category=self.root)
        response = self.client.get(f'/api/v1/public/catalog/products/related/{self.in_root.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data['related']], [neighbour.pk])
