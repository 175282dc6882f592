"""
Catalog operations shared by the REST views and the GraphQL schema.
"""
import csv
import io
import json
import logging

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction, DatabaseError
from django.db.models import Count, Max
from django.utils import timezone
from openpyxl import Workbook

from protekcms.core.exceptions import ServiceError
from protekcms.core.models import AuditLog
from protekcms.core.utils import create_audit_log, casefold_matches
from .models import Category, Product, ProductImage, ProductCharacteristic, ProductOption, ProductOptionValue
from .serializers import (
    CategorySerializer, CategoryWriteSerializer, ProductWriteSerializer,
    BulkProductIdsSerializer, BulkUpdateSerializer,
    ProductImportRowSerializer, ExportOptionsSerializer,
)
from .utils import unique_slug, descendant_ids

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


# Categories
def category_tree(include_hidden=False):
    """Root categories with nested `subcategories` lists and product counts"""
    queryset = Category.objects.annotate(products_count=Count('products')).order_by('level', 'order', 'name')
    if not include_hidden:
        queryset = queryset.filter(is_visible=True)

    nodes = {}
    for category in queryset:
        node = CategorySerializer(category).data
        node['subcategories'] = []
        nodes[category.pk] = node

    roots = []
    for node in nodes.values():
        parent_id = node['parent']
        if parent_id is None:
            roots.append(node)
        elif parent_id in nodes:
            nodes[parent_id]['subcategories'].append(node)
    return roots


def _name_taken(name, parent, exclude_pk=None):
    queryset = Category.objects.filter(parent=parent)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return bool(casefold_matches(queryset, 'name', name))


def _relevel(category):
    """Recompute `level` of a category and everything below it"""
    category.level = category.parent.level + 1 if category.parent_id else 0
    category.save(update_fields=['level', 'updated_at'])
    for child in category.subcategories.all():
        _relevel(child)


def create_category(data, request=None):
    serializer = CategoryWriteSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data
    parent = validated.get('parent')

    if _name_taken(validated['name'], parent):
        raise ServiceError('A category with this name already exists under the selected parent')

    if 'order' not in validated:
        max_order = Category.objects.filter(parent=parent).aggregate(max_order=Max('order'))['max_order']
        validated['order'] = 0 if max_order is None else max_order + 1

    category = Category.objects.create(
        slug=unique_slug(Category, validated['name'], fallback='category'),
        level=parent.level + 1 if parent else 0,
        **validated,
    )
    create_audit_log(request, AuditLog.ACTION_CREATE, 'category', category.pk,
                     details=f'Category created: {category.name}',
                     changes={'parent_id': category.parent_id})
    return category


@transaction.atomic
def update_category(category, data, request=None):
    serializer = CategoryWriteSerializer(category, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data

    parent_changed = 'parent' in validated and validated['parent'] != category.parent
    if parent_changed and validated['parent'] is not None:
        new_parent = validated['parent']
        if new_parent.pk == category.pk:
            raise ServiceError('A category cannot be its own parent')
        if new_parent.pk in descendant_ids(category.pk):
            raise ServiceError('A category cannot be moved under one of its descendants')

    name = validated.get('name', category.name)
    parent = validated.get('parent', category.parent)
    if ('name' in validated or parent_changed) and _name_taken(name, parent, exclude_pk=category.pk):
        raise ServiceError('A category with this name already exists under the selected parent')

    changes = {
        field: {'old': str(getattr(category, field)), 'new': str(value)}
        for field, value in validated.items()
        if getattr(category, field) != value
    }
    if 'name' in validated and validated['name'] != category.name:
        category.slug = unique_slug(Category, validated['name'], exclude_pk=category.pk, fallback='category')

    category = serializer.save()
    if parent_changed:
        _relevel(category)

    create_audit_log(request, AuditLog.ACTION_UPDATE, 'category', category.pk,
                     details=f'Category updated: {category.name}', changes=changes)
    return category


@transaction.atomic
def delete_category(category, request=None):
    """Delete a category; its children move up to its parent, its products become uncategorised"""
    category_id, name, parent = category.pk, category.name, category.parent
    children = list(category.subcategories.all())
    products_count = category.products.count()

    for child in children:
        child.parent = parent
        child.save(update_fields=['parent', 'updated_at'])
        _relevel(child)

    category.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'category', category_id,
                     details=f'Category deleted: {name}',
                     changes={'moved_children': [c.pk for c in children], 'uncategorised_products': products_count})


def toggle_include_subcategories(category, request=None):
    category.include_subcategory_products = not category.include_subcategory_products
    category.save(update_fields=['include_subcategory_products', 'updated_at'])
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'category', category.pk,
                     details=f'Category "{category.name}": subcategory products '
                             f'{"included" if category.include_subcategory_products else "excluded"}',
                     changes={'include_subcategory_products': category.include_subcategory_products})
    return category


# Products
def _sku_taken(sku, exclude_pk=None):
    queryset = Product.objects.filter(sku=sku)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset.exists()


def _replace_nested(product, images=None, characteristics=None, options=None):
    if images is not None:
        product.images.all().delete()
        ProductImage.objects.bulk_create([
            ProductImage(product=product, url=image['url'], alt=image.get('alt'),
                         order=image.get('order', position))
            for position, image in enumerate(images)
        ])
    if characteristics is not None:
        product.characteristics.all().delete()
        ProductCharacteristic.objects.bulk_create([
            ProductCharacteristic(product=product, name=item['name'], value=item['value'])
            for item in characteristics
        ])
    if options is not None:
        product.options.all().delete()
        for option_data in options:
            option = ProductOption.objects.create(
                product=product,
                name=option_data['name'],
                type=option_data.get('type', ProductOption.TYPE_SINGLE),
            )
            ProductOptionValue.objects.bulk_create([
                ProductOptionValue(option=option, value=value['value'], price=value.get('price', 0))
                for value in option_data.get('values', [])
            ])


@transaction.atomic
def create_product(data, request=None):
    serializer = ProductWriteSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)

    if _sku_taken(validated['sku']):
        raise ServiceError('A product with this SKU already exists')

    images = validated.pop('images', None)
    characteristics = validated.pop('characteristics', None)
    options = validated.pop('options', None)

    product = Product.objects.create(
        slug=unique_slug(Product, validated['name'], fallback='product'),
        **validated,
    )
    _replace_nested(product, images, characteristics, options)
    create_audit_log(request, AuditLog.ACTION_CREATE, 'product', product.pk,
                     details=f'Product created: {product.name} ({product.sku})',
                     changes={'sku': product.sku, 'category_id': product.category_id})
    return product


@transaction.atomic
def update_product(product, data, request=None):
    """Partial update; nested collections are replaced only when supplied"""
    serializer = ProductWriteSerializer(product, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    validated = dict(serializer.validated_data)

    if 'sku' in validated and _sku_taken(validated['sku'], exclude_pk=product.pk):
        raise ServiceError('A product with this SKU already exists')

    images = validated.pop('images', None)
    characteristics = validated.pop('characteristics', None)
    options = validated.pop('options', None)

    changes = {
        field: {'old': str(getattr(product, field)), 'new': str(value)}
        for field, value in validated.items()
        if getattr(product, field) != value
    }
    if 'name' in validated and validated['name'] != product.name:
        product.slug = unique_slug(Product, validated['name'], exclude_pk=product.pk, fallback='product')

    for attr, value in validated.items():
        setattr(product, attr, value)
    product.save()
    _replace_nested(product, images, characteristics, options)

    for key, value in (('images', images), ('characteristics', characteristics), ('options', options)):
        if value is not None:
            changes[key] = 'replaced'
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'product', product.pk,
                     details=f'Product updated: {product.name} ({product.sku})', changes=changes)
    return product


def delete_product(product, request=None):
    product_id, name, sku = product.pk, product.name, product.sku
    product.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'product', product_id,
                     details=f'Product deleted: {name} ({sku})')


@transaction.atomic
def bulk_update_products(data, request=None):
    """Apply the same field values to many products; returns the number updated"""
    serializer = BulkUpdateSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    product_ids = serializer.validated_data['product_ids']
    values = dict(serializer.validated_data['data'])

    updated = Product.objects.filter(pk__in=product_ids).update(updated_at=timezone.now(), **values)
    audit_values = {key: (value.pk if isinstance(value, Category) else str(value) if value is not None else None)
                    for key, value in values.items()}
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'product', None,
                     details=f'Bulk update of {updated} products',
                     changes={'product_ids': product_ids, 'data': audit_values})
    return updated


@transaction.atomic
def bulk_delete_products(data, request=None):
    serializer = BulkProductIdsSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    product_ids = serializer.validated_data['product_ids']

    queryset = Product.objects.filter(pk__in=product_ids)
    deleted_ids = list(queryset.values_list('pk', flat=True))
    queryset.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'product', None,
                     details=f'Bulk delete of {len(deleted_ids)} products',
                     changes={'product_ids': deleted_ids})
    return len(deleted_ids)


# Import / export
def import_products(rows, request=None):
    """
    Create products from a list of dicts.

    Existing SKUs are skipped, invalid rows are counted as failed; neither
    stops the import. Category is matched by case-insensitive name.
    """
    results = {'success': 0, 'failed': 0, 'skipped': 0, 'errors': []}
    categories = {name.lower(): pk for pk, name in Category.objects.values_list('id', 'name')}

    for row in rows:
        sku = row.get('sku') if isinstance(row, dict) else None
        serializer = ProductImportRowSerializer(data=row)
        if not serializer.is_valid():
            results['failed'] += 1
            results['errors'].append({'sku': sku, 'error': serializer.errors})
            continue

        item = serializer.validated_data
        if Product.objects.filter(sku=item['sku']).exists():
            results['skipped'] += 1
            results['errors'].append({'sku': item['sku'], 'error': 'A product with this SKU already exists'})
            continue

        category_name = (item.get('category_name') or '').strip().lower()
        try:
            with transaction.atomic():
                product = Product.objects.create(
                    name=item['name'],
                    slug=unique_slug(Product, item['name'], fallback='product'),
                    sku=item['sku'],
                    description=item.get('description'),
                    wholesale_price=item['wholesale_price'],
                    retail_price=item['retail_price'],
                    stock=item.get('stock', 0),
                    is_visible=item.get('is_visible', True),
                    category_id=categories.get(category_name) if category_name else None,
                )
                ProductCharacteristic.objects.bulk_create([
                    ProductCharacteristic(product=product, name=name, value=str(value))
                    for name, value in (item.get('characteristics') or {}).items()
                ])
        except DatabaseError as e:
            logger.error(f"Import of product {item['sku']} failed: {str(e)}")
            results['failed'] += 1
            results['errors'].append({'sku': item['sku'], 'error': str(e)})
            continue
        results['success'] += 1

    create_audit_log(request, AuditLog.ACTION_IMPORT, 'product', None,
                     details=(f"Products imported: {results['success']} created, "
                              f"{results['skipped']} skipped, {results['failed']} failed"),
                     changes={key: results[key] for key in ('success', 'skipped', 'failed')})
    logger.info(f"Product import finished: {results['success']}/{len(rows)} created")
    return results


def _export_rows(products, options):
    for product in products:
        row = {
            'id': product.pk,
            'name': product.name,
            'slug': product.slug,
            'sku': product.sku,
            'description': product.description or '',
            'wholesale_price': product.wholesale_price,
            'retail_price': product.retail_price,
            'stock': product.stock,
            'is_visible': product.is_visible,
        }
        if options['include_categories']:
            row['category'] = product.category.name if product.category else ''
        if options['include_images']:
            row['images'] = [image.url for image in product.images.all()]
        if options['include_characteristics']:
            row['characteristics'] = {c.name: c.value for c in product.characteristics.all()}
        if options['include_options']:
            row['options'] = [
                {'name': option.name, 'type': option.type,
                 'values': [{'value': v.value, 'price': v.price} for v in option.values.all()]}
                for option in product.options.all()
            ]
        yield row


def _flatten_for_csv(row):
    flat = dict(row)
    if 'images' in flat:
        flat['images'] = '|'.join(flat['images'])
    if 'characteristics' in flat:
        flat['characteristics'] = '; '.join(f'{k}: {v}' for k, v in flat['characteristics'].items())
    if 'options' in flat:
        flat['options'] = '; '.join(
            f"{o['name']}: {', '.join(str(v['value']) for v in o['values'])}" for o in flat['options']
        )
    return flat


def _render_workbook(fieldnames, rows):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = 'Products'
    sheet.append(fieldnames)
    for row in rows:
        flat = _flatten_for_csv(row)
        sheet.append([flat.get(field) for field in fieldnames])
    sheet.freeze_panes = 'A2'

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_products(data, request=None):
    """Render the catalog as CSV, Excel or JSON; returns (content, filename, content_type)"""
    serializer = ExportOptionsSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    options = serializer.validated_data

    products = Product.objects.select_related('category').prefetch_related(
        'images', 'characteristics', 'options__values',
    ).order_by('-created_at', '-id')
    if options.get('category') is not None:
        products = products.filter(category=options['category'])

    rows = list(_export_rows(products, options))
    timestamp = timezone.now().strftime('%Y%m%d-%H%M%S')

    fieldnames = list(rows[0].keys()) if rows else ['id', 'name', 'slug', 'sku']
    if options['format'] == 'csv':
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(_flatten_for_csv(row))
        content = buffer.getvalue()
        filename = f'products-export-{timestamp}.csv'
        content_type = 'text/csv; charset=utf-8'
    elif options['format'] == 'excel':
        content = _render_workbook(fieldnames, rows)
        filename = f'products-export-{timestamp}.xlsx'
        content_type = XLSX_CONTENT_TYPE
    else:
        content = json.dumps(rows, cls=DjangoJSONEncoder, ensure_ascii=False, indent=2)
        filename = f'products-export-{timestamp}.json'
        content_type = 'application/json; charset=utf-8'

    create_audit_log(request, AuditLog.ACTION_EXPORT, 'product', None,
                     details=f"Products exported: {len(rows)}, format: {options['format']}",
                     changes={'count': len(rows), 'format': options['format']})
    return content, filename, content_type


def product_history(product):
    return AuditLog.objects.filter(target_type='product', target_id=str(product.pk)).select_related('user')
