"""
Page and section operations shared by the REST views and the GraphQL schema.

Each function validates its input, applies the change and writes the audit
entry. Domain rule violations raise ServiceError, malformed input raises
DRF ValidationError.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Max
from slugify import slugify

from protekcms.core.exceptions import ServiceError
from protekcms.core.models import AuditLog
from protekcms.core.utils import create_audit_log
from .models import Page, PageSection
from .sections import default_content, validate_section_content, section_label
from .serializers import (
    PageWriteSerializer, SectionCreateSerializer, SectionUpdateSerializer,
    SectionReorderSerializer, PublicPageSerializer,
)

logger = logging.getLogger(__name__)

PUBLIC_PAGE_CACHE_PREFIX = 'public_page'


def public_page_cache_key(slug):
    return f'{PUBLIC_PAGE_CACHE_PREFIX}:{slug}'


def _slug_taken(slug, exclude_pk=None):
    queryset = Page.objects.filter(slug=slug)
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)
    return queryset.exists()


# Pages
def create_page(data, request=None):
    serializer = PageWriteSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data

    slug = validated.get('slug') or slugify(validated['title'], max_length=240)
    if not slug:
        raise ServiceError('Slug is required')
    if _slug_taken(slug):
        raise ServiceError('A page with this slug already exists')

    validated['slug'] = slug
    page = Page.objects.create(**validated)
    create_audit_log(request, AuditLog.ACTION_CREATE, 'page', page.pk,
                     details=f'Page created: {page.title}',
                     changes={'title': page.title, 'slug': page.slug})
    logger.info(f"Page {page.slug} created")
    return page


def update_page(page, data, request=None):
    serializer = PageWriteSerializer(page, data=data, partial=True)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data

    if 'slug' in validated:
        if not validated['slug']:
            raise ServiceError('Slug is required')
        if _slug_taken(validated['slug'], exclude_pk=page.pk):
            raise ServiceError('A page with this slug already exists')

    changes = {
        field: {'old': getattr(page, field), 'new': value}
        for field, value in validated.items()
        if getattr(page, field) != value
    }
    serializer.save()
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'page', page.pk,
                     details=f'Page updated: {page.title}', changes=changes)
    return page


def delete_page(page, request=None):
    page_id, title = page.pk, page.title
    section_count = page.sections.count()
    page.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'page', page_id,
                     details=f'Page deleted: {title}',
                     changes={'sections_deleted': section_count})


# Sections
@transaction.atomic
def create_section(page, data, request=None):
    serializer = SectionCreateSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data
    section_type = validated['type']

    if page.sections.filter(type=section_type).exists():
        raise ServiceError(f'Section of type "{section_type}" already exists on this page')

    content = validated.get('content')
    if content is None:
        content = default_content(section_type)
    content = validate_section_content(section_type, content)

    order = validated.get('order')
    if order is None:
        max_order = page.sections.aggregate(max_order=Max('order'))['max_order']
        order = 0 if max_order is None else max_order + 1

    section = PageSection.objects.create(
        page=page,
        type=section_type,
        order=order,
        content=content,
        is_active=validated.get('is_active', True),
    )
    create_audit_log(request, AuditLog.ACTION_CREATE, 'page_section', section.pk,
                     details=f'Section "{section_label(section_type)}" added to page "{page.title}"',
                     changes={'page_id': page.pk, 'type': section_type, 'order': order})
    return section


def update_section(section, data, request=None):
    serializer = SectionUpdateSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    validated = serializer.validated_data

    old_content = section.content
    section.content = validate_section_content(section.type, validated['content'])
    update_fields = ['content', 'updated_at']
    if 'is_active' in validated:
        section.is_active = validated['is_active']
        update_fields.append('is_active')
    section.save(update_fields=update_fields)

    changed_keys = sorted(
        key for key in set(old_content) | set(section.content)
        if old_content.get(key) != section.content.get(key)
    ) if isinstance(old_content, dict) else sorted(section.content)
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'page_section', section.pk,
                     details=f'Section "{section_label(section.type)}" updated on page "{section.page.title}"',
                     changes={'page_id': section.page_id, 'fields': changed_keys,
                              'is_active': section.is_active})
    return section


def delete_section(section, request=None):
    section_id, page = section.pk, section.page
    label = section_label(section.type)
    section.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'page_section', section_id,
                     details=f'Section "{label}" removed from page "{page.title}"',
                     changes={'page_id': page.pk})


@transaction.atomic
def reorder_sections(page, data, request=None):
    """Rewrite section orders 0..n-1 following the given list of section ids"""
    serializer = SectionReorderSerializer(data=data)
    serializer.is_valid(raise_exception=True)
    ordered_ids = serializer.validated_data['order']

    sections = {section.pk: section for section in page.sections.select_for_update()}
    if len(ordered_ids) != len(set(ordered_ids)) or set(ordered_ids) != set(sections):
        raise ServiceError('Order must list every section of the page exactly once')

    for position, section_id in enumerate(ordered_ids):
        section = sections[section_id]
        if section.order != position:
            section.order = position
            section.save(update_fields=['order', 'updated_at'])

    create_audit_log(request, AuditLog.ACTION_UPDATE, 'page', page.pk,
                     details=f'Sections reordered on page "{page.title}"',
                     changes={'order': ordered_ids})
    return page.sections.all()


# Public site
def get_public_page(slug):
    """Serialized active page with its active sections, or None; cached per slug"""
    key = public_page_cache_key(slug)
    data = cache.get(key)
    if data is not None:
        logger.debug(f"Cache HIT for public page {slug}")
        return data

    page = Page.objects.filter(slug=slug, is_active=True).prefetch_related('sections').first()
    if page is None:
        return None
    data = PublicPageSerializer(page).data
    cache.set(key, data, settings.PUBLIC_PAGE_CACHE_TTL)
    return data


def invalidate_public_page(*slugs):
    keys = [public_page_cache_key(slug) for slug in slugs if slug]
    if not keys:
        return
    try:
        cache.delete_many(keys)
        logger.debug(f"Invalidated public page cache: {', '.join(keys)}")
    except Exception as e:
        logger.warning(f"Could not invalidate public page cache {keys}: {str(e)}")
