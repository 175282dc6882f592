"""
Utility functions for catalog operations
"""
from slugify import slugify


def unique_slug(model, text, exclude_pk=None, fallback='item'):
    """Slug from `text` (transliterated), suffixed -1, -2, ... until unused in `model`"""
    base = slugify(text or '', max_length=240) or fallback
    queryset = model.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    slug = base
    counter = 1
    while queryset.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def descendant_ids(category_id):
    """Ids of all categories below `category_id` (not including it)"""
    from .models import Category

    children = {}
    for pk, parent_id in Category.objects.values_list('id', 'parent_id'):
        children.setdefault(parent_id, []).append(pk)

    result = []
    stack = list(children.get(category_id, []))
    while stack:
        pk = stack.pop()
        result.append(pk)
        stack.extend(children.get(pk, []))
    return result


def parse_bool(value):
    """Query-string boolean: true/1/yes/on"""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')
