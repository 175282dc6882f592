"""
Cache invalidation signals
Drop the cached public page whenever the page or one of its sections changes
"""
from django.db.models.signals import pre_save, post_save, post_delete
from django.dispatch import receiver

from .models import Page, PageSection
from .services import invalidate_public_page


@receiver(pre_save, sender=Page)
def remember_previous_slug(sender, instance, **kwargs):
    if instance.pk:
        instance._previous_slug = Page.objects.filter(pk=instance.pk).values_list('slug', flat=True).first()


@receiver(post_save, sender=Page)
@receiver(post_delete, sender=Page)
def invalidate_page(sender, instance, **kwargs):
    invalidate_public_page(instance.slug, getattr(instance, '_previous_slug', None))


@receiver(post_save, sender=PageSection)
@receiver(post_delete, sender=PageSection)
def invalidate_page_of_section(sender, instance, **kwargs):
    slug = Page.objects.filter(pk=instance.page_id).values_list('slug', flat=True).first()
    invalidate_public_page(slug)
