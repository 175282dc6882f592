import os
import uuid

from django.conf import settings
from django.db import models


def media_upload_to(instance, filename):
    """Store uploads under a random name, keeping only the extension"""
    ext = os.path.splitext(filename)[1].lower()
    return f'media/{uuid.uuid4().hex}{ext}'


class Media(models.Model):
    """An uploaded asset shown in the media gallery"""
    TYPE_IMAGE = 'image'
    TYPE_CHOICES = [
        (TYPE_IMAGE, 'Image'),
    ]

    file = models.ImageField(upload_to=media_upload_to, width_field='width', height_field='height')
    name = models.CharField(max_length=255, help_text="Original file name")
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_IMAGE)
    size = models.PositiveIntegerField(default=0)
    mime_type = models.CharField(max_length=100)
    alt = models.CharField(max_length=255, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    width = models.PositiveIntegerField(blank=True, null=True)
    height = models.PositiveIntegerField(blank=True, null=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='media')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def url(self):
        return self.file.url if self.file else None

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'media'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'media'
