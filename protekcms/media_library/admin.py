from django.contrib import admin
from .models import Media


@admin.register(Media)
class MediaAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'mime_type', 'size', 'width', 'height', 'user', 'created_at']
    list_filter = ['type', 'mime_type']
    search_fields = ['name', 'alt', 'description']
    readonly_fields = ['size', 'mime_type', 'width', 'height', 'created_at', 'updated_at']
