from django.contrib import admin
from .models import Page, PageSection


class PageSectionInline(admin.TabularInline):
    model = PageSection
    extra = 0
    fields = ['type', 'order', 'is_active', 'content']
    ordering = ['order']


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ['title', 'slug', 'is_active', 'updated_at']
    list_filter = ['is_active']
    search_fields = ['title', 'slug']
    prepopulated_fields = {'slug': ('title',)}
    inlines = [PageSectionInline]


@admin.register(PageSection)
class PageSectionAdmin(admin.ModelAdmin):
    list_display = ['page', 'type', 'order', 'is_active', 'updated_at']
    list_filter = ['type', 'is_active']
    search_fields = ['page__title', 'type']
    ordering = ['page', 'order']
