from django.db import models


class Page(models.Model):
    """A site page whose body is a stack of typed sections"""
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    class Meta:
        db_table = 'pages'
        ordering = ['title']


class PageSection(models.Model):
    """One block of a page; `content` shape is defined by `type`"""
    page = models.ForeignKey(Page, on_delete=models.CASCADE, related_name='sections')
    type = models.CharField(max_length=50)
    order = models.IntegerField(default=0)
    content = models.JSONField(default=dict)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.page.title} - {self.type}"

    class Meta:
        db_table = 'page_sections'
        ordering = ['order', 'id']
        unique_together = [['page', 'type']]
