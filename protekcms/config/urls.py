"""
URL configuration for the ProtekCMS project.

REST endpoints live under /api/v1/, the GraphQL endpoint under /api/graphql/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

from protekcms.graph.views import AuthenticatedGraphQLView

admin.site.site_header = "ProtekCMS Admin Panel"
admin.site.site_title = "ProtekCMS Admin Portal"
admin.site.index_title = "ProtekCMS Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('protekcms.core.urls')),
    path('api/v1/', include('protekcms.content.urls')),
    path('api/v1/', include('protekcms.media_library.urls')),
    path('api/v1/', include('protekcms.catalog.urls')),
    path('api/v1/', include('protekcms.clients.urls')),
    path('api/graphql/', AuthenticatedGraphQLView.as_view(graphiql=settings.DEBUG), name='graphql'),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
]
