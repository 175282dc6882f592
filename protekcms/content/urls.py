from django.urls import path
from .views import (
    page_list_create, page_detail,
    section_create, section_detail, section_reorder, available_sections,
    section_types, public_page,
)

urlpatterns = [
    # Page endpoints
    path('pages/', page_list_create, name='page-list-create'),
    path('pages/<int:pk>/', page_detail, name='page-detail'),

    # Section endpoints
    path('pages/<int:page_pk>/sections/', section_create, name='section-create'),
    path('pages/<int:page_pk>/sections/reorder/', section_reorder, name='section-reorder'),
    path('pages/<int:page_pk>/sections/<int:pk>/', section_detail, name='section-detail'),
    path('pages/<int:page_pk>/available-sections/', available_sections, name='available-sections'),
    path('section-types/', section_types, name='section-types'),

    # Public site
    path('public/pages/<slug:slug>/', public_page, name='public-page'),
]
