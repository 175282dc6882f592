from django.db.models import Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response

from protekcms.core.exceptions import ServiceError
from . import services
from .models import Page, PageSection
from .sections import available_section_types, section_label, registry_listing
from .serializers import PageSerializer, PageListSerializer, PageSectionSerializer


def _error(e):
    return Response({'error': e.detail}, status=e.status_code)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def page_list_create(request):
    """List all pages or create a new page"""
    if request.method == 'GET':
        pages = Page.objects.annotate(sections_count=Count('sections')).order_by('title')
        if request.query_params.get('is_active') is not None:
            pages = pages.filter(is_active=request.query_params.get('is_active').lower() == 'true')
        return Response(PageListSerializer(pages, many=True).data)
    else:
        try:
            page = services.create_page(request.data, request=request)
        except ServiceError as e:
            return _error(e)
        return Response(PageSerializer(page).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def page_detail(request, pk):
    """Retrieve, update or delete a page"""
    page = get_object_or_404(Page.objects.prefetch_related('sections'), pk=pk)

    if request.method == 'GET':
        return Response(PageSerializer(page).data)
    elif request.method == 'PATCH':
        try:
            page = services.update_page(page, request.data, request=request)
        except ServiceError as e:
            return _error(e)
        page = Page.objects.prefetch_related('sections').get(pk=page.pk)
        return Response(PageSerializer(page).data)
    else:  # DELETE
        services.delete_page(page, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def section_create(request, page_pk):
    """Add a section to a page; content defaults to the type's default payload"""
    page = get_object_or_404(Page, pk=page_pk)
    try:
        section = services.create_section(page, request.data, request=request)
    except ServiceError as e:
        return _error(e)
    return Response(PageSectionSerializer(section).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def section_detail(request, page_pk, pk):
    section = get_object_or_404(PageSection.objects.select_related('page'), pk=pk, page_id=page_pk)

    if request.method == 'GET':
        return Response(PageSectionSerializer(section).data)
    elif request.method == 'PATCH':
        section = services.update_section(section, request.data, request=request)
        return Response(PageSectionSerializer(section).data)
    else:  # DELETE
        services.delete_section(section, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def section_reorder(request, page_pk):
    page = get_object_or_404(Page, pk=page_pk)
    try:
        sections = services.reorder_sections(page, request.data, request=request)
    except ServiceError as e:
        return _error(e)
    return Response(PageSectionSerializer(sections, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_sections(request, page_pk):
    """Section types that can still be added to the page"""
    page = get_object_or_404(Page, pk=page_pk)
    types = available_section_types(page)
    return Response([{'type': t, 'label': section_label(t)} for t in types])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def section_types(request):
    return Response(registry_listing())


@api_view(['GET'])
@permission_classes([AllowAny])
@authentication_classes([])
def public_page(request, slug):
    """Published page for the public site"""
    data = services.get_public_page(slug)
    if data is None:
        return Response({'error': 'Page not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(data)
