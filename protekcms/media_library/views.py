from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from protekcms.core.models import AuditLog
from protekcms.core.utils import create_audit_log, paginate_params, paginate_queryset
from .filters import MediaFilter
from .models import Media
from .serializers import MediaSerializer, MediaUploadSerializer, MediaUpdateSerializer
from .services import store_upload, delete_media


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def media_list(request):
    """Gallery listing, newest first"""
    filterset = MediaFilter(request.query_params, queryset=Media.objects.select_related('user'))
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)

    page, limit = paginate_params(request, default_limit=20)
    items, pagination = paginate_queryset(filterset.qs, page, limit)
    return Response({
        'media': MediaSerializer(items, many=True, context={'request': request}).data,
        'pagination': pagination,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def media_upload(request):
    if 'file' not in request.FILES:
        return Response({'error': 'No file provided'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = MediaUploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    media = store_upload(
        serializer.validated_data['file'],
        alt=serializer.validated_data.get('alt'),
        description=serializer.validated_data.get('description'),
        request=request,
    )
    return Response(MediaSerializer(media, context={'request': request}).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def media_detail(request, pk):
    media = get_object_or_404(Media.objects.select_related('user'), pk=pk)

    if request.method == 'GET':
        return Response(MediaSerializer(media, context={'request': request}).data)
    elif request.method == 'PATCH':
        serializer = MediaUpdateSerializer(media, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        create_audit_log(request, AuditLog.ACTION_UPDATE, 'media', media.pk,
                         details=f'Media updated: {media.name}',
                         changes={'fields': sorted(serializer.validated_data.keys())})
        return Response(MediaSerializer(media, context={'request': request}).data)
    else:  # DELETE
        delete_media(media, request=request)
        return Response(status=status.HTTP_204_NO_CONTENT)
