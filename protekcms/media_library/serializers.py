from rest_framework import serializers

from protekcms.core.serializers import validate_image_upload
from .models import Media


class MediaUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.EmailField()


class MediaSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()
    user = MediaUserSerializer(read_only=True)

    class Meta:
        model = Media
        fields = ['id', 'name', 'url', 'type', 'size', 'mime_type', 'alt', 'description',
                  'width', 'height', 'user', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_url(self, obj):
        if not obj.file:
            return None
        request = self.context.get('request')
        return request.build_absolute_uri(obj.file.url) if request else obj.file.url


class MediaUploadSerializer(serializers.Serializer):
    file = serializers.ImageField()
    alt = serializers.CharField(required=False, allow_blank=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)

    def validate_file(self, value):
        return validate_image_upload(value)


class MediaUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Media
        fields = ['alt', 'description']
