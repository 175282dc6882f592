from rest_framework import serializers
from .models import Page, PageSection
from .sections import SECTION_TYPES, section_label


class PageSectionSerializer(serializers.ModelSerializer):
    label = serializers.SerializerMethodField()

    class Meta:
        model = PageSection
        fields = ['id', 'page', 'type', 'label', 'order', 'content', 'is_active', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_label(self, obj):
        return section_label(obj.type)


class PageSerializer(serializers.ModelSerializer):
    sections = PageSectionSerializer(many=True, read_only=True)

    class Meta:
        model = Page
        fields = ['id', 'title', 'slug', 'description', 'is_active', 'sections', 'created_at', 'updated_at']
        read_only_fields = fields


class PageListSerializer(serializers.ModelSerializer):
    sections_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Page
        fields = ['id', 'title', 'slug', 'description', 'is_active', 'sections_count', 'created_at', 'updated_at']
        read_only_fields = fields


class PageWriteSerializer(serializers.ModelSerializer):
    # Uniqueness is checked by the service so the error matches the other domain errors
    slug = serializers.SlugField(max_length=255, required=False, allow_blank=True)

    class Meta:
        model = Page
        fields = ['title', 'slug', 'description', 'is_active']
        extra_kwargs = {
            'description': {'required': False, 'allow_blank': True, 'allow_null': True},
        }


class SectionCreateSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=list(SECTION_TYPES))
    order = serializers.IntegerField(required=False, min_value=0)
    content = serializers.JSONField(required=False)
    is_active = serializers.BooleanField(required=False, default=True)


class SectionUpdateSerializer(serializers.Serializer):
    content = serializers.JSONField()
    is_active = serializers.BooleanField(required=False)


class SectionReorderSerializer(serializers.Serializer):
    order = serializers.ListField(child=serializers.IntegerField())


class PublicSectionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PageSection
        fields = ['id', 'type', 'order', 'content']


class PublicPageSerializer(serializers.ModelSerializer):
    sections = serializers.SerializerMethodField()

    class Meta:
        model = Page
        fields = ['id', 'title', 'slug', 'description', 'sections', 'updated_at']

    def get_sections(self, obj):
        active = [section for section in obj.sections.all() if section.is_active]
        return PublicSectionSerializer(active, many=True).data
