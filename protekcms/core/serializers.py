from django.conf import settings
from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    avatar_url = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'name', 'phone', 'role', 'avatar_url',
                  'two_factor_enabled', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['two_factor_enabled', 'created_at', 'updated_at']

    def get_avatar_url(self, obj):
        if not obj.avatar:
            return None
        request = self.context.get('request')
        url = obj.avatar.url
        return request.build_absolute_uri(url) if request else url


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True, required=False)

    class Meta:
        model = User
        fields = ['username', 'email', 'name', 'phone', 'role', 'password', 'password_confirm']
        extra_kwargs = {'username': {'required': False}}

    def validate(self, attrs):
        confirm = attrs.get('password_confirm')
        if confirm is not None and attrs['password'] != confirm:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm', None)
        password = validated_data.pop('password')
        # Email doubles as the login when no username is given
        if not validated_data.get('username'):
            validated_data['username'] = validated_data['email']
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class UserAdminUpdateSerializer(serializers.ModelSerializer):
    """Admin edit of another user; password is optional and re-hashed"""
    password = serializers.CharField(write_only=True, required=False, validators=[validate_password])

    class Meta:
        model = User
        fields = ['username', 'email', 'name', 'phone', 'role', 'is_active', 'password']

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class ProfileSerializer(serializers.ModelSerializer):
    """Current user's own account settings"""

    class Meta:
        model = User
        fields = ['name', 'email', 'phone']

    def validate_email(self, value):
        if User.objects.filter(email__iexact=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError('A user with this email already exists')
        return value


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])
    new_password_confirm = serializers.CharField(write_only=True, required=False)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError('Current password is incorrect')
        return value

    def validate(self, attrs):
        confirm = attrs.get('new_password_confirm')
        if confirm is not None and attrs['new_password'] != confirm:
            raise serializers.ValidationError({"new_password": "Passwords don't match"})
        return attrs


class SetupSerializer(UserCreateSerializer):
    """First administrator; role is forced to ADMIN"""

    class Meta(UserCreateSerializer.Meta):
        fields = ['username', 'email', 'name', 'password', 'password_confirm']

    def create(self, validated_data):
        validated_data['role'] = User.ROLE_ADMIN
        user = super().create(validated_data)
        user.is_staff = True
        user.is_superuser = True
        user.save(update_fields=['is_staff', 'is_superuser'])
        return user


class AuditLogUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'name', 'role']


class AuditLogSerializer(serializers.ModelSerializer):
    user = AuditLogUserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'target_type', 'target_id', 'details',
                  'changes', 'ip_address', 'created_at']


def validate_image_upload(value):
    """Uploaded file must be an image no larger than MEDIA_MAX_UPLOAD_MB"""
    content_type = getattr(value, 'content_type', '') or ''
    if not content_type.startswith('image/'):
        raise serializers.ValidationError('Only images are allowed')
    max_bytes = settings.MEDIA_MAX_UPLOAD_MB * 1024 * 1024
    if value.size > max_bytes:
        raise serializers.ValidationError(f'File is larger than {settings.MEDIA_MAX_UPLOAD_MB} MB')
    return value


class AvatarSerializer(serializers.ModelSerializer):
    avatar = serializers.ImageField(required=True, validators=[validate_image_upload])

    class Meta:
        model = User
        fields = ['avatar']
