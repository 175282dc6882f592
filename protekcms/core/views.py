import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db import connection, DatabaseError
from django.shortcuts import get_object_or_404
from django.utils import timezone

from .filters import AuditLogFilter
from .models import AuditLog
from .permissions import IsAdminRole
from .serializers import (
    UserSerializer, UserCreateSerializer, UserAdminUpdateSerializer,
    ProfileSerializer, PasswordChangeSerializer, SetupSerializer, AvatarSerializer,
    AuditLogSerializer,
)
from .two_factor import (
    generate_secret, provisioning_uri, verify_token,
    make_login_challenge, read_login_challenge,
)
from .utils import create_audit_log

logger = logging.getLogger(__name__)

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Token pair for username or email + password"""

    def validate(self, attrs):
        login = attrs.get(self.username_field, '') or ''
        if '@' in login:
            match = User.objects.filter(email__iexact=login).first()
            if match:
                attrs[self.username_field] = match.get_username()
        data = super().validate(attrs)
        # Ensure user is active
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        return token


def issue_tokens(user):
    refresh = CustomTokenObtainPairSerializer.get_token(user)
    return {'access': str(refresh.access_token), 'refresh': str(refresh)}


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""

    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def _log_login(request, user):
    create_audit_log(
        request=request, action=AuditLog.ACTION_LOGIN, target_type='user',
        target_id=user.pk, details=f'User {user.display_name} logged in', user=user,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Password login; users with two-factor enabled get a challenge instead of tokens"""
    serializer = CustomTokenObtainPairSerializer(data=request.data, context={'request': request})
    serializer.is_valid(raise_exception=True)
    user = serializer.user

    if user.two_factor_enabled:
        return Response({
            'requires_two_factor': True,
            'challenge': make_login_challenge(user),
        })

    _log_login(request, user)
    return Response({
        'requires_two_factor': False,
        'access': serializer.validated_data['access'],
        'refresh': serializer.validated_data['refresh'],
        'user': UserSerializer(user, context={'request': request}).data,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def two_factor_validate(request):
    """Second login step: exchange a challenge and a TOTP code for tokens"""
    user_id = read_login_challenge(request.data.get('challenge', ''))
    if user_id is None:
        return Response({'error': 'Login session expired, sign in again'}, status=status.HTTP_401_UNAUTHORIZED)

    user = User.objects.filter(pk=user_id, is_active=True).first()
    if user is None or not user.two_factor_enabled:
        return Response({'error': 'Login session expired, sign in again'}, status=status.HTTP_401_UNAUTHORIZED)

    if not verify_token(user.two_factor_secret, request.data.get('token')):
        return Response({'error': 'Invalid token'}, status=status.HTTP_400_BAD_REQUEST)

    _log_login(request, user)
    return Response({
        **issue_tokens(user),
        'user': UserSerializer(user, context={'request': request}).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def two_factor_setup(request):
    """Generate a fresh secret; it only takes effect after a successful verify"""
    user = request.user
    if user.two_factor_enabled:
        return Response({'two_factor_enabled': True, 'secret': None, 'otpauth_url': None})

    secret = generate_secret()
    user.two_factor_secret = secret
    user.save(update_fields=['two_factor_secret', 'updated_at'])
    return Response({
        'two_factor_enabled': False,
        'secret': secret,
        'otpauth_url': provisioning_uri(user, secret),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def two_factor_verify(request):
    """Confirm the pending secret with a code from the authenticator app"""
    user = request.user
    if not user.two_factor_secret:
        return Response({'error': 'Two-factor setup has not been started'}, status=status.HTTP_400_BAD_REQUEST)
    if not verify_token(user.two_factor_secret, request.data.get('token')):
        return Response({'error': 'Invalid token'}, status=status.HTTP_400_BAD_REQUEST)

    user.two_factor_enabled = True
    user.save(update_fields=['two_factor_enabled', 'updated_at'])
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk,
                     details='Two-factor authentication enabled')
    return Response({'success': True, 'two_factor_enabled': True})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def two_factor_disable(request):
    user = request.user
    if not user.check_password(request.data.get('password', '')):
        return Response({'error': 'Password is incorrect'}, status=status.HTTP_400_BAD_REQUEST)

    user.two_factor_enabled = False
    user.two_factor_secret = None
    user.save(update_fields=['two_factor_enabled', 'two_factor_secret', 'updated_at'])
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk,
                     details='Two-factor authentication disabled')
    return Response({'success': True, 'two_factor_enabled': False})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with role flags"""
    user_data = UserSerializer(request.user, context={'request': request}).data
    user_data['is_admin'] = request.user.is_admin
    return Response(user_data)


# User views (admin only)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('-created_at')
        serializer = UserSerializer(users, many=True, context={'request': request})
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            create_audit_log(request, AuditLog.ACTION_CREATE, 'user', user.pk,
                             details=f'User created: {user.display_name} ({user.email})')
            return Response(UserSerializer(user, context={'request': request}).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user, context={'request': request}).data)
    elif request.method == 'PATCH':
        serializer = UserAdminUpdateSerializer(user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            changed = sorted(k for k in request.data.keys() if k != 'password')
            create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk,
                             details=f'User updated: {user.display_name} ({user.email})',
                             changes={'fields': changed, 'password_changed': 'password' in request.data})
            return Response(UserSerializer(user, context={'request': request}).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'Cannot delete yourself'}, status=status.HTTP_400_BAD_REQUEST)
        details = f'User deleted: {user.display_name} ({user.email})'
        user_id = user.pk
        user.delete()
        create_audit_log(request, AuditLog.ACTION_DELETE, 'user', user_id, details=details)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Account settings
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def account_settings(request):
    """Current user's profile and password"""
    user = request.user
    if request.method == 'GET':
        return Response(UserSerializer(user, context={'request': request}).data)

    profile = ProfileSerializer(user, data=request.data, partial=True)
    profile.is_valid(raise_exception=True)

    password = None
    if request.data.get('new_password'):
        password = PasswordChangeSerializer(data=request.data, context={'request': request})
        password.is_valid(raise_exception=True)

    profile.save()
    if password is not None:
        user.set_password(password.validated_data['new_password'])
        user.save(update_fields=['password'])

    create_audit_log(
        request, AuditLog.ACTION_UPDATE, 'user', user.pk,
        details='Password changed' if password is not None else f'Profile updated: {user.display_name}',
        changes={'fields': sorted(profile.validated_data.keys()), 'password_changed': password is not None},
    )
    return Response(UserSerializer(user, context={'request': request}).data)


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def account_avatar(request):
    """Upload or remove the current user's avatar"""
    user = request.user
    if request.method == 'DELETE':
        if user.avatar:
            user.avatar.delete(save=True)
        create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk, details='Avatar removed')
        return Response(UserSerializer(user, context={'request': request}).data)

    serializer = AvatarSerializer(user, data=request.data)
    serializer.is_valid(raise_exception=True)
    if user.avatar:
        user.avatar.delete(save=False)
    serializer.save()
    create_audit_log(request, AuditLog.ACTION_UPDATE, 'user', user.pk, details='Avatar updated')
    return Response(UserSerializer(user, context={'request': request}).data)


# First-run setup
@api_view(['GET'])
@permission_classes([AllowAny])
@authentication_classes([])
def setup_check(request):
    return Response({'needs_setup': not User.objects.exists()})


@api_view(['POST'])
@permission_classes([AllowAny])
@authentication_classes([])
def setup(request):
    """Create the first administrator; refused once any user exists"""
    if User.objects.exists():
        return Response({'error': 'Setup has already been completed'}, status=status.HTTP_403_FORBIDDEN)

    serializer = SetupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    create_audit_log(request, AuditLog.ACTION_CREATE, 'user', user.pk,
                     details=f'Initial administrator created: {user.email}', user=user)
    logger.info(f"Initial administrator {user.email} created")
    return Response({
        'user': UserSerializer(user, context={'request': request}).data,
        **issue_tokens(user),
    }, status=status.HTTP_201_CREATED)


# AuditLog views (read-only, admin only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_list(request):
    """List audit logs with filtering and limit/offset paging"""
    queryset = AuditLog.objects.select_related('user')
    filterset = AuditLogFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
    queryset = filterset.qs.order_by('-created_at', '-id')

    try:
        limit = min(max(int(request.query_params.get('limit', 50)), 1), 500)
        offset = max(int(request.query_params.get('offset', 0)), 0)
    except ValueError:
        return Response({'error': 'limit and offset must be integers'}, status=status.HTTP_400_BAD_REQUEST)

    total = queryset.count()
    serializer = AuditLogSerializer(queryset[offset:offset + limit], many=True)
    return Response({
        'data': serializer.data,
        'meta': {'total': total, 'limit': limit, 'offset': offset},
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_log_detail(request, pk):
    audit_log = get_object_or_404(AuditLog.objects.select_related('user'), pk=pk)
    return Response(AuditLogSerializer(audit_log).data)


@api_view(['GET'])
@permission_classes([AllowAny])
@authentication_classes([])
def health(request):
    """Liveness check including a database round-trip"""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError as e:
        logger.error(f"Health check failed: {str(e)}")
        return Response({'status': 'error', 'message': 'Service is not healthy'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'status': 'ok', 'timestamp': timezone.now().isoformat()})
