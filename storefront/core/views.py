import hashlib
import logging
import secrets
from datetime import timedelta

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.shortcuts import get_object_or_404
from django.db.models import Q
from django.utils import timezone
from .models import Setting, AuditLog, AccountLockout
from .serializers import (
    UserSerializer, UserCreateSerializer, ProfileSerializer,
    SettingSerializer, AuditLogSerializer
)
from .throttles import RegisterRateThrottle, LoginRateThrottle, ForgotPasswordRateThrottle
from .utils import create_audit_log, get_client_ip, parse_day
from .emails import send_password_reset_email, send_registration_email

User = get_user_model()
logger = logging.getLogger(__name__)
security_logger = logging.getLogger('storefront.security')

LOCKED_MESSAGE = 'Account is temporarily locked due to too many failed attempts. Please try again later.'
RESET_REQUESTED_MESSAGE = 'If an account exists with this email, you will receive password reset instructions.'
RESET_TOKEN_HOURS = 1


def hash_reset_token(token):
    return hashlib.sha256(token.encode()).hexdigest()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['email'] = user.email
        token['is_admin'] = user.is_staff
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    """Login with username or email, guarded by a per email/IP lockout"""
    serializer_class = CustomTokenObtainPairSerializer
    throttle_classes = [LoginRateThrottle]

    def post(self, request, *args, **kwargs):
        identifier = (request.data.get('email') or request.data.get('username') or '').strip()
        password = request.data.get('password') or ''
        if not identifier or not password:
            return Response({'error': 'Email and password are required'}, status=status.HTTP_400_BAD_REQUEST)

        ip_address = get_client_ip(request) or 'unknown'
        lockout, _ = AccountLockout.objects.get_or_create(email=identifier.lower(), ip_address=ip_address)
        if lockout.is_locked():
            security_logger.warning(f"Login blocked for locked account {identifier} from {ip_address}")
            return Response({'error': LOCKED_MESSAGE}, status=status.HTTP_429_TOO_MANY_REQUESTS)

        username = identifier
        if '@' in identifier:
            match = User.objects.filter(email__iexact=identifier).only('username').first()
            if match:
                username = match.username

        serializer = self.get_serializer(data={'username': username, 'password': password})
        try:
            serializer.is_valid(raise_exception=True)
        except AuthenticationFailed:
            lockout.increment_failed_attempts()
            lockout.save()
            security_logger.warning(
                f"Failed login for {identifier} from {ip_address} (attempt {lockout.failed_attempts})"
            )
            if lockout.is_locked():
                security_logger.warning(f"Account {identifier} locked until {lockout.locked_until.isoformat()}")
            return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

        lockout.reset_failed_attempts()
        lockout.save()
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def register(request):
    """User registration endpoint"""
    email = (request.data.get('email') or '').strip()
    if email and User.objects.filter(email__iexact=email).exists():
        return Response({'error': 'Email already registered'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        send_registration_email(user)
        logger.info(f"Registered user {user.id} ({user.email})")
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ForgotPasswordRateThrottle])
def forgot_password(request):
    """Email a password reset link; the response never reveals whether the account exists"""
    email = (request.data.get('email') or '').strip()
    if not email:
        return Response({'error': 'Email is required'}, status=status.HTTP_400_BAD_REQUEST)

    security_logger.info(f"Password reset requested for {email} from {get_client_ip(request)}")
    user = User.objects.filter(email__iexact=email, is_active=True).first()
    if user:
        token = secrets.token_hex(32)
        user.reset_token_hash = hash_reset_token(token)
        user.reset_token_expires = timezone.now() + timedelta(hours=RESET_TOKEN_HOURS)
        user.save(update_fields=['reset_token_hash', 'reset_token_expires', 'updated_at'])
        reset_url = f"{settings.SITE_URL.rstrip('/')}/auth/reset-password?token={token}"
        send_password_reset_email(user.email, reset_url)

    return Response({'message': RESET_REQUESTED_MESSAGE})


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password(request):
    """Set a new password using a token from the reset email"""
    token = request.data.get('token')
    password = request.data.get('password')
    if not token or not password:
        return Response({'error': 'Token and password are required'}, status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.filter(
        reset_token_hash=hash_reset_token(token),
        reset_token_expires__gt=timezone.now()
    ).first()
    if not user:
        return Response({'error': 'Invalid or expired reset token'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        validate_password(password, user=user)
    except DjangoValidationError as e:
        return Response({'password': list(e.messages)}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(password)
    user.reset_token_hash = None
    user.reset_token_expires = None
    user.save()
    AccountLockout.objects.filter(email=user.email.lower()).delete()
    create_audit_log(request=request, user=user, action='password_reset', model_name='User',
                     object_id=user.id, object_name=user.email)
    return Response({'message': 'Password has been reset successfully'})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user"""
    user_data = UserSerializer(request.user).data
    user_data['is_admin'] = request.user.is_staff
    return Response(user_data)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def user_profile(request):
    """Read or update the signed-in customer's profile"""
    if request.method == 'GET':
        return Response(ProfileSerializer(request.user).data)

    serializer = ProfileSerializer(request.user, data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Admin user views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('-date_joined')
        search = request.query_params.get('search', '').strip()
        if search:
            users = users.filter(
                Q(email__icontains=search) |
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(username__icontains=search)
            )
        role = request.query_params.get('role')
        if role == 'admin':
            users = users.filter(is_staff=True)
        elif role == 'customer':
            users = users.filter(is_staff=False)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            if request.data.get('is_staff') in (True, 'true', 'True', '1'):
                user.is_staff = True
                user.save(update_fields=['is_staff'])
            create_audit_log(request=request, action='create', model_name='User',
                             object_id=user.id, object_name=user.email)
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """Retrieve, update or delete a user. Passwords are changed through user_set_password."""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        data = request.data.copy()
        data.pop('password', None)
        serializer = UserSerializer(user, data=data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='User',
                             object_id=user.id, object_name=user.email,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        errors = serializer.errors
        if 'email' in errors and any('already registered' in str(e) for e in errors['email']):
            return Response({'error': 'Email already registered'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='User',
                         object_id=user.id, object_name=user.email)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_set_password(request, pk):
    """Admin password reset for a user"""
    user = get_object_or_404(User, pk=pk)
    new_password = request.data.get('new_password')
    if not new_password:
        return Response({'error': 'New password is required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        validate_password(new_password, user=user)
    except DjangoValidationError as e:
        return Response({'new_password': list(e.messages)}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(new_password)
    user.save()
    create_audit_log(request=request, action='password_change', model_name='User',
                     object_id=user.id, object_name=user.email)
    return Response({'message': 'Password updated successfully'})


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings_qs = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings_qs, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    reference = request.query_params.get('reference', None)
    if reference:
        queryset = queryset.filter(object_reference__icontains=reference)

    try:
        date_from = parse_day(request.query_params.get('date_from'))
        date_to = parse_day(request.query_params.get('date_to'))
    except ValueError:
        return Response({'error': 'Dates must be in YYYY-MM-DD format'}, status=status.HTTP_400_BAD_REQUEST)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)
    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def global_search(request):
    """Back office search across orders, products, customers, vouchers, supplies and custom orders"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'orders': [],
            'products': [],
            'customers': [],
            'vouchers': [],
            'supplies': [],
            'custom_orders': [],
        })

    from storefront.orders.models import Order
    from storefront.catalog.models import Product
    from storefront.vouchers.models import Voucher
    from storefront.supplies.models import Supply
    from storefront.custom_orders.models import CustomOrder
    from storefront.orders.serializers import OrderListSerializer
    from storefront.catalog.serializers import ProductSerializer
    from storefront.vouchers.serializers import VoucherSerializer
    from storefront.supplies.serializers import SupplySerializer
    from storefront.custom_orders.serializers import CustomOrderSerializer

    results = {}

    orders = Order.objects.filter(
        Q(reference__icontains=query) |
        Q(email__icontains=query) |
        Q(first_name__icontains=query) |
        Q(last_name__icontains=query) |
        Q(tracking_number__icontains=query)
    ).prefetch_related('items')[:20]
    results['orders'] = OrderListSerializer(orders, many=True).data

    products = Product.objects.filter(
        Q(name__icontains=query) | Q(description__icontains=query)
    )[:20]
    results['products'] = ProductSerializer(products, many=True).data

    customers = User.objects.filter(
        Q(email__icontains=query) |
        Q(first_name__icontains=query) |
        Q(last_name__icontains=query) |
        Q(phone__icontains=query)
    )[:20]
    results['customers'] = UserSerializer(customers, many=True).data

    vouchers = Voucher.objects.filter(
        Q(code__icontains=query) | Q(description__icontains=query)
    )[:20]
    results['vouchers'] = VoucherSerializer(vouchers, many=True).data

    supplies = Supply.objects.filter(
        Q(name__icontains=query) | Q(supplier_name__icontains=query) | Q(category__icontains=query)
    )[:20]
    results['supplies'] = SupplySerializer(supplies, many=True).data

    custom_orders = CustomOrder.objects.filter(
        Q(email__icontains=query) |
        Q(first_name__icontains=query) |
        Q(last_name__icontains=query) |
        Q(selected_product__icontains=query)
    )[:20]
    results['custom_orders'] = CustomOrderSerializer(custom_orders, many=True).data

    return Response(results)
