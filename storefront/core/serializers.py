from rest_framework import serializers
from django.core.exceptions import ValidationError as DjangoValidationError
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, AuditLog
from .validators import validate_uk_phone, validate_uk_postcode, normalize_postcode


class UserSerializer(serializers.ModelSerializer):
    email = serializers.EmailField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'first_name', 'last_name', 'phone',
            'street', 'city', 'county', 'postcode', 'country', 'visitor_id',
            'is_active', 'is_staff', 'is_superuser', 'date_joined', 'last_login',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['date_joined', 'last_login', 'created_at', 'updated_at']

    def validate_email(self, value):
        value = value.strip().lower()
        queryset = User.objects.filter(email__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Email already registered')
        return value


class UserCreateSerializer(serializers.ModelSerializer):
    username = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone', 'visitor_id']

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError('Email already registered')
        return value

    def validate_phone(self, value):
        if value:
            validate_uk_phone(value)
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        if not attrs.get('username'):
            attrs['username'] = attrs['email']
        if User.objects.filter(username__iexact=attrs['username']).exists():
            raise serializers.ValidationError({"username": "Username already taken"})
        candidate = User(username=attrs['username'], email=attrs['email'],
                         first_name=attrs.get('first_name', ''), last_name=attrs.get('last_name', ''))
        try:
            validate_password(attrs['password'], user=candidate)
        except DjangoValidationError as e:
            raise serializers.ValidationError({'password': list(e.messages)})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    county = serializers.CharField(max_length=100)
    postcode = serializers.CharField(max_length=10)
    country = serializers.CharField(max_length=100)

    def validate_postcode(self, value):
        value = normalize_postcode(value)
        validate_uk_postcode(value)
        return value


class ProfileSerializer(serializers.Serializer):
    """Customer-editable profile fields"""
    first_name = serializers.CharField(min_length=1, max_length=50)
    last_name = serializers.CharField(min_length=1, max_length=50)
    phone = serializers.CharField(validators=[validate_uk_phone])
    address = AddressSerializer()

    def update(self, instance, validated_data):
        address = validated_data.pop('address')
        for field, value in validated_data.items():
            setattr(instance, field, value)
        for field, value in address.items():
            setattr(instance, field, value)
        instance.save()
        return instance

    def to_representation(self, instance):
        return {
            'id': instance.id,
            'email': instance.email,
            'first_name': instance.first_name,
            'last_name': instance.last_name,
            'phone': instance.phone,
            'address': {
                'street': instance.street,
                'city': instance.city,
                'county': instance.county,
                'postcode': instance.postcode,
                'country': instance.country,
            },
        }


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
