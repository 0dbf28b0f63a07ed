from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db.models import Q
from django.utils import timezone

import logging

User = get_user_model()
logger = logging.getLogger(__name__)

LOGIN_ATTEMPT_LIMIT = 5
LOGIN_LOCKOUT_SECONDS = 900


class LoginSerializer(serializers.Serializer):
    identifier = serializers.CharField(max_length=255, trim_whitespace=True)
    password = serializers.CharField(max_length=128, write_only=True)

    def validate(self, data):
        identifier = data.get('identifier').strip().lower()
        password = data.get('password')
        cache_key = f'login_attempts_{identifier}'
        attempts = cache.get(cache_key, 0)
        if attempts >= LOGIN_ATTEMPT_LIMIT:
            logger.warning(f"Too many login attempts for {identifier}")
            raise serializers.ValidationError("Too many login attempts. Please try again in 15 minutes.")
        user = User.objects.filter(
            Q(email__iexact=identifier) | Q(phone_number=identifier) | Q(username__iexact=identifier)
        ).first()
        if not user or not user.check_password(password):
            logger.warning(f"Failed login for identifier: {identifier}")
            cache.set(cache_key, attempts + 1, LOGIN_LOCKOUT_SECONDS)
            raise serializers.ValidationError("Invalid credentials.")
        if not user.is_active:
            logger.warning(f"Inactive user tried to log in: {user.username}")
            raise serializers.ValidationError("User account is disabled. Please contact support.")
        cache.delete(cache_key)
        data['user'] = user
        return data

    def save(self):
        user = self.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        logger.info(f"Login successful for user {user.id}")
        return user


class UserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source='user_type', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'full_name', 'email', 'phone_number', 'role',
            'is_verified', 'business_name', 'business_address', 'city', 'pincode',
            'rating', 'total_ratings', 'date_joined',
        ]
        read_only_fields = fields


class PublicUserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source='user_type', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'full_name', 'business_name', 'role', 'city', 'rating', 'total_ratings']
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(min_length=2, max_length=50, required=False)

    class Meta:
        model = User
        fields = ['full_name', 'email', 'business_name', 'business_address', 'city', 'pincode']

    def validate(self, data):
        user = self.instance
        if not user.is_store and (data.get('business_name') or data.get('business_address')):
            raise serializers.ValidationError("Business details can only be set on store accounts.")
        return data
