from django.conf import settings
from django.contrib.auth.models import User
from rest_framework import serializers

from user.models import Role, UserProfile, role_for
from user.services import create_user, normalize_email


class UserSerializer(serializers.ModelSerializer):
    """Public shape of a user record. The password hash is never included."""
    firstName = serializers.CharField(source='first_name')
    lastName = serializers.CharField(source='last_name')
    fullName = serializers.SerializerMethodField()
    role = serializers.SerializerMethodField()
    isActive = serializers.BooleanField(source='is_active')
    createdAt = serializers.DateTimeField(source='date_joined')
    updatedAt = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ('id', 'email', 'firstName', 'lastName', 'fullName', 'role', 'isActive', 'createdAt', 'updatedAt')
        read_only_fields = fields

    def get_fullName(self, obj):
        return f"{obj.first_name} {obj.last_name}".strip()

    def get_role(self, obj):
        return str(role_for(obj))

    def get_updatedAt(self, obj):
        try:
            updated = obj.profile.updated_at
        except UserProfile.DoesNotExist:
            updated = obj.date_joined
        return serializers.DateTimeField().to_representation(updated)


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user used inside task payloads."""
    firstName = serializers.CharField(source='first_name')
    lastName = serializers.CharField(source='last_name')

    class Meta:
        model = User
        fields = ('id', 'email', 'firstName', 'lastName')
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=150)
    password = serializers.CharField(min_length=settings.PASSWORD_MIN_LENGTH, trim_whitespace=False, write_only=True)
    firstName = serializers.CharField(max_length=50)
    lastName = serializers.CharField(max_length=50)

    def validate_email(self, value):
        return normalize_email(value)

    def create(self, validated_data):
        return create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            first_name=validated_data['firstName'],
            last_name=validated_data['lastName'],
            role=validated_data.get('role', Role.USER),
        )


class AdminUserCreateSerializer(RegisterSerializer):
    role = serializers.ChoiceField(choices=Role.choices)


class ProfileUpdateSerializer(serializers.Serializer):
    firstName = serializers.CharField(max_length=50, required=False)
    lastName = serializers.CharField(max_length=50, required=False)

    def update(self, instance, validated_data):
        if 'firstName' in validated_data:
            instance.first_name = validated_data['firstName']
        if 'lastName' in validated_data:
            instance.last_name = validated_data['lastName']
        instance.save()
        _touch_profile(instance)
        return instance


class AdminUserUpdateSerializer(ProfileUpdateSerializer):
    email = serializers.EmailField(max_length=150, required=False)
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    isActive = serializers.BooleanField(required=False)

    def validate_email(self, value):
        return normalize_email(value)

    def update(self, instance, validated_data):
        if 'email' in validated_data:
            instance.email = validated_data['email']
            instance.username = validated_data['email']
        if 'isActive' in validated_data:
            instance.is_active = validated_data['isActive']
        instance = super().update(instance, validated_data)

        if 'role' in validated_data:
            profile = _profile_of(instance)
            profile.role = validated_data['role']
            profile.save()
        return instance


def _profile_of(user):
    try:
        return user.profile
    except UserProfile.DoesNotExist:
        return UserProfile(user=user, role=role_for(user))


def _touch_profile(user):
    _profile_of(user).save()
