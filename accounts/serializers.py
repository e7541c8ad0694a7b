from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from epos.fields import CleanCharField

from .models import Role, User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'username', 'role', 'contact_number', 'created_at', 'updated_at']
        read_only_fields = fields


class UserWriteSerializer(serializers.ModelSerializer):
    """Validates user creation, and partial updates when ``partial=True``."""

    name = CleanCharField(max_length=100)
    username = CleanCharField(
        max_length=50,
        validators=[UniqueValidator(queryset=User.objects.all(), message='This username is already taken.')],
    )
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        trim_whitespace=False,
        style={'input_type': 'password'},
        error_messages={'min_length': 'Password must be at least 6 characters.'},
    )
    role = serializers.ChoiceField(
        choices=Role.choices,
        error_messages={'invalid_choice': 'Role must be either Admin or Cashier.'},
    )
    contact_number = CleanCharField(max_length=20, required=False, allow_blank=True, allow_null=True)

    class Meta:
        model = User
        fields = ['name', 'username', 'password', 'role', 'contact_number']


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(trim_whitespace=False, style={'input_type': 'password'})


class LoginResponseSerializer(serializers.Serializer):
    token = serializers.CharField(help_text="Bearer token, send as 'Authorization: Bearer <token>'")
    user = UserSerializer()
