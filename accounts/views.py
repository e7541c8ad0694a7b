import logging

from django.contrib.auth import authenticate
from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from epos.permissions import ADMIN_ONLY, PUBLIC, STAFF

from . import services
from .models import User
from .serializers import LoginResponseSerializer, LoginSerializer, UserSerializer, UserWriteSerializer

logger = logging.getLogger(__name__)

USER_ID_PARAMETER = OpenApiParameter(
    name='user_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='User ID'
)


class LoginView(APIView):
    """Exchange a username and password for a bearer token"""

    required_roles = PUBLIC
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    @extend_schema(
        summary="Log in",
        request=LoginSerializer,
        responses={200: LoginResponseSerializer, 401: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Login Example',
                summary='Cashier login',
                value={'username': 'cashier', 'password': 'password'}
            )
        ]
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request,
            username=serializer.validated_data['username'],
            password=serializer.validated_data['password'],
        )
        if user is None:
            logger.warning("Failed login for %s", serializer.validated_data['username'])
            return Response({'message': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)

        token = services.login(user)
        return Response({'token': token, 'user': UserSerializer(user).data})


class LogoutView(APIView):
    """Revoke the token used for this request"""

    required_roles = STAFF

    @extend_schema(summary="Log out", request=None, responses={200: OpenApiTypes.OBJECT})
    def post(self, request):
        services.logout(request.user, request.auth)
        return Response({'message': 'Successfully logged out'})


class LogoutAllView(APIView):
    """Revoke every token of the current user"""

    required_roles = STAFF

    @extend_schema(summary="Log out from all devices", request=None, responses={200: OpenApiTypes.OBJECT})
    def post(self, request):
        services.logout_all(request.user)
        return Response({'message': 'Successfully logged out from all devices'})


class MeView(APIView):
    required_roles = STAFF

    @extend_schema(summary="Current user", responses={200: UserSerializer})
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class UserListView(APIView):
    required_roles = ADMIN_ONLY

    @extend_schema(summary="List users", responses={200: UserSerializer(many=True)})
    def get(self, request):
        users = User.objects.order_by('id')
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        return Response(UserSerializer(users, many=True).data)

    @extend_schema(
        summary="Create user",
        request=UserWriteSerializer,
        responses={201: UserSerializer},
        examples=[
            OpenApiExample(
                'Create Cashier Example',
                value={'name': 'Ana Cruz', 'username': 'ana', 'password': 'secret1', 'role': 'Cashier'}
            )
        ]
    )
    def post(self, request):
        serializer = UserWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.create_user(request.user, serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class UserDetailView(APIView):
    required_roles = ADMIN_ONLY

    @extend_schema(summary="Get user", parameters=[USER_ID_PARAMETER], responses={200: UserSerializer})
    def get(self, request, user_id):
        user = get_object_or_404(User, id=user_id)
        return Response(UserSerializer(user).data)

    @extend_schema(
        summary="Update user",
        description="Partial update, only the supplied fields are validated and applied. "
                    "A supplied password is re-hashed, an omitted one is left untouched.",
        parameters=[USER_ID_PARAMETER],
        request=UserWriteSerializer,
        responses={200: UserSerializer},
    )
    def put(self, request, user_id):
        user = get_object_or_404(User, id=user_id)
        serializer = UserWriteSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        user = services.update_user(request.user, user, serializer.validated_data)
        return Response(UserSerializer(user).data)

    patch = put

    @extend_schema(summary="Delete user", parameters=[USER_ID_PARAMETER], responses={204: None})
    def delete(self, request, user_id):
        user = get_object_or_404(User, id=user_id)
        services.delete_user(request.user, user)
        return Response(status=status.HTTP_204_NO_CONTENT)
