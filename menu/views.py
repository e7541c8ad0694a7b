from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from epos.permissions import ADMIN_ONLY, PUBLIC

from . import services
from .models import Menu
from .serializers import MenuSerializer, MenuWriteSerializer

MENU_ID_PARAMETER = OpenApiParameter(
    name='menu_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='Menu item ID'
)


def visible_menus(request):
    """Guests only ever see what can be ordered; staff may ask for everything."""
    menus = Menu.objects.all()
    if not request.user.is_authenticated:
        return menus.filter(availability_status=True)

    available = request.query_params.get('available')
    if available is not None:
        menus = menus.filter(availability_status=available.lower() in ('1', 'true', 'yes'))
    return menus


class MenuListView(APIView):
    required_roles = {'GET': PUBLIC, 'POST': ADMIN_ONLY}

    @extend_schema(
        summary="List menu items",
        parameters=[
            OpenApiParameter(name='category', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='available', type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY,
                             description='Staff only; guests always get available items'),
        ],
        responses={200: MenuSerializer(many=True)},
    )
    def get(self, request):
        menus = visible_menus(request)
        category = request.query_params.get('category')
        if category:
            menus = menus.filter(category__iexact=category)
        return Response(MenuSerializer(menus, many=True).data)

    @extend_schema(
        summary="Create menu item",
        request=MenuWriteSerializer,
        responses={201: MenuSerializer},
        examples=[
            OpenApiExample(
                'Create Menu Example',
                value={'name': 'Chicken Adobo', 'price': '125.00', 'category': 'Mains', 'availability_status': True}
            )
        ]
    )
    def post(self, request):
        serializer = MenuWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        menu = services.create_menu(request.user, serializer.validated_data)
        return Response(MenuSerializer(menu).data, status=status.HTTP_201_CREATED)


class MenuDetailView(APIView):
    required_roles = {'GET': PUBLIC, 'PUT': ADMIN_ONLY, 'PATCH': ADMIN_ONLY, 'DELETE': ADMIN_ONLY}

    @extend_schema(summary="Get menu item", parameters=[MENU_ID_PARAMETER], responses={200: MenuSerializer})
    def get(self, request, menu_id):
        menu = get_object_or_404(visible_menus(request), id=menu_id)
        return Response(MenuSerializer(menu).data)

    @extend_schema(
        summary="Update menu item",
        parameters=[MENU_ID_PARAMETER],
        request=MenuWriteSerializer,
        responses={200: MenuSerializer},
    )
    def put(self, request, menu_id):
        menu = get_object_or_404(Menu, id=menu_id)
        serializer = MenuWriteSerializer(menu, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        menu = services.update_menu(request.user, menu, serializer.validated_data)
        return Response(MenuSerializer(menu).data)

    patch = put

    @extend_schema(
        summary="Delete menu item",
        description="Refused with 409 while order items still reference the menu item.",
        parameters=[MENU_ID_PARAMETER],
        responses={204: None, 409: OpenApiTypes.OBJECT},
    )
    def delete(self, request, menu_id):
        menu = get_object_or_404(Menu, id=menu_id)
        services.delete_menu(request.user, menu)
        return Response(status=status.HTTP_204_NO_CONTENT)
