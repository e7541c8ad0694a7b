from django.db.models import Q
from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from epos.pagination import paginate
from epos.permissions import STAFF

from . import services
from .models import Order, OrderItem
from .serializers import (
    OrderItemCreateSerializer, OrderItemSerializer, OrderItemUpdateSerializer,
    OrderSerializer, OrderWriteSerializer,
)

ORDER_ID_PARAMETER = OpenApiParameter(
    name='order_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='Order ID'
)
ITEM_ID_PARAMETER = OpenApiParameter(
    name='item_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='Order item ID'
)
PAGE_PARAMETERS = [
    OpenApiParameter(name='page', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
    OpenApiParameter(name='per_page', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
]


def order_queryset():
    return Order.objects.select_related('customer', 'handled_by').prefetch_related('items__menu', 'payments')


class OrderListView(APIView):
    required_roles = STAFF

    @extend_schema(
        summary="List orders",
        description="Paginated orders, newest first, with items, payments and the customer.",
        parameters=[
            OpenApiParameter(name='status', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='order_source', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='order_type', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='customer_id', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Order ID, customer name or order reference'),
            OpenApiParameter(name='q', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Alias of search'),
            *PAGE_PARAMETERS,
        ],
        responses={200: OrderSerializer(many=True)},
    )
    def get(self, request):
        orders = order_queryset()
        params = request.query_params

        if params.get('status'):
            orders = orders.filter(status=params['status'])
        if params.get('order_source'):
            orders = orders.filter(order_source=params['order_source'].upper())
        if params.get('order_type'):
            orders = orders.filter(order_type=params['order_type'])
        if params.get('customer_id', '').isdigit():
            orders = orders.filter(customer_id=int(params['customer_id']))

        search = (params.get('search') or params.get('q') or '').strip()
        if search:
            match = Q(customer__customer_name__icontains=search) | Q(customer__order_reference__icontains=search)
            if search.isdigit():
                match |= Q(id=int(search))
            orders = orders.filter(match)

        return paginate(self, orders, OrderSerializer)

    @extend_schema(
        summary="Create order",
        description="Creates the order and its items. total_amount is computed from the items; "
                    "a total sent by the client is ignored.",
        request=OrderWriteSerializer,
        responses={201: OrderSerializer},
        examples=[
            OpenApiExample(
                'Create Order Example',
                summary='Two adobo for table 5',
                value={
                    'customer_id': 1,
                    'handled_by': 2,
                    'order_type': 'dine-in',
                    'status': 'pending',
                    'order_source': 'QR',
                    'items': [{'menu_id': 1, 'quantity': 2, 'price': '125.00'}],
                }
            )
        ]
    )
    def post(self, request):
        serializer = OrderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.create_order(request.user, **serializer.validated_data)
        order = order_queryset().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class OrderDetailView(APIView):
    required_roles = STAFF

    @extend_schema(summary="Get order", parameters=[ORDER_ID_PARAMETER], responses={200: OrderSerializer})
    def get(self, request, order_id):
        order = get_object_or_404(order_queryset(), id=order_id)
        return Response(OrderSerializer(order).data)

    @extend_schema(
        summary="Update order",
        description="Partial update. A status may only move one step forward: "
                    "pending, preparing, ready, served. Returns 409 if the order "
                    "changed since it was read.",
        parameters=[ORDER_ID_PARAMETER],
        request=OrderWriteSerializer,
        responses={200: OrderSerializer, 409: OpenApiTypes.OBJECT, 422: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample('Advance Status Example', value={'status': 'preparing'})
        ]
    )
    def put(self, request, order_id):
        order = get_object_or_404(Order, id=order_id)
        serializer = OrderWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        services.update_order(request.user, order, serializer.validated_data)
        return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)

    patch = put

    @extend_schema(
        summary="Delete order",
        description="Deletes the order together with its items and payments.",
        parameters=[ORDER_ID_PARAMETER],
        responses={204: None},
    )
    def delete(self, request, order_id):
        order = get_object_or_404(Order, id=order_id)
        services.delete_order(request.user, order)
        return Response(status=status.HTTP_204_NO_CONTENT)


class OrderAdvanceView(APIView):
    """Move an order to the next status; served orders stay served"""

    required_roles = STAFF

    @extend_schema(
        summary="Advance order status",
        parameters=[ORDER_ID_PARAMETER],
        request=None,
        responses={200: OrderSerializer, 409: OpenApiTypes.OBJECT},
    )
    def post(self, request, order_id):
        order = get_object_or_404(Order, id=order_id)
        services.advance_order(request.user, order)
        return Response(OrderSerializer(order_queryset().get(pk=order.pk)).data)


class OrderItemListView(APIView):
    required_roles = STAFF

    @extend_schema(
        summary="List order items",
        parameters=[
            OpenApiParameter(name='order_id', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            *PAGE_PARAMETERS,
        ],
        responses={200: OrderItemSerializer(many=True)},
    )
    def get(self, request):
        items = OrderItem.objects.select_related('menu')
        order_id = request.query_params.get('order_id', '')
        if order_id.isdigit():
            items = items.filter(order_id=int(order_id))
        return paginate(self, items, OrderItemSerializer)

    @extend_schema(
        summary="Add item to order",
        description="Adds a line to an existing order and recomputes the order total.",
        request=OrderItemCreateSerializer,
        responses={201: OrderItemSerializer},
        examples=[
            OpenApiExample(
                'Add Item Example',
                summary='Add 2 iced teas to order 1',
                value={'order_id': 1, 'menu_id': 8, 'quantity': 2}
            )
        ]
    )
    def post(self, request):
        serializer = OrderItemCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        item = services.add_item(request.user, data['order'], data['menu'], data['quantity'], data.get('price'))
        return Response(OrderItemSerializer(item).data, status=status.HTTP_201_CREATED)


class OrderItemDetailView(APIView):
    required_roles = STAFF

    @extend_schema(summary="Get order item", parameters=[ITEM_ID_PARAMETER], responses={200: OrderItemSerializer})
    def get(self, request, item_id):
        item = get_object_or_404(OrderItem.objects.select_related('menu'), id=item_id)
        return Response(OrderItemSerializer(item).data)

    @extend_schema(
        summary="Update order item",
        parameters=[ITEM_ID_PARAMETER],
        request=OrderItemUpdateSerializer,
        responses={200: OrderItemSerializer},
    )
    def put(self, request, item_id):
        item = get_object_or_404(OrderItem.objects.select_related('menu', 'order'), id=item_id)
        serializer = OrderItemUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        item = services.update_item(request.user, item, serializer.validated_data)
        return Response(OrderItemSerializer(item).data)

    patch = put

    @extend_schema(summary="Remove order item", parameters=[ITEM_ID_PARAMETER], responses={204: None})
    def delete(self, request, item_id):
        item = get_object_or_404(OrderItem.objects.select_related('order'), id=item_id)
        services.remove_item(request.user, item)
        return Response(status=status.HTTP_204_NO_CONTENT)
