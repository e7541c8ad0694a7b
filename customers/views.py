from django.db.models import Q
from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from epos.permissions import PUBLIC, STAFF, actor_of

from . import services
from .models import Customer
from .serializers import CustomerSerializer, CustomerWriteSerializer

CUSTOMER_ID_PARAMETER = OpenApiParameter(
    name='customer_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='Customer ID'
)


class CustomerListView(APIView):
    """Walk-in and QR customers. Registration is open to guests scanning a table QR."""

    required_roles = {'GET': STAFF, 'POST': PUBLIC}

    @extend_schema(
        summary="List customers",
        parameters=[
            OpenApiParameter(name='search', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Matches name, table number or order reference'),
        ],
        responses={200: CustomerSerializer(many=True)},
    )
    def get(self, request):
        customers = Customer.objects.order_by('-created_at', '-id')
        search = request.query_params.get('search')
        if search:
            customers = customers.filter(
                Q(customer_name__icontains=search)
                | Q(table_number__iexact=search)
                | Q(order_reference__icontains=search)
            )
        return Response(CustomerSerializer(customers, many=True).data)

    @extend_schema(
        summary="Register customer",
        request=CustomerWriteSerializer,
        responses={201: CustomerSerializer},
        examples=[
            OpenApiExample(
                'QR Customer Example',
                summary='Guest at table 5',
                value={'table_number': '5', 'order_reference': 'QR-5-1700000000'}
            )
        ]
    )
    def post(self, request):
        serializer = CustomerWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        customer = services.create_customer(actor_of(request), serializer.validated_data)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)


class CustomerDetailView(APIView):
    required_roles = STAFF

    @extend_schema(summary="Get customer", parameters=[CUSTOMER_ID_PARAMETER], responses={200: CustomerSerializer})
    def get(self, request, customer_id):
        customer = get_object_or_404(Customer, id=customer_id)
        return Response(CustomerSerializer(customer).data)

    @extend_schema(
        summary="Update customer",
        parameters=[CUSTOMER_ID_PARAMETER],
        request=CustomerWriteSerializer,
        responses={200: CustomerSerializer},
    )
    def put(self, request, customer_id):
        customer = get_object_or_404(Customer, id=customer_id)
        serializer = CustomerWriteSerializer(customer, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        customer = services.update_customer(request.user, customer, serializer.validated_data)
        return Response(CustomerSerializer(customer).data)

    patch = put
