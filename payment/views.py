from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from epos.pagination import paginate
from epos.permissions import STAFF

from . import services
from .models import Payment
from .serializers import PaymentSerializer, PaymentWriteSerializer

PAYMENT_ID_PARAMETER = OpenApiParameter(
    name='payment_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='Payment ID'
)


class PaymentListView(APIView):
    """Payments taken against orders"""

    required_roles = STAFF

    @extend_schema(
        summary="List payments",
        parameters=[
            OpenApiParameter(name='order_id', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='payment_status', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='payment_method', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='page', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='per_page', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
        ],
        responses={200: PaymentSerializer(many=True)},
    )
    def get(self, request):
        payments = Payment.objects.all()
        params = request.query_params
        if params.get('order_id', '').isdigit():
            payments = payments.filter(order_id=int(params['order_id']))
        if params.get('payment_status'):
            payments = payments.filter(payment_status=params['payment_status'])
        if params.get('payment_method'):
            payments = payments.filter(payment_method=params['payment_method'])
        return paginate(self, payments, PaymentSerializer)

    @extend_schema(
        summary="Record payment",
        description="Records a payment against an order. Several payments per order are allowed.",
        request=PaymentWriteSerializer,
        responses={201: PaymentSerializer},
        examples=[
            OpenApiExample(
                'Cash Payment Example',
                summary='Order paid in full with cash',
                value={'order_id': 1, 'amount_paid': '250.00', 'payment_method': 'cash', 'payment_status': 'completed'}
            )
        ]
    )
    def post(self, request):
        serializer = PaymentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = services.create_payment(request.user, serializer.validated_data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class PaymentDetailView(APIView):
    required_roles = STAFF

    @extend_schema(summary="Get payment", parameters=[PAYMENT_ID_PARAMETER], responses={200: PaymentSerializer})
    def get(self, request, payment_id):
        payment = get_object_or_404(Payment, id=payment_id)
        return Response(PaymentSerializer(payment).data)

    @extend_schema(
        summary="Update payment",
        parameters=[PAYMENT_ID_PARAMETER],
        request=PaymentWriteSerializer,
        responses={200: PaymentSerializer},
        examples=[
            OpenApiExample('Complete Payment Example', value={'payment_status': 'completed'})
        ]
    )
    def put(self, request, payment_id):
        payment = get_object_or_404(Payment, id=payment_id)
        serializer = PaymentWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        payment = services.update_payment(request.user, payment, serializer.validated_data)
        return Response(PaymentSerializer(payment).data)

    patch = put
