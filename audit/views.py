from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.response import Response
from rest_framework.views import APIView

from epos.pagination import paginate
from epos.permissions import ADMIN_ONLY

from .models import AuditLog
from .serializers import AuditLogFilterSerializer, AuditLogSerializer


class AuditLogListView(APIView):
    """Read the audit trail, newest first"""

    required_roles = ADMIN_ONLY

    @extend_schema(
        summary="List audit log entries",
        description="Paginated audit trail, newest first, with the acting user's name and role.",
        parameters=[
            AuditLogFilterSerializer,
            OpenApiParameter(name='page', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
            OpenApiParameter(name='per_page', type=OpenApiTypes.INT, location=OpenApiParameter.QUERY),
        ],
        responses={200: AuditLogSerializer(many=True)},
    )
    def get(self, request):
        filters = AuditLogFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        logs = AuditLog.objects.select_related('user')
        if 'user_id' in params:
            logs = logs.filter(user_id=params['user_id'])
        if params.get('action'):
            logs = logs.filter(action__icontains=params['action'])
        if 'date_from' in params:
            logs = logs.filter(timestamp__date__gte=params['date_from'])
        if 'date_to' in params:
            logs = logs.filter(timestamp__date__lte=params['date_to'])

        return paginate(self, logs, AuditLogSerializer)


class AuditLogDetailView(APIView):
    required_roles = ADMIN_ONLY

    @extend_schema(
        summary="Get audit log entry",
        parameters=[
            OpenApiParameter(name='log_id', type=OpenApiTypes.INT, location=OpenApiParameter.PATH, description='Audit log ID')
        ],
        responses={200: AuditLogSerializer},
    )
    def get(self, request, log_id):
        log = get_object_or_404(AuditLog.objects.select_related('user'), id=log_id)
        return Response(AuditLogSerializer(log).data)
