from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True, allow_null=True)
    user_name = serializers.CharField(source='actor_name', read_only=True)
    user_role = serializers.CharField(source='actor_role', read_only=True, allow_null=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user_id', 'user_name', 'user_role', 'action', 'timestamp']
        read_only_fields = fields


class AuditLogFilterSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(required=False, help_text="Only entries by this user")
    action = serializers.CharField(required=False, help_text="Case-insensitive text the action must contain")
    date_from = serializers.DateField(required=False, help_text="Earliest day included (YYYY-MM-DD)")
    date_to = serializers.DateField(required=False, help_text="Latest day included (YYYY-MM-DD)")

    def validate(self, attrs):
        if 'date_from' in attrs and 'date_to' in attrs and attrs['date_from'] > attrs['date_to']:
            raise serializers.ValidationError({'date_to': 'date_to must not be before date_from.'})
        return attrs
