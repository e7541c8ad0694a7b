from django.utils.html import strip_tags
from rest_framework import serializers


class CleanCharField(serializers.CharField):
    """CharField that strips HTML tags and surrounding whitespace before validating."""

    def run_validation(self, data=serializers.empty):
        if isinstance(data, str):
            data = strip_tags(data).strip()
        return super().run_validation(data)
