from rest_framework import serializers


class ErrorResponseSerializer(serializers.Serializer):
    """서비스 에러 응답"""

    success = serializers.BooleanField(default=False)
    error_code = serializers.CharField()
    message = serializers.CharField()
    errors = serializers.DictField(required=False)
