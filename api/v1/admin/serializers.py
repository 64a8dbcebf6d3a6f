"""
Serializers for admin API endpoints.
"""

from rest_framework import serializers


class CreateKeyRequestSerializer(serializers.Serializer):
    """Serializer for create key request."""

    key = serializers.CharField(required=False, allow_blank=True, max_length=100)
    expireDays = serializers.IntegerField(  # noqa: N815
        required=False, allow_null=True, min_value=1
    )


class ListKeysQuerySerializer(serializers.Serializer):
    """Serializer for list keys filters."""

    banned = serializers.BooleanField(required=False, allow_null=True, default=None)
    bound = serializers.BooleanField(required=False, allow_null=True, default=None)


class KeyRecordSerializer(serializers.Serializer):
    """Serializer for KeyRecordDTO, in the camelCase wire format."""

    key = serializers.CharField()
    hwid = serializers.CharField(allow_null=True)
    banned = serializers.BooleanField()
    unlocked = serializers.BooleanField()
    expireAt = serializers.DateTimeField(source="expire_at", allow_null=True)  # noqa: N815
    createdAt = serializers.DateTimeField(source="created_at")  # noqa: N815
    activatedAt = serializers.DateTimeField(  # noqa: N815
        source="activated_at", allow_null=True
    )
    state = serializers.CharField()


class KeyResponseSerializer(serializers.Serializer):
    """Serializer for a single-key response."""

    success = serializers.BooleanField()
    key = KeyRecordSerializer()


class KeyListResponseSerializer(serializers.Serializer):
    """Serializer for list keys response."""

    success = serializers.BooleanField()
    count = serializers.IntegerField()
    keys = KeyRecordSerializer(many=True)
