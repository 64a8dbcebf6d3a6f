"""
Serializers for client-facing endpoints (verification and gate callback).
"""

from rest_framework import serializers

from core.domain.value_objects import MAX_HWID_LENGTH, HardwareId
from keys.application.dto.key_dto import VerificationResultDTO
from keys.domain.lifecycle import Outcome

OUTCOME_MESSAGES = {
    Outcome.NOT_FOUND: "key not found",
    Outcome.BANNED: "key banned",
    Outcome.EXPIRED: "key expired",
    Outcome.ACTIVATED: "activated",
    Outcome.HWID_MISMATCH: "hwid mismatch",
}

MISSING_CODES = {"required", "blank", "null"}


class VerifyKeyRequestSerializer(serializers.Serializer):
    """Serializer for verify request query parameters."""

    key = serializers.CharField(required=True, max_length=100)
    hwid = serializers.CharField(required=True, max_length=MAX_HWID_LENGTH, trim_whitespace=False)

    def validate_hwid(self, value):
        """Validate hardware identifier."""
        try:
            return HardwareId(value).value
        except ValueError as e:
            raise serializers.ValidationError(str(e)) from e

    def has_missing_fields(self) -> bool:
        """Whether validation failed because a parameter is absent or empty."""
        return any(
            getattr(detail, "code", None) in MISSING_CODES
            for details in self.errors.values()
            for detail in details
        )


class VerificationResponseSerializer(serializers.Serializer):
    """
    Serializer for verification results.

    Valid carries only success; NeedsGate carries gateUrl instead of a message.
    """

    success = serializers.BooleanField()
    message = serializers.CharField(required=False)
    gateUrl = serializers.URLField(required=False)  # noqa: N815

    def to_representation(self, instance: VerificationResultDTO) -> dict:
        data = {"success": instance.success}
        message = OUTCOME_MESSAGES.get(instance.outcome)
        if message:
            data["message"] = message
        if instance.outcome is Outcome.NEEDS_GATE:
            data["gateUrl"] = instance.gate_url
        return data


class GateCallbackRequestSerializer(serializers.Serializer):
    """Serializer for gate callback query parameters."""

    token = serializers.CharField(required=True, max_length=512)
    signature = serializers.CharField(required=True, max_length=128)
