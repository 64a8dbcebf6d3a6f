"""
KeyRecord Django ORM model.

This is the infrastructure layer model for access keys.
Domain entities are in keys.domain.key_record.
"""
from django.db import models

from keys.domain.key_record import KeyRecord as KeyRecordEntity


class KeyRecord(models.Model):
    """
    One issued access key, identified by the key string itself.
    """

    key = models.CharField(max_length=100, primary_key=True)
    hwid = models.CharField(
        max_length=256,
        null=True,
        blank=True,
        help_text="Device fingerprint bound on first successful verify",
    )
    banned = models.BooleanField(default=False, db_index=True)
    unlocked = models.BooleanField(
        default=True, help_text="Set once the key has passed the unlock gate"
    )
    expire_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField()
    activated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        app_label = "keys"
        db_table = "key_records"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["banned", "created_at"], name="key_records_banned_created_idx"),
            models.Index(fields=["hwid"], name="key_records_hwid_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(hwid__isnull=True, activated_at__isnull=True)
                    | models.Q(hwid__isnull=False, activated_at__isnull=False)
                ),
                name="key_records_hwid_activated_at_together",
            ),
        ]

    def __str__(self):
        return self.key

    def to_entity(self) -> KeyRecordEntity:
        """Convert this row to a KeyRecord domain entity."""
        return KeyRecordEntity(
            key=self.key,
            hwid=self.hwid,
            banned=self.banned,
            unlocked=self.unlocked,
            expire_at=self.expire_at,
            created_at=self.created_at,
            activated_at=self.activated_at,
        )
