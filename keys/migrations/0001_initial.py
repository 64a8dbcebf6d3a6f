from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="KeyRecord",
            fields=[
                ("key", models.CharField(max_length=100, primary_key=True, serialize=False)),
                (
                    "hwid",
                    models.CharField(
                        blank=True,
                        help_text="Device fingerprint bound on first successful verify",
                        max_length=256,
                        null=True,
                    ),
                ),
                ("banned", models.BooleanField(db_index=True, default=False)),
                (
                    "unlocked",
                    models.BooleanField(
                        default=True, help_text="Set once the key has passed the unlock gate"
                    ),
                ),
                ("expire_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField()),
                ("activated_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "key_records",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["banned", "created_at"], name="key_records_banned_created_idx"
                    ),
                    models.Index(fields=["hwid"], name="key_records_hwid_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(hwid__isnull=True, activated_at__isnull=True)
                            | models.Q(hwid__isnull=False, activated_at__isnull=False)
                        ),
                        name="key_records_hwid_activated_at_together",
                    ),
                ],
            },
        ),
    ]
