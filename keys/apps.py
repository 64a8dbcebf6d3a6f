"""
App configuration for the keys module.
"""

from django.apps import AppConfig


class KeysConfig(AppConfig):
    """App configuration for keys."""

    name = "keys"
    verbose_name = "Keys"
    default_auto_field = "django.db.models.BigAutoField"
