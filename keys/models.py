"""
Django models for the keys app.
"""

from keys.infrastructure.models import KeyRecord  # noqa: F401
