"""
App configuration for the core module.
"""

import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class CoreConfig(AppConfig):
    """App configuration for core."""

    name = "core"
    verbose_name = "Core"

    def ready(self):
        """Set up observability and event handlers once apps are loaded."""
        from core.infrastructure.event_handlers import register_event_handlers
        from core.instrumentation import setup_opentelemetry

        setup_opentelemetry()
        register_event_handlers()
        logger.debug("Core app ready")
