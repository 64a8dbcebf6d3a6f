"""
Event handlers for domain events.

These handlers process domain events for side effects such as the
audit trail of every key lifecycle change.
"""

import logging

from core.domain.events import DomainEvent, EventHandler
from keys.domain.events import (
    KeyActivated,
    KeyBanned,
    KeyCreated,
    KeyDeleted,
    KeyHwidReset,
    KeyUnbanned,
    KeyUnlocked,
)

logger = logging.getLogger("core.audit")

AUDITED_EVENTS = (
    KeyCreated,
    KeyActivated,
    KeyBanned,
    KeyUnbanned,
    KeyHwidReset,
    KeyUnlocked,
    KeyDeleted,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes one structured log line per domain event. Keys are truncated.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s...",
            event.event_type,
            event.aggregate_id[:8],
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id[:8],
                "occurred_at": event.occurred_at.isoformat(),
            },
        )


def register_event_handlers(bus=None) -> None:
    """
    Register event handlers with the event bus.

    Args:
        bus: Event bus to register on (defaults to the global one)
    """
    if bus is None:
        from core.infrastructure.events import event_bus

        bus = event_bus

    audit_handler = AuditLogEventHandler()
    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, audit_handler)

    logger.info("Registered audit handler for %d event types", len(AUDITED_EVENTS))
