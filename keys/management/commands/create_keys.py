"""
Django management command to issue keys in bulk.

Prints one key per line so the output can be piped into a file.
"""

import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainException
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.handlers.create_key_handler import CreateKeyHandler
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to issue keys."""

    help = "Issue one or more random keys"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--count",
            type=int,
            default=1,
            help="Number of keys to issue (default: 1)",
        )
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Days until the keys expire (default: never)",
        )
        parser.add_argument(
            "--prefix",
            type=str,
            default=None,
            help="Key prefix (default: KEYGATE_KEY_PREFIX)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        count = options["count"]
        if count < 1:
            raise CommandError("--count must be at least 1")

        handler = CreateKeyHandler(
            key_repository=DjangoKeyRepository(),
            key_prefix=options["prefix"] or settings.KEYGATE_KEY_PREFIX,
            gating_enabled=settings.KEYGATE_GATING_ENABLED,
            max_attempts=settings.KEYGATE_KEY_GENERATION_ATTEMPTS,
        )
        command = CreateKeyCommand(expire_days=options["days"])

        for _ in range(count):
            try:
                record = async_to_sync(handler.handle)(command)
            except DomainException as e:
                raise CommandError(e.message) from e
            self.stdout.write(record.key)

        # pylint: disable=no-member
        self.stderr.write(self.style.SUCCESS(f"Issued {count} key(s)"))
