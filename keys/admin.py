"""
Django admin configuration for keys app.

Admin actions go through the same handlers as the admin API, so they are
field-level updates and emit the same audit events.
"""
from asgiref.sync import async_to_sync
from django.contrib import admin, messages
from django.utils import timezone
from django.utils.html import format_html

from core.domain.exceptions import KeyNotFoundError
from keys.application.commands.ban_key import BanKeyCommand
from keys.application.commands.reset_hwid import ResetHwidCommand
from keys.application.commands.unban_key import UnbanKeyCommand
from keys.application.handlers.key_admin_handlers import (
    BanKeyHandler,
    ResetHwidHandler,
    UnbanKeyHandler,
)
from keys.infrastructure.models import KeyRecord
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

_key_repo = DjangoKeyRepository()

STATE_COLORS = {
    "banned": "red",
    "expired": "gray",
    "gated": "orange",
    "unbound": "blue",
    "bound": "green",
}


def _apply(modeladmin, request, queryset, handler, command_class, verb):
    done = 0
    for key in queryset.values_list("key", flat=True):
        try:
            async_to_sync(handler.handle)(command_class(key=key))
        except KeyNotFoundError:
            continue
        done += 1
    modeladmin.message_user(request, f"{verb} {done} key(s).", messages.SUCCESS)


@admin.register(KeyRecord)
class KeyRecordAdmin(admin.ModelAdmin):
    """Admin interface for KeyRecord model."""

    list_display = [
        "key",
        "state_display",
        "hwid",
        "banned",
        "unlocked",
        "expire_at",
        "activated_at",
        "created_at",
    ]
    list_filter = ["banned", "unlocked", "created_at", "expire_at"]
    search_fields = ["key", "hwid"]
    readonly_fields = ["key", "hwid", "activated_at", "created_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("key", "banned", "unlocked", "expire_at"),
            },
        ),
        (
            "Binding",
            {
                "fields": ("hwid", "activated_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at",),
                "classes": ("collapse",),
            },
        ),
    )
    actions = ["ban_keys", "unban_keys", "reset_hwids"]

    def has_add_permission(self, request):
        """Keys are issued through the API or the create_keys command."""
        return False

    def has_change_permission(self, request, obj=None):
        """Records change only through the admin actions."""
        return False

    def state_display(self, obj):
        """Display lifecycle state with color coding."""
        state = obj.to_entity().state(timezone.now()).value
        color = STATE_COLORS.get(state, "black")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            state.upper(),
        )

    state_display.short_description = "State"

    @admin.action(description="Ban selected keys")
    def ban_keys(self, request, queryset):
        _apply(self, request, queryset, BanKeyHandler(_key_repo), BanKeyCommand, "Banned")

    @admin.action(description="Unban selected keys")
    def unban_keys(self, request, queryset):
        _apply(self, request, queryset, UnbanKeyHandler(_key_repo), UnbanKeyCommand, "Unbanned")

    @admin.action(description="Reset HWID of selected keys")
    def reset_hwids(self, request, queryset):
        _apply(self, request, queryset, ResetHwidHandler(_key_repo), ResetHwidCommand, "Reset")
