"""
Development settings for KeyGateService.
"""

import os

from .base import *  # noqa: F403, F401

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Database - Use PostgreSQL in Docker, SQLite for local development
# Override with environment variable DB_ENGINE=sqlite for SQLite
if os.environ.get("DB_ENGINE") == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
        }
    }

# Fall back to process-local cache when no Redis is configured
if not os.environ.get("REDIS_URL"):
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        }
    }

KEYGATE_ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "dev-admin-token")
KEYGATE_GATE_CALLBACK_SECRET = os.environ.get("KEYGATE_GATE_CALLBACK_SECRET", "dev-gate-callback-secret")
