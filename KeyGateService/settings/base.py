"""
Base Django settings for KeyGateService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
# Also signs gate tokens; rotating it invalidates every outstanding gate URL.
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-k3y-g4te-dev-only-7c1f0b9e5a2d4c8f9e6b3a1d0c7f5e2b"
)

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third party
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "core",
    "keys",
    "api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Custom middleware
    "core.middleware.observability.ObservabilityMiddleware",
    "core.middleware.metrics.MetricsMiddleware",
    "core.middleware.rate_limit.RateLimitMiddleware",
    "core.middleware.auth.AdminAuthenticationMiddleware",
]

ROOT_URLCONF = "KeyGateService.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "KeyGateService.wsgi.application"
ASGI_APPLICATION = "KeyGateService.asgi.application"

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "keygate"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "EXCEPTION_HANDLER": "api.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

# drf-spectacular settings
SPECTACULAR_SETTINGS = {
    "TITLE": "Key Gate Service API",
    "DESCRIPTION": (
        "Key and HWID lifecycle service. Clients verify keys against a device; "
        "administrators issue, ban, and reset keys."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": "/api/v1",
    "TAGS": [
        {"name": "Client API", "description": "Key verification and gate callback"},
        {"name": "Admin API", "description": "Key administration"},
    ],
}

# Redis Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://127.0.0.1:6379/1"),
        "OPTIONS": {
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        },
    }
}

# Key lifecycle
KEYGATE_ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "")
KEYGATE_GATING_ENABLED = os.environ.get("KEYGATE_GATING_ENABLED", "false").lower() == "true"
KEYGATE_GATE_URL = os.environ.get(
    "KEYGATE_GATE_URL", "https://gate.example.com/unlock?token={token}"
)
KEYGATE_GATE_TOKEN_MAX_AGE = int(os.environ.get("KEYGATE_GATE_TOKEN_MAX_AGE", "86400"))
# Shared with the gate provider only; callbacks must carry an HMAC of the token keyed by it.
# Empty rejects every callback.
KEYGATE_GATE_CALLBACK_SECRET = os.environ.get("KEYGATE_GATE_CALLBACK_SECRET", "")
KEYGATE_KEY_PREFIX = os.environ.get("KEYGATE_KEY_PREFIX", "KEY")
KEYGATE_KEY_GENERATION_ATTEMPTS = 5
KEYGATE_VERIFY_ATTEMPTS = int(os.environ.get("KEYGATE_VERIFY_ATTEMPTS", "2"))
# Requests per minute per client IP on the verify and gate endpoints; 0 disables
KEYGATE_VERIFY_RATE_LIMIT = int(os.environ.get("KEYGATE_VERIFY_RATE_LIMIT", "120"))

# Observability
LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "development"))
