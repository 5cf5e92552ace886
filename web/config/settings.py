"""Django settings for the rank provisioning service.

Every value comes from the environment once, at import time. The core
components receive what they need through ``apps.purchases.providers`` and
never read the environment themselves.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "1" if default else "0").lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "apps.purchases",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "gateway.middleware.RequestIdMiddleware",
    "gateway.middleware.ApiSizeLimitMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# ---- Database (PostgreSQL, pooled) ----
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "HOST": os.getenv("DB_HOST", "localhost"),
        "PORT": os.getenv("DB_PORT", "5432"),
        "NAME": os.getenv("DB_NAME", "premiummc"),
        "USER": os.getenv("DB_USER", "premiummc"),
        "PASSWORD": os.getenv("DB_PASSWORD", ""),
        "OPTIONS": {
            # shared by request threads and provisioning threads
            "pool": {
                "min_size": 1,
                "max_size": int(os.getenv("DB_POOL_MAX", "10")),
                "timeout": float(os.getenv("DB_POOL_TIMEOUT", "10")),
            },
        },
    }
}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "UTC"

# ---- Request limits / security headers ----
API_MAX_BYTES = int(os.getenv("API_MAX_BYTES", str(10 * 1024 * 1024)))
DATA_UPLOAD_MAX_MEMORY_SIZE = API_MAX_BYTES
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
}

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_THROTTLE_RATES": {
        "webhook": os.getenv("WEBHOOK_THROTTLE_RATE", "100/15m"),
        "admin": os.getenv("ADMIN_THROTTLE_RATE", "50/15m"),
    },
}

# ---- Storefront webhook ----
SHOPIFY_WEBHOOK_SECRET = os.getenv("SHOPIFY_WEBHOOK_SECRET", "")
IDENTITY_PROPERTY = os.getenv("IDENTITY_PROPERTY", "Nick Minecraft")

# ---- Game server (RCON) ----
USE_RCON_ADAPTER = env_bool("USE_RCON_ADAPTER", True)
MC_RCON_HOST = os.getenv("MC_RCON_HOST", "localhost")
MC_RCON_PORT = int(os.getenv("MC_RCON_PORT", "25575"))
MC_RCON_PASSWORD = os.getenv("MC_RCON_PASSWORD", "")
MC_RCON_TIMEOUT = float(os.getenv("MC_RCON_TIMEOUT", "5"))
RCON_GRANT_COMMAND = os.getenv("RCON_GRANT_COMMAND", "lp user {identity} parent add {entitlement}")

# ---- Provisioning ----
PROVISIONING_DISPATCH = os.getenv("PROVISIONING_DISPATCH", "thread")
PROVISION_MAX_ATTEMPTS = 3
PROVISION_BACKOFF_BASE = 2.0

# ---- Admin listing ----
ADMIN_USER = os.getenv("ADMIN_USER", "")
ADMIN_PASS = os.getenv("ADMIN_PASS", "")

# ---- Logging (JSON lines with request id) ----
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "gateway.logging_filters.RequestIdFilter"},
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s %(request_id)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["request_id"],
        },
    },
    "root": {"handlers": ["console"], "level": os.getenv("LOG_LEVEL", "INFO")},
    "loggers": {
        "django.request": {"level": "ERROR"},
    },
}
