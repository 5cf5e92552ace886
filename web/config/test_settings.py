"""Django settings for the test suite."""

from .settings import *  # noqa: F401,F403

SECRET_KEY = "test-secret-key-not-for-production"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

SHOPIFY_WEBHOOK_SECRET = "test-webhook-secret"
ADMIN_USER = "admin"
ADMIN_PASS = "s3cret-pass"

USE_RCON_ADAPTER = False
PROVISIONING_DISPATCH = "inline"

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    "DEFAULT_THROTTLE_RATES": {"webhook": "1000/15m", "admin": "1000/15m"},
}
