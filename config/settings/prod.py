"""Production settings for the hostel portal.

This module extends the base settings with production specific
configuration. Sensitive values must be provided via environment
variables; a missing secret stops startup instead of falling back to
a development default.
"""

from .base import *  # noqa: F401,F403
from .base import get_env

# Never run with debug enabled in production
DEBUG = False

SECRET_KEY = get_env("DJANGO_SECRET_KEY", required=True)

# Allowed hosts should be defined explicitly via environment variable
ALLOWED_HOSTS = [host.strip() for host in get_env("DJANGO_ALLOWED_HOSTS", required=True).split(",") if host.strip()]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": get_env("POSTGRES_DB", required=True),
        "USER": get_env("POSTGRES_USER", required=True),
        "PASSWORD": get_env("POSTGRES_PASSWORD", required=True),
        "HOST": get_env("DB_HOST", "localhost"),
        "PORT": get_env("DB_PORT", "5432"),
        "CONN_MAX_AGE": int(get_env("DB_CONN_MAX_AGE", "60")),
    }
}

STRIPE_SECRET_KEY = get_env("STRIPE_SECRET_KEY", required=True)
PAYSTACK_SECRET_KEY = get_env("PAYSTACK_SECRET_KEY", required=True)
FLUTTERWAVE_SECRET_KEY = get_env("FLUTTERWAVE_SECRET_KEY", required=True)

# Configure secure proxies and cookies
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = get_env("SECURE_SSL_REDIRECT", "True").lower() == "true"
