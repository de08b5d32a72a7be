"""Test settings: in-memory SQLite, fast hashing, dummy gateway keys."""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

STRIPE_SECRET_KEY = "sk_test_dummy"
PAYSTACK_SECRET_KEY = "sk_test_paystack"
PAYSTACK_API_BASE_URL = "https://paystack.test"
FLUTTERWAVE_SECRET_KEY = "FLWSECK_TEST-dummy"
FLUTTERWAVE_API_BASE_URL = "https://flutterwave.test/v3"
STUDENT_PORTAL_URL = "https://portal.test"
CARD_GATEWAY_MIN_AMOUNT = 100
