"""
Django settings for the core_backend project.

Environment overrides:
    DJANGO_SECRET_KEY, DJANGO_DEBUG, DATABASE_PATH, DJANGO_LOG_LEVEL
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY", "django-insecure-order-engine-development-key"
)

DEBUG = os.environ.get("DJANGO_DEBUG", "True").lower() in ("1", "true", "yes")

ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")


INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "rest_framework",
    "core_backend",
    "users",
    "settings",
    "products",
    "inventory",
    "orders",
    "tables",
    "tabs",
    "payments",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "core_backend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "core_backend.wsgi.application"


# === PERSISTENCE ===
# Every database call is bounded: the driver gives up after this many seconds
# instead of waiting on a locked database forever.
PERSISTENCE_TIMEOUT_SECONDS = int(os.environ.get("PERSISTENCE_TIMEOUT_SECONDS", "5"))

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
        "OPTIONS": {
            "timeout": PERSISTENCE_TIMEOUT_SECONDS,
        },
    }
}

AUTH_USER_MODEL = "users.User"

AUTH_PASSWORD_VALIDATORS = []

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"


# === REST FRAMEWORK ===
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "EXCEPTION_HANDLER": "core_backend.exceptions.order_engine_exception_handler",
}


# === ORDER ENGINE ===
# Cart writes are coalesced for this long before reaching the database.
ORDER_SESSION_SAVE_DEBOUNCE_MS = int(os.environ.get("ORDER_SESSION_SAVE_DEBOUNCE_MS", "500"))

# Display name given to order lines that arrive without one.
UNASSIGNED_ITEM_NAME_TEMPLATE = "Item {variant_id}"


# === LOGGING ===
LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
        "simple": {
            "format": "{levelname} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "orders": {"level": LOG_LEVEL},
        "tabs": {"level": LOG_LEVEL},
        "tables": {"level": LOG_LEVEL},
        "payments": {"level": LOG_LEVEL},
        "inventory": {"level": LOG_LEVEL},
        "products": {"level": LOG_LEVEL},
        "settings": {"level": LOG_LEVEL},
        "core_backend": {"level": LOG_LEVEL},
    },
}
