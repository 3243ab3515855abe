"""Development settings reading overrides from a local ``.env`` file."""

from __future__ import annotations

import os

import environ

from .base import *  # noqa: F401,F403
from .base import (
    BASE_DIR,
    build_allowed_hosts,
    build_database_config,
    get_env_bool,
    get_env_list,
    get_secret_key,
)

env = environ.Env()
environ.Env.read_env(os.path.join(BASE_DIR, ".env"))

DEBUG = get_env_bool("DJANGO_DEBUG", default=True)
SECRET_KEY = get_secret_key(DEBUG)

ALLOWED_HOSTS = build_allowed_hosts("DEV_ALLOWED_HOSTS", "ALLOWED_HOSTS")
CSRF_TRUSTED_ORIGINS = get_env_list(
    "DEV_CSRF_TRUSTED_ORIGINS",
    default=("http://localhost", "http://127.0.0.1"),
)

DATABASES = {
    "default": build_database_config(
        "DEV_DATABASE_URL",
        fallback_env_vars=("DATABASE_URL",),
        default_url=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
    )
}

EMAIL_BACKEND = env(
    "EMAIL_BACKEND", default="django.core.mail.backends.console.EmailBackend"
)
CELERY_TASK_ALWAYS_EAGER = env.bool("CELERY_TASK_ALWAYS_EAGER", default=True)

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

SECURE_SSL_REDIRECT = get_env_bool("DJANGO_SECURE_SSL_REDIRECT", default=False)
SESSION_COOKIE_SECURE = get_env_bool("DJANGO_SESSION_COOKIE_SECURE", default=False)
CSRF_COOKIE_SECURE = get_env_bool("DJANGO_CSRF_COOKIE_SECURE", default=False)
