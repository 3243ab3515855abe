"""Shared Django settings for the application portal."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable
from urllib.parse import urlsplit

from django.core.exceptions import ImproperlyConfigured

import dj_database_url
import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration


BASE_DIR = Path(__file__).resolve().parent.parent.parent


def get_env_bool(name: str, default: bool = False) -> bool:
    """Return a boolean for an environment variable."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"true", "1", "yes", "on"}


def get_env_int(name: str, default: int) -> int:
    """Return an integer for ``name`` or ``default`` if unset."""

    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ImproperlyConfigured(
            f"Environment variable {name} must be an integer."
        ) from exc


def get_env_list(name: str, default: Iterable[str] = ()) -> list[str]:
    """Return the unique, stripped comma separated values of ``name``."""

    raw_value = os.getenv(name)
    values = raw_value.split(",") if raw_value else list(default)
    normalised: list[str] = []
    for value in values:
        candidate = value.strip()
        if candidate and candidate not in normalised:
            normalised.append(candidate)
    return normalised


def get_secret_key(debug: bool) -> str:
    """Fetch the Django secret key from the environment."""

    secret_key = os.getenv("DJANGO_SECRET_KEY") or os.getenv("SECRET_KEY")
    if secret_key:
        return secret_key
    if debug:
        return "django-insecure-development-key"
    raise ImproperlyConfigured(
        "DJANGO_SECRET_KEY must be set in production environments."
    )


def build_allowed_hosts(*env_vars: str, default: Iterable[str] = ("localhost", "127.0.0.1")) -> list[str]:
    """Aggregate allowed hosts from the first populated variable plus the public URL host."""

    hosts: list[str] = []
    for env_var in env_vars:
        hosts = get_env_list(env_var)
        if hosts:
            break
    if not hosts:
        hosts = list(default)

    public_url = os.getenv("PORTAL_PUBLIC_URL")
    if public_url:
        hostname = urlsplit(public_url).hostname
        if hostname and hostname not in hosts:
            hosts.append(hostname)
    return hosts


def build_database_config(
    primary_env_var: str,
    *,
    fallback_env_vars: Iterable[str] = (),
    default_url: str | None = None,
    conn_max_age: int = 600,
) -> dict[str, object]:
    """Build a Django database configuration from a ``*_DATABASE_URL`` variable."""

    database_url = os.getenv(primary_env_var)
    if not database_url:
        for candidate in fallback_env_vars:
            database_url = os.getenv(candidate)
            if database_url:
                break
    database_url = database_url or default_url
    if not database_url:
        raise ImproperlyConfigured(
            f"{primary_env_var} must be set to a database connection string."
        )
    return dj_database_url.parse(database_url, conn_max_age=conn_max_age)


def _get_sample_rate(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def init_sentry() -> None:
    """Configure Sentry monitoring when a DSN is available."""

    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return None

    environment = (
        os.getenv("SENTRY_ENVIRONMENT")
        or os.getenv("DJANGO_ENV")
        or ("development" if get_env_bool("DJANGO_DEBUG", True) else "production")
    )

    sentry_sdk.init(
        dsn=dsn,
        integrations=[DjangoIntegration(), CeleryIntegration()],
        environment=environment,
        send_default_pii=False,
        traces_sample_rate=_get_sample_rate("SENTRY_TRACES_SAMPLE_RATE", 0.2),
    )
    sentry_sdk.set_tag("environment", environment)
    return None


_SETTINGS_MODULE = os.getenv("DJANGO_SETTINGS_MODULE", "")
_IS_LOCAL_SETTINGS = _SETTINGS_MODULE.endswith((".dev", ".test"))

DEBUG = get_env_bool("DJANGO_DEBUG", default=_IS_LOCAL_SETTINGS)
SECRET_KEY = get_secret_key(DEBUG or _IS_LOCAL_SETTINGS)

ALLOWED_HOSTS = build_allowed_hosts("ALLOWED_HOSTS")
CSRF_TRUSTED_ORIGINS = get_env_list(
    "CSRF_TRUSTED_ORIGINS",
    default=("https://localhost", "https://127.0.0.1"),
)
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = get_env_bool("DJANGO_SECURE_SSL_REDIRECT", default=not DEBUG)
SESSION_COOKIE_SECURE = get_env_bool("DJANGO_SESSION_COOKIE_SECURE", default=not DEBUG)
CSRF_COOKIE_SECURE = get_env_bool("DJANGO_CSRF_COOKIE_SECURE", default=not DEBUG)
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_SECONDS = get_env_int("DJANGO_SECURE_HSTS_SECONDS", default=0)
SECURE_HSTS_INCLUDE_SUBDOMAINS = SECURE_HSTS_SECONDS > 0
X_FRAME_OPTIONS = "DENY"


INSTALLED_APPS = [
    'daphne',
    'channels',
    'rest_framework',
    'apps.users.apps.UsersConfig',
    'apps.applications.apps.ApplicationsConfig',
    'apps.api',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
        'rest_framework.authentication.BasicAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'apps.api.permissions.HasActiveProfile',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': get_env_int('API_PAGE_SIZE', 25),
}

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'backend.urls'
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

ASGI_APPLICATION = 'backend.asgi.application'


def _build_channel_layers() -> dict[str, dict[str, object]]:
    """Use Redis when a URL is configured, otherwise an in-process layer."""

    redis_url = os.getenv("CHANNEL_REDIS_URL") or os.getenv("REDIS_URL")
    if redis_url:
        return {
            'default': {
                'BACKEND': 'channels_redis.core.RedisChannelLayer',
                'CONFIG': {'hosts': [redis_url]},
            }
        }
    return {'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'}}


CHANNEL_LAYERS = _build_channel_layers()

DATABASES = {
    'default': build_database_config(
        'DATABASE_URL',
        default_url=f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
    )
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'whitenoise.storage.CompressedManifestStaticFilesStorage'},
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Workflow loggers write to the console and to the LogEntry table.
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
        'database': {
            'level': 'INFO',
            'class': 'apps.applications.logging.DatabaseLogHandler',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
        },
        'apps.applications': {
            'handlers': ['console', 'database'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps.users': {
            'handlers': ['console', 'database'],
            'level': 'INFO',
            'propagate': False,
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
}


EMAIL_BACKEND = os.getenv(
    "EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = get_env_int("EMAIL_PORT", 587)
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = get_env_bool("EMAIL_USE_TLS", True)
EMAIL_USE_SSL = get_env_bool("EMAIL_USE_SSL", False)
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "no-reply@bank-portal.local")
PORTAL_NOTIFICATION_FROM_EMAIL = os.getenv(
    "PORTAL_NOTIFICATION_FROM_EMAIL", DEFAULT_FROM_EMAIL
)


CELERY_BROKER_URL = os.getenv(
    "CELERY_BROKER_URL",
    os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0"),
)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_DEFAULT_QUEUE = os.getenv("CELERY_TASK_DEFAULT_QUEUE", "applications")
CELERY_TASK_ALWAYS_EAGER = get_env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_EAGER_PROPAGATES = get_env_bool("CELERY_TASK_EAGER_PROPAGATES", False)
CELERY_TASK_ACKS_LATE = get_env_bool("CELERY_TASK_ACKS_LATE", True)
CELERY_TASK_SOFT_TIME_LIMIT = get_env_int("CELERY_TASK_SOFT_TIME_LIMIT", 60)
CELERY_TASK_TIME_LIMIT = get_env_int("CELERY_TASK_TIME_LIMIT", 120)


init_sentry()
