"""Production settings for the application portal."""

from __future__ import annotations

from .base import *  # noqa: F401,F403
from .base import (
    build_allowed_hosts,
    build_database_config,
    get_env_bool,
    get_env_list,
    get_secret_key,
)

DEBUG = get_env_bool("DJANGO_DEBUG", default=False)
SECRET_KEY = get_secret_key(DEBUG)

ALLOWED_HOSTS = build_allowed_hosts("PROD_ALLOWED_HOSTS", "ALLOWED_HOSTS")
CSRF_TRUSTED_ORIGINS = get_env_list("PROD_CSRF_TRUSTED_ORIGINS")

DATABASES = {
    "default": build_database_config(
        "PROD_DATABASE_URL",
        fallback_env_vars=("DATABASE_URL",),
        conn_max_age=600,
    )
}
