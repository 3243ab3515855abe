"""Settings package; select a module with ``DJANGO_SETTINGS_MODULE``."""
