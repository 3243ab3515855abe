"""ASGI routing configuration for websocket connections."""

from __future__ import annotations

from django.urls import path

from apps.applications.consumers import StaffApplicationConsumer

websocket_urlpatterns = [
    path("ws/staff/applications/", StaffApplicationConsumer.as_asgi()),
]
