"""Websocket consumer pushing application status changes to staff dashboards."""

from __future__ import annotations

from typing import Any, Dict

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from apps.users.constants import STAFF_ROLES
from apps.users.permissions import user_has_any_role

from .models import Application
from .notifications import STAFF_GROUP_NAME
from .services.dashboard import build_status_counts


class StaffApplicationConsumer(AsyncJsonWebsocketConsumer):
    """Stream live status changes and counts to admins and managers."""

    group_name = STAFF_GROUP_NAME

    async def connect(self) -> None:
        user = self.scope.get("user")
        if not await self._user_is_staff(user):
            await self.close()
            return

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

        await self.send_json(
            {
                "type": "staff.init",
                "payload": {"status_counts": await self._status_counts()},
            }
        )

    async def disconnect(self, code: int) -> None:  # pragma: no cover - Channels API contract
        await self.channel_layer.group_discard(self.group_name, self.channel_name)
        await super().disconnect(code)

    async def application_status_changed(self, event: Dict[str, Any]) -> None:
        await self.send_json({"type": "staff.status_changed", "payload": event.get("payload", {})})

    @database_sync_to_async
    def _user_is_staff(self, user) -> bool:
        return user_has_any_role(user, STAFF_ROLES)

    @database_sync_to_async
    def _status_counts(self) -> Dict[str, int]:
        return build_status_counts(Application.objects.all())
