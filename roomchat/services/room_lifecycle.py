"""
Room lifecycle manager.

Owner-only settings changes and room deletion.

Deletion runs three independent store calls (messages, memberships, room)
with no transaction around them. A failure part-way leaves the earlier
steps applied; the raised error lists which ones completed.
"""

from typing import List, Optional

from roomchat.core.config import settings
from roomchat.core.errors import ExternalServiceException, RoomChatException, not_room_owner_error
from roomchat.core.logging import get_logger, log_access_event, log_security_event
from roomchat.core.validators import Validator, validate_room_settings
from roomchat.database.store import RelationalStore
from roomchat.schemas.room import RoomResponse
from roomchat.services.message_sync import MessageStreamSynchronizer
from roomchat.services.room_directory import RoomDirectory
from roomchat.utils.auth import get_password_hash

logger = get_logger(__name__)

# 삭제 순서 (테이블, 조건 컬럼)
DELETE_STEPS = (
    ("messages", "room_id"),
    ("room_members", "room_id"),
    ("rooms", "id"),
)


class RoomLifecycleManager:
    """채팅방 설정 변경 및 삭제 (소유자 전용)"""

    def __init__(
        self,
        store: RelationalStore,
        directory: RoomDirectory,
        synchronizer: Optional[MessageStreamSynchronizer] = None
    ):
        self.store = store
        self.directory = directory
        self.synchronizer = synchronizer

    @property
    def user(self):
        return self.directory.user

    async def _get_owned_room(self, room_id: str) -> RoomResponse:
        room = await self.directory.get_room(room_id)
        if not room.is_owned_by(self.user.id):
            log_security_event(logger, "non_owner_room_management", severity="medium", user_id=self.user.id, room_id=room_id)
            raise not_room_owner_error(room_id)
        return room

    async def update_settings(self, room_id: str, max_users: int, password: Optional[str] = None) -> RoomResponse:
        """최대 인원 / 비밀번호 변경 (빈 비밀번호는 기존 값 유지)"""
        max_users, password = validate_room_settings(max_users, password)

        await self._get_owned_room(room_id)

        patch = {"max_users": max_users}
        if password is not None:
            patch["password_hash"] = get_password_hash(password)

        await self.store.update("rooms", where={"id": room_id}, patch=patch)
        log_access_event(
            logger, "room_settings_updated", room_id,
            user_id=self.user.id,
            max_users=max_users,
            password_changed=password is not None
        )

        await self.directory.refresh()
        return await self.directory.get_room(room_id)

    async def delete_room(self, room_id: str, confirmation: str) -> None:
        """채팅방 삭제 (메시지 -> 멤버십 -> 채팅방 순서, 롤백 없음)"""
        Validator.validate_confirmation(confirmation, settings.delete_confirmation_token)
        await self._get_owned_room(room_id)

        completed: List[str] = []
        for table, column in DELETE_STEPS:
            try:
                await self.store.delete(table, where={column: room_id})
            except RoomChatException as e:
                logger.error(
                    f"Room {room_id} deletion stopped at {table} "
                    f"(completed: {', '.join(completed) or 'none'}): {e}"
                )
                raise ExternalServiceException(
                    "Relational store",
                    f"Failed to delete {table} for room {room_id}",
                    details={"room_id": room_id, "completed_steps": completed, "failed_step": table}
                ) from e
            completed.append(table)

        log_access_event(logger, "room_deleted", room_id, user_id=self.user.id)

        if self.synchronizer is not None and self.synchronizer.room_id == room_id:
            await self.synchronizer.detach()

        await self.directory.refresh()
