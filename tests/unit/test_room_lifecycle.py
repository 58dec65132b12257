import pytest
from unittest.mock import patch

from roomchat.core.errors import (
    AuthorizationException,
    ExternalServiceException,
    ResourceNotFoundException,
    ValidationException,
)
from roomchat.services.message_sync import MessageStreamSynchronizer, SyncState
from roomchat.services.room_directory import RoomDirectory
from roomchat.services.room_lifecycle import RoomLifecycleManager
from roomchat.utils.auth import verify_password

ROOM_PASSWORD = "secret123"


@pytest.fixture
def owner_directory(store, feed, user_a):
    return RoomDirectory(store, feed, user_a)


@pytest.fixture
def owner_sync(store, feed, blob_store, user_a):
    return MessageStreamSynchronizer(store, feed, blob_store, user_a)


@pytest.fixture
def lifecycle(store, owner_directory, owner_sync):
    return RoomLifecycleManager(store, owner_directory, owner_sync)


@pytest.fixture
def stranger_lifecycle(store, feed, user_b):
    return RoomLifecycleManager(store, RoomDirectory(store, feed, user_b))


class TestUpdateSettings:
    """채팅방 설정 변경 테스트"""

    @pytest.mark.asyncio
    async def test_update_max_users_keeps_password(self, lifecycle, store, user_a, room_factory):
        room = await room_factory(user_a, max_users=10)

        updated = await lifecycle.update_settings(room.id, 25, password="  ")

        assert updated.max_users == 25
        rows = await store.query("rooms", where={"id": room.id})
        assert rows[0]["password_hash"] == room.password_hash

    @pytest.mark.asyncio
    async def test_update_password_rehashes(self, lifecycle, store, user_a, room_factory):
        room = await room_factory(user_a)

        await lifecycle.update_settings(room.id, 10, password="new-pass")

        rows = await store.query("rooms", where={"id": room.id})
        assert verify_password("new-pass", rows[0]["password_hash"])
        assert not verify_password(ROOM_PASSWORD, rows[0]["password_hash"])

    @pytest.mark.asyncio
    async def test_directory_is_refreshed(self, lifecycle, owner_directory, user_a, room_factory):
        room = await room_factory(user_a, max_users=10)
        await owner_directory.refresh()

        await lifecycle.update_settings(room.id, 3)

        assert owner_directory.catalog[0].max_users == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_users", [0, 101])
    async def test_bounds(self, lifecycle, store, user_a, room_factory, max_users):
        room = await room_factory(user_a, max_users=10)

        with pytest.raises(ValidationException):
            await lifecycle.update_settings(room.id, max_users)

        rows = await store.query("rooms", where={"id": room.id})
        assert rows[0]["max_users"] == 10

    @pytest.mark.asyncio
    async def test_non_owner_rejected(self, stranger_lifecycle, user_a, room_factory):
        room = await room_factory(user_a)

        with pytest.raises(AuthorizationException):
            await stranger_lifecycle.update_settings(room.id, 5)


class TestDeleteRoom:
    """채팅방 삭제 테스트"""

    @pytest.mark.asyncio
    async def test_delete_cascades_in_order(self, lifecycle, store, user_a, user_b, room_factory, message_factory):
        room = await room_factory(user_a)
        await store.insert("room_members", {"room_id": room.id, "user_id": user_b.id})
        await message_factory(room.id, user_b, "bye")

        with patch.object(store, "delete", wraps=store.delete) as delete:
            await lifecycle.delete_room(room.id, "DELETE")

        assert [c.args[0] for c in delete.call_args_list] == ["messages", "room_members", "rooms"]
        assert await store.count("rooms") == 0
        assert await store.count("room_members") == 0
        assert await store.count("messages") == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("confirmation", ["", "delete", "DELETE ", "yes"])
    async def test_confirmation_required(self, lifecycle, store, user_a, room_factory, confirmation):
        room = await room_factory(user_a)

        with pytest.raises(ValidationException):
            await lifecycle.delete_room(room.id, confirmation)

        assert await store.count("rooms") == 1

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, stranger_lifecycle, store, user_a, room_factory):
        room = await room_factory(user_a)

        with pytest.raises(AuthorizationException):
            await stranger_lifecycle.delete_room(room.id, "DELETE")

        assert await store.count("rooms") == 1

    @pytest.mark.asyncio
    async def test_partial_failure_reports_completed_steps(self, lifecycle, store, user_a, user_b, room_factory, message_factory):
        room = await room_factory(user_a)
        await store.insert("room_members", {"room_id": room.id, "user_id": user_b.id})
        await message_factory(room.id, user_b, "bye")
        original_delete = store.delete

        async def fail_on_members(table, where):
            if table == "room_members":
                raise ExternalServiceException("Relational store", "connection lost")
            return await original_delete(table, where)

        with patch.object(store, "delete", side_effect=fail_on_members):
            with pytest.raises(ExternalServiceException) as exc_info:
                await lifecycle.delete_room(room.id, "DELETE")

        assert exc_info.value.details["completed_steps"] == ["messages"]
        assert exc_info.value.details["failed_step"] == "room_members"

        # 이미 완료된 단계는 되돌리지 않음
        assert await store.count("messages") == 0
        assert await store.count("room_members") == 1
        assert await store.count("rooms") == 1

    @pytest.mark.asyncio
    async def test_delete_detaches_synchronizer_and_refreshes(self, lifecycle, owner_directory, owner_sync, feed, user_a, room_factory):
        room = await room_factory(user_a)
        await owner_directory.start()
        await owner_sync.attach(room.id)

        await lifecycle.delete_room(room.id, "DELETE")

        assert owner_sync.state == SyncState.DETACHED
        assert owner_directory.catalog == ()
        with pytest.raises(ResourceNotFoundException):
            await owner_directory.get_room(room.id)

        await owner_directory.stop()
        assert feed.subscription_count == 0
