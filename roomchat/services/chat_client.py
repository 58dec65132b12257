"""
Session-scoped chat client.

Wires the session context, room directory, access controller, message
synchronizer and lifecycle manager for one signed-in user.
"""

from typing import Optional, Tuple

from roomchat.core.errors import BusinessLogicException
from roomchat.core.logging import clear_session_context, get_logger
from roomchat.database.change_feed import ChangeFeed
from roomchat.database.store import RelationalStore
from roomchat.schemas.membership import JoinResult
from roomchat.schemas.message import MessageResponse
from roomchat.schemas.room import RoomResponse
from roomchat.schemas.user import SessionUser
from roomchat.services.access_controller import AccessController
from roomchat.services.auth_service import AuthProvider, ProfileService, SessionContext
from roomchat.services.blob_service import BlobStore
from roomchat.services.message_sync import MessageStreamSynchronizer
from roomchat.services.room_directory import RoomDirectory
from roomchat.services.room_lifecycle import RoomLifecycleManager

logger = get_logger(__name__)


class ChatClient:
    """로그인 세션 단위 채팅 클라이언트"""

    def __init__(self, store: RelationalStore, feed: ChangeFeed, blob_store: BlobStore, provider: AuthProvider):
        self.store = store
        self.feed = feed
        self.blob_store = blob_store
        self.session = SessionContext(provider)
        self.profile = ProfileService(provider)
        self.access = AccessController(store)

        self.user: Optional[SessionUser] = None
        self.directory: Optional[RoomDirectory] = None
        self.synchronizer: Optional[MessageStreamSynchronizer] = None
        self.lifecycle: Optional[RoomLifecycleManager] = None

    def _require_started(self):
        if self.user is None:
            raise BusinessLogicException("Client is not started")

    async def start(self) -> Tuple[RoomResponse, ...]:
        """현재 사용자로 세션 시작 후 채팅방 목록 로드"""
        if self.user is not None:
            return self.directory.catalog

        user = await self.session.require_user()

        self.directory = RoomDirectory(self.store, self.feed, user)
        self.synchronizer = MessageStreamSynchronizer(self.store, self.feed, self.blob_store, user)
        self.lifecycle = RoomLifecycleManager(self.store, self.directory, self.synchronizer)
        self.user = user

        logger.info(f"Session started for user {user.id}")
        return await self.directory.start()

    async def create_room(self, name: str, password: str, max_users: Optional[int] = None) -> str:
        self._require_started()
        room_id = await self.directory.create_room(name, password, max_users)
        await self.directory.refresh()
        return room_id

    async def enter_room(self, room_id: str, password: str) -> JoinResult:
        """입장 확인 후 메시지 동기화 시작"""
        self._require_started()

        room = await self.directory.get_room(room_id)
        result = await self.access.join(room, password, self.user)
        await self.synchronizer.attach(room_id)
        return result

    async def leave_room(self):
        if self.synchronizer is not None:
            await self.synchronizer.detach()

    @property
    def messages(self) -> Tuple[MessageResponse, ...]:
        if self.synchronizer is None:
            return ()
        return self.synchronizer.messages

    async def sign_out(self):
        """동기화 해제 및 구독 정리"""
        if self.user is None:
            return

        await self.leave_room()
        await self.directory.stop()

        logger.info(f"Session ended for user {self.user.id}")
        clear_session_context()

        self.user = None
        self.directory = None
        self.synchronizer = None
        self.lifecycle = None
