"""
Message stream synchronizer.

Keeps the local message log of the attached room equal to the remote log:
a snapshot ordered by (created_at, id) followed by live insert events.

Attach sequence:
    1. subscribe to inserts filtered by room id (events are buffered)
    2. fetch the snapshot and install it as a whole
    3. drain the buffer, skipping ids already present
    4. switch to LIVE and append new events directly

Posting never touches the local log; the author's own message arrives
through the change feed like everybody else's.
"""

import enum
import mimetypes
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from roomchat.core.config import settings
from roomchat.core.errors import BusinessLogicException, ExternalServiceException, RoomChatException
from roomchat.core.logging import get_logger, log_file_operation, log_realtime_event, set_session_context
from roomchat.core.validators import Validator, validate_image_upload
from roomchat.database.change_feed import ChangeFeed, Subscription, FEED_SERVICE
from roomchat.database.store import RelationalStore
from roomchat.domain.events import RowChanged, EVENT_INSERT
from roomchat.schemas.message import ImagePayload, MessageResponse, TextPayload, build_message_row
from roomchat.schemas.upload import UploadedImage
from roomchat.schemas.user import SessionUser
from roomchat.services.blob_service import BlobStore, generate_object_path

logger = get_logger(__name__)

MessageListener = Callable[[MessageResponse], None]


def extension_for(content_type: str) -> str:
    """미디어 타입에서 파일 확장자 추출 (image/svg+xml -> svg)"""
    guessed = mimetypes.guess_extension(content_type.split(";", 1)[0].strip().lower())
    if guessed:
        return guessed.lstrip(".")
    subtype = content_type.split("/", 1)[-1]
    return subtype.split("+", 1)[0].split(";", 1)[0].strip().lower()


class SyncState(str, enum.Enum):
    DETACHED = "detached"
    LOADING = "loading"
    LIVE = "live"


class MessageStreamSynchronizer:
    """채팅방 메시지 로그 동기화 (스냅샷 + 실시간 삽입 이벤트)"""

    def __init__(self, store: RelationalStore, feed: ChangeFeed, blob_store: BlobStore, user: SessionUser):
        self.store = store
        self.feed = feed
        self.blob_store = blob_store
        self.user = user

        self._state = SyncState.DETACHED
        self._room_id: Optional[str] = None
        self._subscription: Optional[Subscription] = None
        self._log: List[MessageResponse] = []
        self._seen_ids: Set[str] = set()
        self._pending: List[RowChanged] = []
        self._listeners: List[MessageListener] = []

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def room_id(self) -> Optional[str]:
        return self._room_id

    @property
    def messages(self) -> Tuple[MessageResponse, ...]:
        """현재 메시지 로그 (읽기 전용)"""
        return tuple(self._log)

    def add_listener(self, listener: MessageListener):
        """메시지 추가 알림 등록"""
        self._listeners.append(listener)

    def remove_listener(self, listener: MessageListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    # =========================================================================
    # Attach / Detach
    # =========================================================================

    async def attach(self, room_id: str) -> Tuple[MessageResponse, ...]:
        """채팅방 연결 (이전 채팅방은 먼저 해제)"""
        await self.detach()

        self._state = SyncState.LOADING
        self._room_id = room_id
        self._pending = []
        set_session_context(user_id=self.user.id, room_id=room_id)

        subscription: Optional[Subscription] = None

        async def on_insert(event: RowChanged):
            await self._on_insert(subscription, event)

        try:
            subscription = await self.feed.subscribe(
                "messages",
                event_kinds={EVENT_INSERT},
                filters={"room_id": room_id},
                on_event=on_insert
            )
            self._subscription = subscription

            rows = await self.store.query(
                "messages",
                where={"room_id": room_id},
                order_by=[("created_at", False), ("id", False)]
            )
        except Exception:
            if self._subscription is subscription:
                await self.detach()
            raise

        # 스냅샷 조회 중 다른 채팅방으로 전환된 경우
        if self._subscription is not subscription:
            logger.debug(f"Attach to room {room_id} superseded during snapshot load")
            return self.messages

        self._log = []
        self._seen_ids = set()
        for row in rows:
            self._append_row(row, notify=False)

        pending, self._pending = self._pending, []
        for event in pending:
            self._append_row(event.new)

        self._state = SyncState.LIVE
        log_realtime_event(
            logger, "attached", "messages",
            room_id=room_id,
            snapshot_size=len(rows),
            buffered_events=len(pending)
        )
        return self.messages

    async def detach(self):
        """구독 해제 및 로그 폐기"""
        subscription, self._subscription = self._subscription, None
        room_id = self._room_id

        self._state = SyncState.DETACHED
        self._room_id = None
        self._log = []
        self._seen_ids = set()
        self._pending = []

        if subscription is not None:
            await self.feed.unsubscribe(subscription)
            log_realtime_event(logger, "detached", "messages", room_id=room_id)

    # =========================================================================
    # Live events
    # =========================================================================

    async def _on_insert(self, subscription: Optional[Subscription], event: RowChanged):
        if subscription is None or subscription is not self._subscription:
            logger.debug("Dropping event from stale subscription")
            return

        if str(event.new.get("room_id")) != self._room_id:
            return

        if self._state == SyncState.LOADING:
            self._pending.append(event)
            return

        self._append_row(event.new)

    def _append_row(self, row: Dict[str, Any], notify: bool = True) -> bool:
        """ID 중복 확인 후 로그 끝에 추가"""
        message_id = row.get("id")
        if message_id is None or message_id in self._seen_ids:
            return False

        try:
            message = MessageResponse.from_row(row)
        except ValueError as e:
            logger.warning(f"Dropping malformed message row {message_id}: {e}")
            return False

        self._seen_ids.add(message.id)
        self._log.append(message)

        if notify:
            self._notify(message)
        return True

    def _notify(self, message: MessageResponse):
        """리스너 호출 (리스너 실패가 로그 동기화를 멈추지 않음)"""
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as e:
                logger.error(
                    f"[Listener Error] Room: {self._room_id}, Message: {message.id}, Error: {e}",
                    exc_info=True
                )

    # =========================================================================
    # Posting
    # =========================================================================

    def _require_room(self) -> str:
        if self._state == SyncState.DETACHED or self._room_id is None:
            raise BusinessLogicException("Not attached to a room")
        return self._room_id

    async def post(self, text: str) -> Optional[MessageResponse]:
        """텍스트 메시지 전송 (공백 메시지는 무시)"""
        room_id = self._require_room()

        if not text or not text.strip():
            return None

        Validator.validate_message_content(text)

        row = await self.store.insert(
            "messages",
            build_message_row(room_id, self.user.id, self.user.email, TextPayload(content=text))
        )
        return MessageResponse.from_row(row)

    async def post_image(self, image: UploadedImage) -> MessageResponse:
        """이미지 업로드 후 이미지 메시지 전송"""
        room_id = self._require_room()

        validate_image_upload(image.content_type, image.size)

        extension = image.extension or extension_for(image.content_type)
        path = generate_object_path(self.user.id, extension)

        await self.blob_store.upload(path, image.data, image.content_type)
        url = self.blob_store.public_url(path)

        payload = ImagePayload(url=url, placeholder=settings.image_placeholder)
        try:
            row = await self.store.insert(
                "messages",
                build_message_row(room_id, self.user.id, self.user.email, payload)
            )
        except RoomChatException as e:
            # 피드 발행 실패는 커밋 이후이므로 메시지 행은 이미 존재
            if not (isinstance(e, ExternalServiceException) and e.service == FEED_SERVICE):
                log_file_operation(logger, "orphaned", path, user_id=self.user.id, file_size=image.size, room_id=room_id)
            raise

        return MessageResponse.from_row(row)
