"""
Room directory service.

Owns the in-memory room catalog for a session: listing, filtering,
creation and change-driven refresh.
"""

from typing import Iterable, List, Optional, Tuple

from roomchat.core.config import settings
from roomchat.core.errors import room_not_found_error
from roomchat.core.logging import get_logger, log_access_event
from roomchat.core.validators import validate_room_creation
from roomchat.database.change_feed import ChangeFeed, Subscription
from roomchat.database.store import RelationalStore
from roomchat.domain.events import RowChanged, ALL_EVENTS
from roomchat.schemas.room import RoomResponse
from roomchat.schemas.user import SessionUser
from roomchat.utils.auth import get_password_hash

logger = get_logger(__name__)


# =============================================================================
# Ordering / Filtering
# =============================================================================

def sort_rooms(rooms: Iterable[RoomResponse], user_id: str) -> List[RoomResponse]:
    """내 채팅방 먼저, 그룹 내에서는 생성일시 내림차순"""
    by_newest = sorted(rooms, key=lambda room: room.created_at, reverse=True)
    # sorted는 안정 정렬이므로 그룹 내 최신순이 유지됨
    return sorted(by_newest, key=lambda room: room.owner_id != user_id)


def filter_rooms(query: str, rooms: Iterable[RoomResponse], user_id: str) -> List[RoomResponse]:
    """ID 또는 이름 부분 일치 (대소문자 무시) 후 동일 정렬 적용"""
    needle = (query or "").strip().lower()
    if not needle:
        return sort_rooms(rooms, user_id)

    matched = [
        room for room in rooms
        if needle in room.id.lower() or needle in room.name.lower()
    ]
    return sort_rooms(matched, user_id)


# =============================================================================
# Room Directory
# =============================================================================

class RoomDirectory:
    """채팅방 목록 (세션 단위 카탈로그)"""

    def __init__(self, store: RelationalStore, feed: ChangeFeed, user: SessionUser):
        self.store = store
        self.feed = feed
        self.user = user
        self._catalog: Tuple[RoomResponse, ...] = ()
        self._generation = 0
        self._subscription: Optional[Subscription] = None

    @property
    def catalog(self) -> Tuple[RoomResponse, ...]:
        """현재 카탈로그 (정렬 완료, 불변 스냅샷)"""
        return self._catalog

    async def start(self) -> Tuple[RoomResponse, ...]:
        """카탈로그 로드 및 rooms 변경 구독"""
        if self._subscription is None:
            self._subscription = await self.feed.subscribe(
                "rooms",
                event_kinds=ALL_EVENTS,
                filters=None,
                on_event=self._on_rooms_changed
            )
        return await self.refresh()

    async def stop(self):
        """rooms 변경 구독 해제"""
        if self._subscription is not None:
            await self.feed.unsubscribe(self._subscription)
            self._subscription = None

    async def _on_rooms_changed(self, event: RowChanged):
        logger.debug(f"Room catalog change: {event.event_type}")
        await self.refresh()

    async def list_rooms(self) -> List[RoomResponse]:
        """전체 채팅방 조회 (정렬 적용)"""
        rows = await self.store.query("rooms", order_by=[("created_at", True)])
        return sort_rooms((RoomResponse.model_validate(row) for row in rows), self.user.id)

    async def refresh(self) -> Tuple[RoomResponse, ...]:
        """카탈로그 전체 재조회 후 한 번에 교체"""
        self._generation += 1
        generation = self._generation

        rooms = tuple(await self.list_rooms())

        # 더 최근에 시작된 refresh가 있으면 오래된 결과는 버림
        if generation == self._generation:
            self._catalog = rooms
        else:
            logger.debug(f"Discarding stale catalog refresh (generation {generation})")
        return self._catalog

    def filter(self, query: str, catalog: Optional[Iterable[RoomResponse]] = None) -> List[RoomResponse]:
        """카탈로그 검색"""
        return filter_rooms(query, self._catalog if catalog is None else catalog, self.user.id)

    async def get_room(self, room_id: str) -> RoomResponse:
        """채팅방 조회 (카탈로그 우선, 없으면 스토어)"""
        for room in self._catalog:
            if room.id == room_id:
                return room

        rows = await self.store.query("rooms", where={"id": room_id})
        if not rows:
            raise room_not_found_error(room_id)
        return RoomResponse.model_validate(rows[0])

    async def create_room(self, name: str, password: str, max_users: Optional[int] = None) -> str:
        """채팅방 생성 후 ID 반환 (생성자는 소유자이자 암묵적 멤버)"""
        if max_users is None:
            max_users = settings.default_max_users

        name, password, max_users = validate_room_creation(name, password, max_users)

        row = await self.store.insert("rooms", {
            "name": name,
            "password_hash": get_password_hash(password),
            "max_users": max_users,
            "owner_id": self.user.id,
            "owner_email": self.user.email,
        })

        log_access_event(logger, "room_created", row["id"], user_id=self.user.id, max_users=max_users)
        return row["id"]
