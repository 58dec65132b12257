"""
Access controller service.

Password-gated, capacity-bounded joining and membership bookkeeping.

The capacity check is count-then-insert against the store and is not
linearizable: two joiners racing for the last seat can both pass the count
and both be inserted. The store has no atomic check-and-insert for this, so
the room can end up over max_users by the number of concurrent winners.
"""

from typing import List, Optional

from roomchat.core.errors import ConflictException, incorrect_password_error, room_full_error
from roomchat.core.logging import get_logger, log_access_event, log_security_event
from roomchat.database.store import RelationalStore
from roomchat.schemas.membership import JoinResult, MembershipResponse
from roomchat.schemas.room import RoomResponse
from roomchat.schemas.user import SessionUser
from roomchat.utils.auth import verify_password

logger = get_logger(__name__)


class AccessController:
    """채팅방 입장 제어"""

    def __init__(self, store: RelationalStore):
        self.store = store

    async def find_membership(self, room_id: str, user_id: str) -> Optional[MembershipResponse]:
        rows = await self.store.query("room_members", where={"room_id": room_id, "user_id": user_id})
        return MembershipResponse.model_validate(rows[0]) if rows else None

    async def is_member(self, room: RoomResponse, user: SessionUser) -> bool:
        """멤버 여부 (소유자는 항상 멤버)"""
        if room.is_owned_by(user.id):
            return True
        return await self.find_membership(room.id, user.id) is not None

    async def member_count(self, room_id: str) -> int:
        """멤버십 행 수 (소유자는 행이 없으므로 포함되지 않음)"""
        return await self.store.count("room_members", where={"room_id": room_id})

    async def list_members(self, room_id: str) -> List[MembershipResponse]:
        rows = await self.store.query("room_members", where={"room_id": room_id}, order_by=[("joined_at", False)])
        return [MembershipResponse.model_validate(row) for row in rows]

    async def join(self, room: RoomResponse, supplied_password: str, user: SessionUser) -> JoinResult:
        """
        채팅방 입장

        1. 비밀번호 확인 (틀리면 어떤 멤버십 조회/생성도 하지 않음)
        2. 기존 멤버(또는 소유자)면 정원과 무관하게 바로 성공
        3. 정원 확인 (count >= max_users 이면 실패)
        4. 멤버십 생성
        """
        if not supplied_password or not verify_password(supplied_password, room.password_hash):
            log_security_event(logger, "room_password_mismatch", severity="low", user_id=user.id, room_id=room.id)
            raise incorrect_password_error()

        if room.is_owned_by(user.id) or await self.find_membership(room.id, user.id) is not None:
            log_access_event(logger, "rejoin", room.id, user_id=user.id)
            return JoinResult.ALREADY_MEMBER

        count = await self.member_count(room.id)
        if count >= room.max_users:
            log_access_event(logger, "join", room.id, user_id=user.id, success=False, member_count=count)
            raise room_full_error(room.id, room.max_users)

        try:
            await self.store.insert("room_members", {"room_id": room.id, "user_id": user.id})
        except ConflictException:
            # 같은 사용자의 동시 입장이 먼저 성공한 경우만 성공으로 취급
            if await self.find_membership(room.id, user.id) is None:
                raise
            log_access_event(logger, "rejoin", room.id, user_id=user.id, concurrent=True)
            return JoinResult.ALREADY_MEMBER

        log_access_event(logger, "join", room.id, user_id=user.id, member_count=count + 1)
        return JoinResult.JOINED
