import pytest

from roomchat.core.errors import AuthorizationException, BusinessLogicException, CapacityException
from roomchat.schemas.membership import JoinResult
from roomchat.schemas.upload import UploadedImage


class TestFullChatFlow:
    """전체 채팅 플로우 통합 테스트"""

    @pytest.mark.asyncio
    async def test_lobby_scenario(self, make_client, store, user_a, user_b, user_c):
        """
        1. A가 "Lobby" 생성 (비밀번호 "p", 최대 2명)
        2. B가 올바른 비밀번호로 입장 -> 멤버십 1개 (소유자는 행 없음)
        3. C가 틀린 비밀번호로 입장 -> 권한 에러, 멤버십 수 변화 없음
        """
        alice = make_client(user_a)
        bob = make_client(user_b)
        carol = make_client(user_c)
        for client in (alice, bob, carol):
            await client.start()

        room_id = await alice.create_room("Lobby", "p", 2)

        # 모든 클라이언트의 카탈로그가 변경 피드로 갱신됨
        for client in (alice, bob, carol):
            assert [room.id for room in client.directory.catalog] == [room_id]

        assert await bob.enter_room(room_id, "p") == JoinResult.JOINED
        assert await alice.access.member_count(room_id) == 1

        with pytest.raises(AuthorizationException):
            await carol.enter_room(room_id, "wrong")
        assert await alice.access.member_count(room_id) == 1
        assert carol.synchronizer.room_id is None

    @pytest.mark.asyncio
    async def test_conversation_and_room_deletion(self, make_client, user_a, user_b, user_c):
        alice = make_client(user_a)
        bob = make_client(user_b)
        carol = make_client(user_c)
        for client in (alice, bob, carol):
            await client.start()

        room_id = await alice.create_room("Lobby", "p", 1)

        assert await alice.enter_room(room_id, "p") == JoinResult.ALREADY_MEMBER
        assert await bob.enter_room(room_id, "p") == JoinResult.JOINED
        with pytest.raises(CapacityException):
            await carol.enter_room(room_id, "p")

        await alice.synchronizer.post("hello bob")
        await bob.synchronizer.post("   ")
        await bob.synchronizer.post_image(
            UploadedImage(filename="cat.png", content_type="image/png", data=b"png-bytes")
        )

        for client in (alice, bob):
            assert [m.is_image for m in client.messages] == [False, True]
            assert client.messages[0].payload.content == "hello bob"

        await alice.lifecycle.delete_room(room_id, "DELETE")

        assert alice.messages == ()
        for client in (alice, bob, carol):
            assert client.directory.catalog == ()

        # B는 직접 나가기 전까지 삭제된 채팅방에 연결된 상태
        assert bob.synchronizer.room_id == room_id
        await bob.leave_room()
        with pytest.raises(BusinessLogicException):
            await bob.synchronizer.post("anyone?")

    @pytest.mark.asyncio
    async def test_sign_out_releases_subscriptions(self, make_client, feed, user_a, user_b):
        alice = make_client(user_a)
        await alice.start()
        room_id = await alice.create_room("Lobby", "p")
        await alice.enter_room(room_id, "p")

        assert feed.subscription_count == 2

        await alice.sign_out()

        assert feed.subscription_count == 0
        assert alice.user is None
        with pytest.raises(BusinessLogicException):
            await alice.create_room("Another", "p")
