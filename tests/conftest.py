import pytest
import pytest_asyncio
from datetime import datetime
from typing import AsyncGenerator, List, Optional

from roomchat.database.engine import create_engine, create_session_factory, init_db, close_db
from roomchat.database.change_feed import InMemoryChangeFeed
from roomchat.database.store import RelationalStore
from roomchat.schemas.room import RoomResponse
from roomchat.schemas.user import SessionUser
from roomchat.services.auth_service import AuthProvider
from roomchat.services.blob_service import LocalBlobStore
from roomchat.services.chat_client import ChatClient
from roomchat.utils.auth import get_password_hash


# 테스트용 인메모리 SQLite 데이터베이스 설정
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ROOM_PASSWORD = "secret123"


class FakeAuthProvider(AuthProvider):
    """테스트용 인증 제공자"""

    def __init__(self, user: Optional[SessionUser] = None):
        self.user = user
        self.error: Optional[Exception] = None
        self.email_updates: List[str] = []
        self.password_updates: List[str] = []

    async def current_user(self) -> Optional[SessionUser]:
        if self.error is not None:
            raise self.error
        return self.user

    async def update_email(self, new_email: str) -> None:
        if self.error is not None:
            raise self.error
        self.email_updates.append(new_email)

    async def update_password(self, new_password: str) -> None:
        if self.error is not None:
            raise self.error
        self.password_updates.append(new_password)


@pytest_asyncio.fixture
async def test_engine():
    """테스트용 비동기 데이터베이스 엔진 생성 (StaticPool)"""
    engine = create_engine(TEST_DATABASE_URL)

    # 테이블 생성
    await init_db(engine)

    yield engine

    # 정리
    await close_db(engine)


@pytest_asyncio.fixture
async def feed() -> AsyncGenerator[InMemoryChangeFeed, None]:
    """테스트용 인메모리 변경 피드"""
    change_feed = InMemoryChangeFeed()
    yield change_feed
    await change_feed.close()


@pytest_asyncio.fixture
async def store(test_engine, feed) -> RelationalStore:
    """테스트용 관계형 스토어"""
    return RelationalStore(create_session_factory(test_engine), feed)


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    """임시 디렉토리 기반 블롭 저장소"""
    return LocalBlobStore(
        root_dir=str(tmp_path),
        bucket="message-images",
        public_base_url="http://test/storage"
    )


@pytest.fixture
def user_a() -> SessionUser:
    """테스트용 사용자 A"""
    return SessionUser(id="user-a", email="alice@example.com")


@pytest.fixture
def user_b() -> SessionUser:
    """테스트용 사용자 B"""
    return SessionUser(id="user-b", email="bob@example.com")


@pytest.fixture
def user_c() -> SessionUser:
    """테스트용 사용자 C"""
    return SessionUser(id="user-c", email="carol@example.com")


@pytest.fixture
def auth_provider(user_a) -> FakeAuthProvider:
    """사용자 A로 로그인된 인증 제공자"""
    return FakeAuthProvider(user_a)


@pytest.fixture
def room_factory(store):
    """스토어에 채팅방을 직접 삽입하는 헬퍼"""
    async def _create(
        owner: SessionUser,
        name: str = "Lobby",
        password: str = ROOM_PASSWORD,
        max_users: int = 10,
        created_at: Optional[datetime] = None
    ) -> RoomResponse:
        row = {
            "name": name,
            "password_hash": get_password_hash(password),
            "max_users": max_users,
            "owner_id": owner.id,
            "owner_email": owner.email,
        }
        if created_at is not None:
            row["created_at"] = created_at
        inserted = await store.insert("rooms", row)
        return RoomResponse.model_validate(inserted)

    return _create


@pytest.fixture
def message_factory(store):
    """스토어에 텍스트 메시지를 직접 삽입하는 헬퍼"""
    async def _create(
        room_id: str,
        author: SessionUser,
        content: str,
        created_at: Optional[datetime] = None,
        message_id: Optional[str] = None
    ) -> dict:
        row = {
            "room_id": room_id,
            "author_id": author.id,
            "author_email": author.email,
            "content": content,
            "message_type": "text",
        }
        if created_at is not None:
            row["created_at"] = created_at
        if message_id is not None:
            row["id"] = message_id
        return await store.insert("messages", row)

    return _create


@pytest.fixture
def make_client(store, feed, blob_store):
    """사용자별 채팅 클라이언트 생성"""
    def _make(user: SessionUser) -> ChatClient:
        return ChatClient(store, feed, blob_store, FakeAuthProvider(user))

    return _make
