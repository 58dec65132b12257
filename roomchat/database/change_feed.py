"""
실시간 변경 피드

스토어의 insert/update/delete 이벤트를 구독자에게 전달합니다.
구독은 명시적인 Subscription 객체로 관리되며, 구독을 만든 컴포넌트가 해제 책임을 가집니다.

- InMemoryChangeFeed: 같은 프로세스 내 전달 (기본값, 테스트용)
- RedisChangeFeed: Redis Pub/Sub 채널(테이블별)로 전달
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from roomchat.core.config import settings
from roomchat.core.errors import ExternalServiceException
from roomchat.core.logging import get_logger, log_realtime_event
from roomchat.domain.events import RowChanged, ALL_EVENTS

logger = get_logger(__name__)

EventHandler = Callable[[RowChanged], Awaitable[None]]

FEED_SERVICE = "Change feed"


class Subscription:
    """변경 피드 구독 핸들"""

    def __init__(
        self,
        table: str,
        event_kinds: Iterable[str],
        filters: Optional[Dict[str, Any]],
        handler: EventHandler
    ):
        self.id = uuid.uuid4().hex
        self.table = table
        self.event_kinds = frozenset(event_kinds)
        self.filters = dict(filters or {})
        self.handler = handler
        self.active = True

    def accepts(self, event: RowChanged) -> bool:
        """이 구독으로 전달할 이벤트인지 확인"""
        return (
            self.active
            and event.table == self.table
            and event.event_type in self.event_kinds
            and event.matches(self.filters)
        )

    def __repr__(self):
        return f"<Subscription(id={self.id}, table={self.table}, filters={self.filters})>"


class ChangeFeed(ABC):
    """변경 피드 인터페이스"""

    @abstractmethod
    async def subscribe(
        self,
        table: str,
        event_kinds: Iterable[str] = ALL_EVENTS,
        filters: Optional[Dict[str, Any]] = None,
        on_event: Optional[EventHandler] = None
    ) -> Subscription:
        ...

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        ...

    @abstractmethod
    async def publish(self, event: RowChanged) -> None:
        ...

    async def close(self) -> None:
        """모든 구독 해제"""

    async def _dispatch(self, subscription: Subscription, event: RowChanged):
        """구독자 핸들러 호출 (핸들러 실패가 발행자나 다른 구독자에게 전파되지 않음)"""
        try:
            await subscription.handler(event)
        except Exception as e:
            logger.error(
                f"[Event Handler Error] "
                f"Subscription: {subscription.id}, "
                f"Table: {event.table}, "
                f"Event: {event.event_type}, "
                f"Error: {e}",
                exc_info=True
            )


class InMemoryChangeFeed(ChangeFeed):
    """같은 이벤트 루프 안에서 구독자에게 바로 전달하는 변경 피드"""

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}

    async def subscribe(
        self,
        table: str,
        event_kinds: Iterable[str] = ALL_EVENTS,
        filters: Optional[Dict[str, Any]] = None,
        on_event: Optional[EventHandler] = None
    ) -> Subscription:
        if on_event is None:
            raise ValueError("on_event handler is required")

        subscription = Subscription(table, event_kinds, filters, on_event)
        self._subscriptions[subscription.id] = subscription
        log_realtime_event(logger, "subscribed", table, subscription_id=subscription.id)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if self._subscriptions.pop(subscription.id, None) is not None:
            log_realtime_event(logger, "unsubscribed", subscription.table, subscription_id=subscription.id)

    async def publish(self, event: RowChanged) -> None:
        # 전달 도중 구독이 추가/해제될 수 있으므로 스냅샷으로 순회
        for subscription in list(self._subscriptions.values()):
            if subscription.accepts(event):
                await self._dispatch(subscription, event)

    async def close(self) -> None:
        for subscription in list(self._subscriptions.values()):
            await self.unsubscribe(subscription)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)


class RedisChangeFeed(ChangeFeed):
    """Redis Pub/Sub 기반 변경 피드 (테이블별 채널)"""

    def __init__(self, client: Optional[redis.Redis] = None, channel_prefix: Optional[str] = None):
        self.client = client or redis.from_url(
            settings.redis_url,
            decode_responses=True,  # 자동으로 bytes를 string으로 디코딩
            encoding='utf-8'
        )
        self.channel_prefix = channel_prefix or settings.redis_channel_prefix
        self._listeners: Dict[str, Tuple[Any, asyncio.Task]] = {}

    def channel_for(self, table: str) -> str:
        return f"{self.channel_prefix}:{table}"

    async def publish(self, event: RowChanged) -> None:
        try:
            await self.client.publish(self.channel_for(event.table), event.to_json())
        except RedisError as e:
            logger.error(f"Failed to publish change event on {event.table}: {e}")
            raise ExternalServiceException(FEED_SERVICE, str(e)) from e

    async def subscribe(
        self,
        table: str,
        event_kinds: Iterable[str] = ALL_EVENTS,
        filters: Optional[Dict[str, Any]] = None,
        on_event: Optional[EventHandler] = None
    ) -> Subscription:
        if on_event is None:
            raise ValueError("on_event handler is required")

        subscription = Subscription(table, event_kinds, filters, on_event)
        pubsub = self.client.pubsub()
        try:
            await pubsub.subscribe(self.channel_for(table))
        except RedisError as e:
            await pubsub.aclose()
            raise ExternalServiceException(FEED_SERVICE, str(e)) from e

        # 백그라운드 태스크로 이벤트 수신
        task = asyncio.create_task(self._listen(subscription, pubsub))
        self._listeners[subscription.id] = (pubsub, task)

        log_realtime_event(logger, "subscribed", table, subscription_id=subscription.id, backend="redis")
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        listener = self._listeners.pop(subscription.id, None)
        if listener is None:
            return

        pubsub, task = listener
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

        try:
            await pubsub.unsubscribe()
        finally:
            await pubsub.aclose()

        log_realtime_event(logger, "unsubscribed", subscription.table, subscription_id=subscription.id, backend="redis")

    async def _listen(self, subscription: Subscription, pubsub):
        """채널 수신 루프"""
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue

                try:
                    event = RowChanged.from_json(message["data"])
                except (ValueError, TypeError, KeyError) as e:
                    logger.warning(f"Dropping malformed change event on {subscription.table}: {e}")
                    continue

                if subscription.accepts(event):
                    await self._dispatch(subscription, event)

        except asyncio.CancelledError:
            logger.debug(f"Listener cancelled: {subscription.id}")
            raise

        except RedisError as e:
            logger.error(f"[Listener Error] {subscription.id}: {e}")

    async def close(self) -> None:
        for subscription_id in list(self._listeners):
            pubsub, task = self._listeners.pop(subscription_id)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            await pubsub.aclose()
        await self.client.aclose()


def create_change_feed(backend: Optional[str] = None) -> ChangeFeed:
    """설정에 따라 변경 피드 생성"""
    backend = (backend or settings.change_feed_backend).lower()

    if backend == "memory":
        return InMemoryChangeFeed()
    if backend == "redis":
        return RedisChangeFeed()
    raise ValueError(f"Unknown change feed backend: {backend}")
