from .engine import Base, create_engine, create_session_factory, init_db, close_db, check_connection
from .change_feed import ChangeFeed, InMemoryChangeFeed, RedisChangeFeed, Subscription, create_change_feed
from .store import RelationalStore

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "init_db",
    "close_db",
    "check_connection",
    "ChangeFeed",
    "InMemoryChangeFeed",
    "RedisChangeFeed",
    "Subscription",
    "create_change_feed",
    "RelationalStore",
]
