"""
Room Chat Configuration

환경 변수를 통한 설정 관리
"""

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    """Room Chat 클라이언트 설정"""

    # Application
    app_name: str = "Room Chat"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./roomchat.db"

    # Change feed - "memory" (same process) or "redis" (pub/sub)
    change_feed_backend: str = "memory"
    redis_url: str = "redis://localhost:6379"
    redis_channel_prefix: str = "roomchat:changes"

    # Blob storage
    upload_dir: str = "uploads"
    blob_bucket: str = "message-images"
    public_base_url: str = "http://localhost:8000/storage"
    max_upload_size: int = 5 * 1024 * 1024  # 5MB

    # Rooms
    default_max_users: int = 10
    min_room_users: int = 1
    max_room_users: int = 100
    delete_confirmation_token: str = "DELETE"

    # Messages
    image_placeholder: str = "Sent an image"
    max_message_length: int = 5000

    # Room password hashing (passlib scheme)
    password_hash_scheme: str = "pbkdf2_sha256"

    # Logging
    log_dir: str = "logs"
    log_to_file: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "ROOMCHAT_"
        case_sensitive = False
        extra = "ignore"  # 추가 환경변수 무시


settings = Settings()
