"""
Blob storage service layer for uploaded message images.

Handles object path generation, uploads and public URL resolution.
"""

import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import aiofiles

from roomchat.core.config import settings
from roomchat.core.errors import ExternalServiceException
from roomchat.core.logging import get_logger, log_file_operation

logger = get_logger(__name__)


# =============================================================================
# Path Utilities
# =============================================================================

def generate_object_path(owner_id: str, extension: str) -> str:
    """작성자 ID 네임스페이스 아래 임의 파일명 경로 생성 (<owner_id>/<random>.<ext>)"""
    extension = extension.lower().lstrip(".")
    return f"{owner_id}/{uuid.uuid4().hex}.{extension}"


# =============================================================================
# Blob Stores
# =============================================================================

class BlobStore(ABC):
    """외부 블롭 저장소 인터페이스"""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        ...

    @abstractmethod
    def public_url(self, path: str) -> str:
        ...


class LocalBlobStore(BlobStore):
    """로컬 디렉토리에 저장하고 공개 URL을 발급하는 블롭 저장소"""

    def __init__(
        self,
        root_dir: Optional[str] = None,
        bucket: Optional[str] = None,
        public_base_url: Optional[str] = None
    ):
        self.bucket = bucket or settings.blob_bucket
        self.root = Path(root_dir or settings.upload_dir) / self.bucket
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Invalid object path: {path}")
        return target

    async def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        """파일 저장"""
        target = self._resolve(path)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, 'wb') as f:
                await f.write(data)
        except OSError as e:
            # 저장 실패 시 부분 파일 삭제
            if target.exists():
                target.unlink()
            raise ExternalServiceException("Blob store", f"Failed to save file: {e}") from e

        log_file_operation(logger, "upload", path, user_id=path.split("/", 1)[0], file_size=len(data), content_type=content_type)

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{path}"

    async def delete(self, path: str) -> bool:
        """파일 삭제"""
        target = self._resolve(path)
        if target.exists():
            target.unlink()
            return True
        return False
