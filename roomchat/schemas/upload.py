from pathlib import Path
from pydantic import BaseModel, Field


class UploadedImage(BaseModel):
    """업로드할 이미지 파일"""
    filename: str = Field(..., description="원본 파일명")
    content_type: str = Field(..., description="미디어 타입 (image/*)")
    data: bytes = Field(..., repr=False, description="파일 내용")

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """확장자 (점 제외, 소문자)"""
        return Path(self.filename).suffix.lower().lstrip(".")
