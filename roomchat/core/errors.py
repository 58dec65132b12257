from typing import Optional, Dict, Any, List
from pydantic import BaseModel


class ValidationError(BaseModel):
    """검증 에러 세부사항"""
    field: str
    message: str
    value: Optional[Any] = None


# =============================================================================
# 커스텀 예외 클래스들
# =============================================================================

class RoomChatException(Exception):
    """기본 커스텀 예외 클래스"""
    def __init__(
        self,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """예외를 딕셔너리로 변환"""
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details
        }


class ValidationException(RoomChatException):
    """입력 검증 실패 예외"""
    def __init__(
        self,
        message: str = "Validation failed",
        validation_errors: Optional[List[ValidationError]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.validation_errors = validation_errors or []
        super().__init__(
            error="validation_error",
            message=message,
            details=details
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "message": self.message,
            "validation_errors": [error.model_dump() for error in self.validation_errors]
        }


class AuthenticationException(RoomChatException):
    """인증 실패 예외 (로그인 세션 없음)"""
    def __init__(
        self,
        message: str = "Authentication required",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error="authentication_error",
            message=message,
            details=details
        )


class AuthorizationException(RoomChatException):
    """권한 부족 예외"""
    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error="authorization_error",
            message=message,
            details=details
        )


class CapacityException(RoomChatException):
    """채팅방 정원 초과 예외"""
    def __init__(
        self,
        message: str = "Room is full",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error="room_full",
            message=message,
            details=details
        )


class ResourceNotFoundException(RoomChatException):
    """리소스를 찾을 수 없음 예외"""
    def __init__(
        self,
        resource: str = "Resource",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if message is None:
            message = f"{resource} not found"

        super().__init__(
            error="resource_not_found",
            message=message,
            details=details or {"resource": resource}
        )


class ConflictException(RoomChatException):
    """리소스 충돌 예외"""
    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error="resource_conflict",
            message=message,
            details=details
        )


class BusinessLogicException(RoomChatException):
    """비즈니스 로직 예외"""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error="business_logic_error",
            message=message,
            details=details
        )


class ExternalServiceException(RoomChatException):
    """외부 서비스(스토어, 인증, 블롭) 에러 예외"""
    def __init__(
        self,
        service: str,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None
    ):
        self.service = service
        super().__init__(
            error="external_service_error",
            message=f"{service}: {message}",
            details=details or {"service": service}
        )


# =============================================================================
# 에러 헬퍼 함수들
# =============================================================================

def notification_message(exc: Exception) -> str:
    """사용자에게 보여줄 짧은 알림 문구"""
    if isinstance(exc, ValidationException) and exc.validation_errors:
        return exc.validation_errors[0].message
    if isinstance(exc, RoomChatException):
        return exc.message
    return "Something went wrong"


def room_not_found_error(room_id: Optional[str] = None):
    """채팅방을 찾을 수 없음 에러"""
    details = {"room_id": room_id} if room_id else None
    return ResourceNotFoundException("Room", details=details)


def incorrect_password_error():
    """잘못된 채팅방 비밀번호 에러"""
    return AuthorizationException("Incorrect password")


def room_full_error(room_id: str, max_users: int):
    """채팅방 정원 초과 에러"""
    return CapacityException(
        "Room is full. Please try another room.",
        details={"room_id": room_id, "max_users": max_users}
    )


def not_room_owner_error(room_id: str):
    """채팅방 소유자 아님 에러"""
    return AuthorizationException(
        "Only the room owner can manage this room",
        details={"room_id": room_id}
    )
