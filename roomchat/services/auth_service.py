"""
Session context and auth provider pass-through.

The auth provider issues credentials and owns sessions; this module only
reads the current identity and forwards credential updates, surfacing
provider failures as ExternalServiceException.
"""

from abc import ABC, abstractmethod
from typing import Optional

from roomchat.core.errors import (
    AuthenticationException,
    ExternalServiceException,
    RoomChatException,
    ValidationException,
    ValidationError,
)
from roomchat.core.logging import get_logger, log_security_event, set_session_context
from roomchat.core.validators import Validator
from roomchat.schemas.user import SessionUser

logger = get_logger(__name__)


class AuthProvider(ABC):
    """외부 인증 제공자 인터페이스"""

    @abstractmethod
    async def current_user(self) -> Optional[SessionUser]:
        ...

    @abstractmethod
    async def update_email(self, new_email: str) -> None:
        ...

    @abstractmethod
    async def update_password(self, new_password: str) -> None:
        ...


class SessionContext:
    """인증된 사용자 정보를 제공하는 세션 컨텍스트"""

    def __init__(self, provider: AuthProvider):
        self.provider = provider

    async def get_user(self) -> Optional[SessionUser]:
        """현재 사용자 조회 (없으면 None)"""
        try:
            return await self.provider.current_user()
        except RoomChatException:
            raise
        except Exception as e:
            raise ExternalServiceException("Auth provider", str(e)) from e

    async def require_user(self) -> SessionUser:
        """현재 사용자 조회 (없으면 인증 에러)"""
        user = await self.get_user()
        if user is None:
            raise AuthenticationException("User not found")

        set_session_context(user_id=user.id)
        return user


class ProfileService:
    """계정 정보 변경 (인증 제공자로 그대로 전달)"""

    def __init__(self, provider: AuthProvider):
        self.provider = provider

    @staticmethod
    def _require_current_password(current_password: Optional[str], action: str):
        if not current_password:
            raise ValidationException(
                "Current password is required",
                validation_errors=[
                    ValidationError(
                        field="current_password",
                        message=f"Current password is required to update {action}"
                    )
                ]
            )

    async def update_email(self, new_email: str, current_password: str) -> str:
        """이메일 변경 요청"""
        self._require_current_password(current_password, "email")
        email = Validator.validate_email_format(new_email)

        try:
            await self.provider.update_email(email)
        except Exception as e:
            log_security_event(logger, "email_update_failed", severity="low", reason=str(e))
            raise ExternalServiceException("Auth provider", str(e)) from e

        logger.info("Email update requested")
        return email

    async def update_password(self, new_password: str, current_password: str) -> None:
        """비밀번호 변경"""
        self._require_current_password(current_password, "password")
        Validator.validate_required(new_password, "new_password")

        try:
            await self.provider.update_password(new_password)
        except Exception as e:
            log_security_event(logger, "password_update_failed", severity="low", reason=str(e))
            raise ExternalServiceException("Auth provider", str(e)) from e

        logger.info("Password updated")
