import pytest

from roomchat.core.errors import AuthenticationException, ExternalServiceException, ValidationException
from roomchat.core.logging import user_id_var
from roomchat.services.auth_service import ProfileService, SessionContext


class TestSessionContext:
    """세션 컨텍스트 테스트"""

    @pytest.mark.asyncio
    async def test_require_user(self, auth_provider, user_a):
        session = SessionContext(auth_provider)

        assert await session.require_user() == user_a
        assert user_id_var.get() == user_a.id

    @pytest.mark.asyncio
    async def test_no_session(self, auth_provider):
        auth_provider.user = None
        session = SessionContext(auth_provider)

        assert await session.get_user() is None
        with pytest.raises(AuthenticationException) as exc_info:
            await session.require_user()
        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_provider_failure(self, auth_provider):
        auth_provider.error = ConnectionError("auth down")

        with pytest.raises(ExternalServiceException) as exc_info:
            await SessionContext(auth_provider).get_user()
        assert exc_info.value.service == "Auth provider"


class TestProfileService:
    """계정 정보 변경 테스트"""

    @pytest.mark.asyncio
    async def test_update_email(self, auth_provider):
        email = await ProfileService(auth_provider).update_email("new@Example.com", "current-pw")

        assert email == "new@example.com"
        assert auth_provider.email_updates == ["new@example.com"]

    @pytest.mark.asyncio
    async def test_update_email_requires_current_password(self, auth_provider):
        with pytest.raises(ValidationException):
            await ProfileService(auth_provider).update_email("new@example.com", "")
        assert auth_provider.email_updates == []

    @pytest.mark.asyncio
    async def test_update_email_rejects_invalid_address(self, auth_provider):
        with pytest.raises(ValidationException):
            await ProfileService(auth_provider).update_email("not-an-email", "current-pw")

    @pytest.mark.asyncio
    async def test_update_password(self, auth_provider):
        await ProfileService(auth_provider).update_password("n3w-pass", "current-pw")
        assert auth_provider.password_updates == ["n3w-pass"]

    @pytest.mark.asyncio
    async def test_update_password_validation(self, auth_provider):
        service = ProfileService(auth_provider)

        with pytest.raises(ValidationException):
            await service.update_password("n3w-pass", None)
        with pytest.raises(ValidationException):
            await service.update_password("  ", "current-pw")
        assert auth_provider.password_updates == []

    @pytest.mark.asyncio
    async def test_provider_error_surfaces(self, auth_provider):
        auth_provider.error = RuntimeError("rate limited")

        with pytest.raises(ExternalServiceException):
            await ProfileService(auth_provider).update_password("n3w-pass", "current-pw")
