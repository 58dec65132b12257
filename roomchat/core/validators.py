import re
from typing import Optional, List, Any, Callable
from email_validator import validate_email, EmailNotValidError

from roomchat.core.config import settings
from roomchat.core.errors import ValidationException, ValidationError


class Validator:
    """입력 검증을 위한 유틸리티 클래스"""

    @staticmethod
    def validate_required(value: Any, field_name: str) -> Any:
        """필수 필드 검증"""
        if value is None or (isinstance(value, str) and value.strip() == ""):
            raise ValidationException(
                f"{field_name} is required",
                validation_errors=[
                    ValidationError(field=field_name, message=f"{field_name.replace('_', ' ').capitalize()} is required")
                ]
            )
        return value

    @staticmethod
    def validate_string_length(
        value: str,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None
    ) -> str:
        """문자열 길이 검증"""
        errors = []

        if min_length and len(value) < min_length:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Must be at least {min_length} characters long",
                    value=len(value)
                )
            )

        if max_length and len(value) > max_length:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Must be no more than {max_length} characters long",
                    value=len(value)
                )
            )

        if errors:
            raise ValidationException(
                f"{field_name} length validation failed",
                validation_errors=errors
            )

        return value

    @staticmethod
    def validate_email_format(email: str, field_name: str = "email") -> str:
        """이메일 형식 검증"""
        try:
            result = validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValidationException(
                "Invalid email format",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message="Please enter a valid email address",
                        value=email
                    )
                ]
            ) from e
        return result.normalized

    @staticmethod
    def validate_room_name(name: str, field_name: str = "name") -> str:
        """채팅방 이름 검증"""
        Validator.validate_required(name, field_name)
        name = name.strip()
        Validator.validate_string_length(name, field_name, max_length=100)

        if re.search(r'[\x00-\x1f\x7f]', name):
            raise ValidationException(
                "Room name contains invalid characters",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message="Room name cannot contain control characters"
                    )
                ]
            )
        return name

    @staticmethod
    def validate_room_password(password: Optional[str], field_name: str = "password") -> str:
        """채팅방 비밀번호 검증 (공백만 있는 비밀번호 거부)"""
        if password is None or password.strip() == "":
            raise ValidationException(
                "Room password is required",
                validation_errors=[
                    ValidationError(field=field_name, message="Room password is required")
                ]
            )
        return password

    @staticmethod
    def validate_max_users(max_users: Any, field_name: str = "max_users") -> int:
        """최대 인원 검증 (1-100)"""
        lower, upper = settings.min_room_users, settings.max_room_users

        if isinstance(max_users, bool) or not isinstance(max_users, int):
            raise ValidationException(
                f"{field_name} must be an integer",
                validation_errors=[
                    ValidationError(field=field_name, message="Must be an integer", value=max_users)
                ]
            )

        if max_users < lower or max_users > upper:
            raise ValidationException(
                f"{field_name} out of range",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message=f"Maximum users must be between {lower} and {upper}",
                        value=max_users
                    )
                ]
            )
        return max_users

    @staticmethod
    def validate_message_content(content: str, field_name: str = "content") -> str:
        """메시지 내용 검증"""
        errors = []

        if not content or content.strip() == "":
            errors.append(
                ValidationError(
                    field=field_name,
                    message="Message content cannot be empty"
                )
            )
        elif len(content) > settings.max_message_length:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Message content must be no more than {settings.max_message_length} characters",
                    value=len(content)
                )
            )

        if errors:
            raise ValidationException(
                "Message content validation failed",
                validation_errors=errors
            )

        return content

    @staticmethod
    def validate_image_media_type(content_type: Optional[str], field_name: str = "content_type") -> str:
        """이미지 미디어 타입 검증"""
        if not content_type or not content_type.lower().startswith("image/"):
            raise ValidationException(
                "Invalid file type",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message="Please upload an image file",
                        value=content_type
                    )
                ]
            )
        return content_type

    @staticmethod
    def validate_file_size(file_size: int, max_size: Optional[int] = None, field_name: str = "file_size") -> int:
        """파일 크기 검증"""
        max_size = max_size or settings.max_upload_size

        if file_size <= 0:
            raise ValidationException(
                "Invalid file size",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message="File size must be greater than 0",
                        value=file_size
                    )
                ]
            )

        if file_size > max_size:
            max_size_mb = max_size / (1024 * 1024)
            raise ValidationException(
                "File size too large",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message=f"File size must be no more than {max_size_mb:.1f}MB",
                        value=file_size
                    )
                ]
            )

        return file_size

    @staticmethod
    def validate_confirmation(token: str, expected: str, field_name: str = "confirmation") -> str:
        """삭제 확인 문구 검증"""
        if token != expected:
            raise ValidationException(
                "Confirmation text does not match",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message=f'Type "{expected}" to confirm'
                    )
                ]
            )
        return token

    @staticmethod
    def validate_multiple_fields(validations: List[Callable[[], Any]]) -> List[Any]:
        """여러 필드 동시 검증"""
        errors = []
        results = []

        for validation_func in validations:
            try:
                results.append(validation_func())
            except ValidationException as e:
                errors.extend(e.validation_errors)

        if errors:
            raise ValidationException(
                "Multiple validation errors",
                validation_errors=errors
            )

        return results


# 편의 함수들
def validate_room_creation(name: str, password: str, max_users: int):
    """채팅방 생성 데이터 전체 검증"""
    validator = Validator()

    validations = [
        lambda: validator.validate_room_name(name),
        lambda: validator.validate_room_password(password),
        lambda: validator.validate_max_users(max_users),
    ]

    return validator.validate_multiple_fields(validations)


def validate_room_settings(max_users: int, password: Optional[str] = None):
    """채팅방 설정 변경 데이터 검증"""
    validator = Validator()
    validated_max_users = validator.validate_max_users(max_users)

    # 비어있는 비밀번호는 "변경 없음"
    if password is None or password.strip() == "":
        return validated_max_users, None
    return validated_max_users, password


def validate_image_upload(content_type: Optional[str], file_size: int):
    """이미지 업로드 데이터 검증"""
    validator = Validator()

    validations = [
        lambda: validator.validate_image_media_type(content_type),
        lambda: validator.validate_file_size(file_size)
    ]

    return validator.validate_multiple_fields(validations)
