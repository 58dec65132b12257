"""
채팅방 비밀번호 해싱 유틸리티

채팅방 비밀번호는 평문이 아닌 KDF 해시로 저장하고 해시 비교로 검증합니다.
"""

from passlib.context import CryptContext

from roomchat.core.config import settings

pwd_context = CryptContext(schemes=[settings.password_hash_scheme], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # 알 수 없는 해시 형식
        return False
