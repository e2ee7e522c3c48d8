import datetime
import secrets
import uuid
from typing import Optional

import jwt
from passlib.context import CryptContext

from config import (JWT_SECRET, JWT_ALGORITHM, JWT_ISSUER, JWT_AUDIENCE, JWT_EXPIRATION_MINUTES,
                    PASSWORD_RESET_EXPIRATION_HOURS)

PASSWORD_RESET_PURPOSE = 'password_reset'

pwd_context = CryptContext(schemes=['pbkdf2_sha256'], deprecated='auto')


def utcnow() -> datetime.datetime:
    """
    DB에 저장하는 형식과 같은 naive UTC 현재 시각을 반환합니다.
    """
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


def to_utc_naive(value: datetime.datetime) -> datetime.datetime:
    """
    timezone 정보가 있으면 UTC로 변환한 뒤 제거합니다. naive 값은 UTC로 간주합니다.
    """
    if value.tzinfo is not None:
        return value.astimezone(datetime.UTC).replace(tzinfo=None)
    return value


def is_future(value: datetime.datetime) -> bool:
    return to_utc_naive(value) > utcnow()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def new_security_stamp() -> str:
    return secrets.token_hex(16)


def token_expiration() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC) + datetime.timedelta(minutes=JWT_EXPIRATION_MINUTES)


def encode_jwt(id, email, roles, name: str = '', expires_at: Optional[datetime.datetime] = None):
    payload = {
        'id': id,
        'email': email,
        'roles': list(roles),
        'name': name,
        'jti': uuid.uuid4().hex,
        'iat': datetime.datetime.now(datetime.UTC),
        'exp': expires_at or token_expiration(),
        'iss': JWT_ISSUER,
        'aud': JWT_AUDIENCE,
    }
    jwt_token = jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)
    return jwt_token


def decode_jwt(token):
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE, issuer=JWT_ISSUER)


def encode_password_reset_token(user_id: int, security_stamp: str) -> str:
    payload = {
        'sub': str(user_id),
        'purpose': PASSWORD_RESET_PURPOSE,
        'stamp': security_stamp,
        'exp': datetime.datetime.now(datetime.UTC) + datetime.timedelta(hours=PASSWORD_RESET_EXPIRATION_HOURS),
        'iss': JWT_ISSUER,
        'aud': JWT_AUDIENCE,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_password_reset_token(token: str) -> dict:
    """
    재설정 토큰을 검증하고 payload를 반환합니다. 용도가 다른 토큰이면 `jwt.InvalidTokenError`를 발생시킵니다.
    """
    payload = decode_jwt(token)
    if payload.get('purpose') != PASSWORD_RESET_PURPOSE:
        raise jwt.InvalidTokenError('not a password reset token')
    return payload
