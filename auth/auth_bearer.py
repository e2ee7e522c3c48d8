import logging
from typing import Annotated

import jwt
from fastapi import Request, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from starlette import status

from db.models import Role
from schemas.user import TokenPayload
from util import decode_jwt

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail,
                         headers={'WWW-Authenticate': 'Bearer'})


def parse_access_token(token: str) -> TokenPayload:
    """
    access token의 서명, 만료, 발급자와 대상을 검증하고 payload를 반환합니다.
    """
    try:
        return TokenPayload.model_validate(decode_jwt(token))
    except jwt.ExpiredSignatureError:
        raise _unauthorized('Token has expired')
    except (jwt.InvalidTokenError, ValidationError):
        raise _unauthorized('Invalid token')


class JWTBearer(HTTPBearer):
    """
    `Authorization: Bearer <token>` 헤더를 검증하는 dependency 입니다.
    """

    def __init__(self):
        super().__init__(auto_error=False)

    async def __call__(self, request: Request) -> TokenPayload:
        credentials: HTTPAuthorizationCredentials | None = await super().__call__(request)
        if not credentials:
            raise _unauthorized('Not authenticated')

        if credentials.scheme.lower() != 'bearer':
            raise _unauthorized('Invalid authentication scheme')

        payload = parse_access_token(credentials.credentials)
        request.state.user_id = payload.id
        return payload


def get_current_user(payload: Annotated[TokenPayload, Depends(JWTBearer())]) -> TokenPayload:
    return payload


def require_admin(current_user: Annotated[TokenPayload, Depends(get_current_user)]) -> TokenPayload:
    if Role.ADMIN.value not in current_user.roles:
        logger.warning(f'User {current_user.id} tried to use an admin endpoint')
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Only admins can use this endpoint')
    return current_user
