import datetime
import logging
from typing import List

import jwt
from fastapi import HTTPException, BackgroundTasks
from sqlalchemy.orm import Session
from starlette import status

from config import MAX_FAILED_LOGIN_ATTEMPTS, LOCKOUT_MINUTES
from db.models import Role, User
from repository.user_repository import UserRepository
from schemas.base import MessageOutputBase
from schemas.user import (UserBase, UserOut, LoginUser, RegisterUser, AuthOutput, TokenPayload, ForgotPasswordInput,
                          ResetPasswordInput)
from service.email_service import (send_email, render_welcome_email, render_password_reset_email,
                                   password_reset_url)
from util import (encode_jwt, token_expiration, hash_password, verify_password, new_security_stamp, utcnow,
                  encode_password_reset_token, decode_password_reset_token)

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = 'If the email is registered, a password reset link has been sent'


def build_auth_output(user: User) -> AuthOutput:
    expiration = token_expiration()
    token = encode_jwt(user.id, user.email, user.role_names, user.full_name, expiration)
    return AuthOutput(token=token, expiration=expiration, user=UserOut.from_user(user))


class UserService:
    def __init__(self, session: Session):
        self.repository = UserRepository(session)

    def search_users(self, email, role) -> List[UserBase]:
        if not email and not role:
            users = self.repository.get_all()
        else:
            users = self.repository.search(email or '', role or '')

        return [UserBase.from_user(user) for user in users]

    def login(self, login_user: LoginUser) -> AuthOutput:
        user = self.repository.get_by_email(login_user.email)

        if not user:
            logger.warning(f'Login failed for unknown email {login_user.email}')
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='The email or password is not right')

        now = utcnow()
        if user.lockout_end and user.lockout_end > now:
            logger.warning(f'Login attempt on locked account {user.id}')
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Account is locked due to too many failed attempts. Try again later')

        if not verify_password(login_user.password, user.password_hash):
            lockout_end = None
            if user.failed_login_count + 1 >= MAX_FAILED_LOGIN_ATTEMPTS:
                lockout_end = now + datetime.timedelta(minutes=LOCKOUT_MINUTES)
            self.repository.register_failed_login(user, lockout_end)

            if lockout_end:
                logger.warning(f'Account {user.id} locked until {lockout_end.isoformat()}')
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                    detail='Account is locked due to too many failed attempts. Try again later')

            logger.warning(f'Login failed for user {user.id}')
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='The email or password is not right')

        if user.failed_login_count or user.lockout_end:
            self.repository.reset_failed_logins(user)

        logger.info(f'User {user.id} logged in')
        return build_auth_output(user)

    def register(self, register_user: RegisterUser, background_tasks: BackgroundTasks) -> AuthOutput:
        if self.repository.exist_by_email(register_user.email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Email is already registered')

        user = self.repository.create(
            email=register_user.email,
            password_hash=hash_password(register_user.password),
            first_name=register_user.first_name,
            last_name=register_user.last_name,
            security_stamp=new_security_stamp(),
            roles=[Role.CLIENT]
        )
        logger.info(f'User {user.id} registered')

        background_tasks.add_task(send_email, user.email, 'Welcome to the reservation system',
                                  render_welcome_email(user.full_name))

        return build_auth_output(user)

    def me(self, current_user: TokenPayload) -> UserOut:
        user = self.repository.get_by_id(current_user.id)

        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        return UserOut.from_user(user)

    def forgot_password(self, forgot_password_input: ForgotPasswordInput,
                        background_tasks: BackgroundTasks) -> MessageOutputBase:
        user = self.repository.get_by_email(forgot_password_input.email)

        # 가입 여부와 상관없이 같은 응답을 반환한다
        if user:
            token = encode_password_reset_token(user.id, user.security_stamp)
            reset_url = password_reset_url(user.email, token)
            background_tasks.add_task(send_email, user.email, 'Password reset',
                                      render_password_reset_email(user.full_name, reset_url))
            logger.info(f'Password reset requested for user {user.id}')
        else:
            logger.info(f'Password reset requested for unknown email {forgot_password_input.email}')

        return MessageOutputBase(message=FORGOT_PASSWORD_MESSAGE)

    def reset_password(self, reset_password_input: ResetPasswordInput) -> MessageOutputBase:
        invalid_token = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid or expired token')

        user = self.repository.get_by_email(reset_password_input.email)
        if not user:
            raise invalid_token

        try:
            payload = decode_password_reset_token(reset_password_input.token)
        except jwt.InvalidTokenError:
            logger.warning(f'Invalid password reset token for user {user.id}')
            raise invalid_token

        if payload.get('sub') != str(user.id) or payload.get('stamp') != user.security_stamp:
            logger.warning(f'Password reset token does not match user {user.id}')
            raise invalid_token

        self.repository.update_password(user, hash_password(reset_password_input.new_password),
                                        new_security_stamp())
        logger.info(f'Password reset completed for user {user.id}')

        return MessageOutputBase(message='Password has been reset successfully')

    def delete_user(self, current_user: TokenPayload, user_id: int) -> MessageOutputBase:
        if current_user.id == user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Admins cannot delete themselves')

        user = self.repository.get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        self.repository.delete(user)
        logger.info(f'User {user_id} deleted by admin {current_user.id}')

        return MessageOutputBase(message='User deleted successfully')
