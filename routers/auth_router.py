from typing import Annotated

from fastapi import APIRouter, Depends, BackgroundTasks
from sqlalchemy.orm import Session
from starlette import status

from auth.auth_bearer import get_current_user
from db.database import get_db
from schemas import user, base
from service.user_service import UserService, FORGOT_PASSWORD_MESSAGE

auth_router = APIRouter(
    prefix='/auth',
    tags=['인증']
)


@auth_router.post('/register',
                  status_code=status.HTTP_201_CREATED,
                  response_model=user.AuthOutput,
                  name='회원가입',
                  responses={
                      400: {
                          "description": "이미 가입된 이메일인 경우",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "Email is already registered"}
                              }
                          }
                      }
                  })
def register(register_user: user.RegisterUser, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """
    새 고객 계정을 만들고 바로 로그인 처리합니다. 가입한 유저에게는 `Client` 권한이 부여되고 환영 메일이 발송됩니다.
    """
    user_service = UserService(db)
    return user_service.register(register_user, background_tasks)


@auth_router.post('/login',
                  response_model=user.AuthOutput,
                  name='로그인',
                  responses={
                      400: {
                          "description": "잘못된 로그인 정보이거나 계정이 잠긴 경우",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "The email or password is not right"}
                              }
                          }
                      }
                  })
def login(login_user: user.LoginUser, db: Session = Depends(get_db)):
    """
    입력한 `email`과 `password`로 로그인을 합니다.
    로그인에 성공할 경우 jwt token을 반환합니다. 5번 연속으로 실패하면 계정이 15분 동안 잠깁니다.
    """
    user_service = UserService(db)
    return user_service.login(login_user)


@auth_router.get('/me',
                 response_model=user.UserOut,
                 name='내 정보 조회',
                 responses={
                     404: {
                         "description": "계정이 삭제된 경우",
                         "content": {
                             "application/json": {
                                 "example": {"detail": "User not found"}
                             }
                         }
                     }
                 })
def me(current_user: Annotated[user.TokenPayload, Depends(get_current_user)], db: Session = Depends(get_db)):
    user_service = UserService(db)
    return user_service.me(current_user)


@auth_router.post('/forgot-password',
                  response_model=base.MessageOutputBase,
                  name='비밀번호 재설정 요청',
                  responses={
                      200: {
                          "content": {
                              "application/json": {
                                  "example": {"message": FORGOT_PASSWORD_MESSAGE}
                              }
                          }
                      }
                  })
def forgot_password(forgot_password_input: user.ForgotPasswordInput, background_tasks: BackgroundTasks,
                    db: Session = Depends(get_db)):
    """
    비밀번호 재설정 링크를 메일로 보냅니다. 가입되지 않은 이메일이어도 같은 응답을 반환합니다.
    """
    user_service = UserService(db)
    return user_service.forgot_password(forgot_password_input, background_tasks)


@auth_router.post('/reset-password',
                  response_model=base.MessageOutputBase,
                  name='비밀번호 재설정',
                  responses={
                      400: {
                          "description": "토큰이 유효하지 않거나 만료된 경우",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "Invalid or expired token"}
                              }
                          }
                      }
                  })
def reset_password(reset_password_input: user.ResetPasswordInput, db: Session = Depends(get_db)):
    """
    메일로 받은 토큰으로 비밀번호를 변경합니다. 토큰은 한 번만 사용할 수 있습니다.
    """
    user_service = UserService(db)
    return user_service.reset_password(reset_password_input)
