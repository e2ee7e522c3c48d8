import datetime
import re
from typing import List

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing_extensions import Self

PASSWORD_MIN_LENGTH = 6


def validate_password_strength(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f'password must be at least {PASSWORD_MIN_LENGTH} characters long')
    if not re.search(r'\d', value):
        raise ValueError('password must contain at least one digit')
    if not re.search(r'[a-z]', value):
        raise ValueError('password must contain at least one lowercase letter')
    if not re.search(r'[A-Z]', value):
        raise ValueError('password must contain at least one uppercase letter')
    return value


class UserBase(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    email: str
    full_name: str
    roles: List[str]

    @classmethod
    def from_user(cls, user) -> Self:
        return cls(id=user.id, email=user.email, full_name=user.full_name, roles=user.role_names)


class UserOut(UserBase):
    first_name: str
    last_name: str
    registered_at: datetime.datetime

    @classmethod
    def from_user(cls, user) -> Self:
        return cls(id=user.id, email=user.email, full_name=user.full_name, roles=user.role_names,
                   first_name=user.first_name, last_name=user.last_name, registered_at=user.registered_at)


class LoginUser(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: EmailStr = Field(description='로그인 이메일', examples=['user@reservas.com'])
    password: str = Field(description='비밀번호')


class RegisterUser(BaseModel):
    model_config = ConfigDict(extra='ignore')

    first_name: str = Field(min_length=1, max_length=50, description='이름', examples=['Ana'])
    last_name: str = Field(min_length=1, max_length=50, description='성', examples=['García'])
    email: EmailStr = Field(description='이메일', examples=['ana@reservas.com'])
    password: str = Field(max_length=100, description='비밀번호', examples=['Secret123'])
    confirm_password: str = Field(description='비밀번호 확인', examples=['Secret123'])

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @model_validator(mode='after')
    def validate_confirm_password(self) -> Self:
        if self.password != self.confirm_password:
            raise ValueError('passwords do not match')

        return self


class AuthOutput(BaseModel):
    model_config = ConfigDict(extra='ignore')

    token: str
    expiration: datetime.datetime
    user: UserOut


class TokenPayload(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    email: str
    roles: List[str]
    name: str = ''
    exp: int


class ForgotPasswordInput(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: EmailStr


class ResetPasswordInput(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: EmailStr
    token: str = Field(min_length=1)
    new_password: str = Field(max_length=100)
    confirm_password: str

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @model_validator(mode='after')
    def validate_confirm_password(self) -> Self:
        if self.new_password != self.confirm_password:
            raise ValueError('passwords do not match')

        return self
