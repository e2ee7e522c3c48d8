import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from db.models import ServiceType, ReservationStatus
from schemas.user import UserBase
from util import is_future, to_utc_naive


class ReservationInputBase(BaseModel):
    model_config = ConfigDict(extra='ignore')

    title: str = Field(min_length=1, max_length=100, description='예약 제목', examples=['정기 검진'])
    description: Optional[str] = Field(default=None, max_length=500, description='예약 설명')
    scheduled_at: datetime.datetime = Field(description='예약 일시 (UTC)', examples=['2030-02-20T12:30:00Z'])
    service_type: ServiceType = Field(description='서비스 종류 (1~6)', examples=[1])

    @field_validator('scheduled_at')
    @classmethod
    def validate_scheduled_at(cls, value: datetime.datetime) -> datetime.datetime:
        if not is_future(value):
            raise ValueError('scheduled time must be in the future')

        return to_utc_naive(value)

    @field_validator('service_type', mode='before')
    @classmethod
    def parse_service_type(cls, value):
        return parse_enum_number(value)


def parse_enum_number(value):
    # html form 값은 문자열로 들어온다
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return value


class CreateReservationInput(ReservationInputBase):
    pass


class UpdateReservationInput(ReservationInputBase):
    status: Optional[ReservationStatus] = Field(default=None, description='예약 상태 (1~3). 생략하면 유지')

    @field_validator('status', mode='before')
    @classmethod
    def parse_status(cls, value):
        return parse_enum_number(value)


class ReservationListItem(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    title: str
    scheduled_at: datetime.datetime
    created_at: datetime.datetime
    service_type: ServiceType
    service_type_label: str
    status: ReservationStatus
    status_label: str
    user_name: str

    @classmethod
    def from_reservation(cls, reservation) -> 'ReservationListItem':
        return cls(
            id=reservation.id,
            title=reservation.title,
            scheduled_at=reservation.scheduled_at,
            created_at=reservation.created_at,
            service_type=reservation.service_type,
            service_type_label=reservation.service_type.label,
            status=reservation.status,
            status_label=reservation.status.label,
            user_name=reservation.user.full_name if reservation.user else ''
        )


class ReservationDetail(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    title: str
    description: Optional[str]
    scheduled_at: datetime.datetime
    created_at: datetime.datetime
    service_type: ServiceType
    service_type_label: str
    status: ReservationStatus
    status_label: str
    user_id: int
    user: Optional[UserBase]

    @classmethod
    def from_reservation(cls, reservation) -> 'ReservationDetail':
        return cls(
            id=reservation.id,
            title=reservation.title,
            description=reservation.description,
            scheduled_at=reservation.scheduled_at,
            created_at=reservation.created_at,
            service_type=reservation.service_type,
            service_type_label=reservation.service_type.label,
            status=reservation.status,
            status_label=reservation.status.label,
            user_id=reservation.user_id,
            user=UserBase.from_user(reservation.user) if reservation.user else None
        )


class PagedReservations(BaseModel):
    model_config = ConfigDict(extra='ignore')

    items: List[ReservationListItem]
    total_count: int
    page: int
    limit: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool
