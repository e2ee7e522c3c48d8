import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.schema import PrimaryKeyConstraint

from db.database import Base
from util import utcnow


class Role(str, enum.Enum):
    ADMIN = 'Admin'
    CLIENT = 'Client'


class ServiceType(enum.IntEnum):
    MEDICAL_CONSULTATION = 1
    PHYSICAL_THERAPY = 2
    NUTRITION_CONSULTATION = 3
    LAB_EXAM = 4
    PSYCHOLOGICAL_CONSULTATION = 5
    MINOR_SURGERY = 6

    @property
    def label(self) -> str:
        return SERVICE_TYPE_LABELS[self]


SERVICE_TYPE_LABELS = {
    ServiceType.MEDICAL_CONSULTATION: 'Medical consultation',
    ServiceType.PHYSICAL_THERAPY: 'Physical therapy',
    ServiceType.NUTRITION_CONSULTATION: 'Nutrition consultation',
    ServiceType.LAB_EXAM: 'Laboratory exam',
    ServiceType.PSYCHOLOGICAL_CONSULTATION: 'Psychological consultation',
    ServiceType.MINOR_SURGERY: 'Minor surgery',
}


class ReservationStatus(enum.IntEnum):
    ACTIVE = 1
    COMPLETED = 2
    CANCELLED = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class User(Base):
    """
    유저를 나타내는 클래스입니다. 유저의 권한은 `roles` 관계(Admin / Client)로 구분합니다.
    로그인 실패 횟수와 잠금 해제 시각으로 계정 잠금을 관리하고,
    `security_stamp`는 비밀번호가 바뀔 때마다 새로 발급되어 이전 재설정 토큰을 무효화합니다.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, nullable=False)
    email = Column(String(256), nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    first_name = Column(String(50), nullable=False, default='')
    last_name = Column(String(50), nullable=False, default='')
    registered_at = Column(DateTime, nullable=False, default=utcnow)
    security_stamp = Column(String(64), nullable=False)
    failed_login_count = Column(Integer, nullable=False, default=0)
    lockout_end = Column(DateTime, nullable=True)

    roles = relationship('UserRole', back_populates='user', cascade='all, delete-orphan', lazy='selectin')
    reservations = relationship('Reservation', back_populates='user', cascade='all, delete-orphan')

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()

    @property
    def role_names(self) -> list[str]:
        return sorted(role.role for role in self.roles)

    def has_role(self, role: Role) -> bool:
        return role.value in self.role_names


class UserRole(Base):
    """
    유저와 권한의 연결입니다.
    """
    __tablename__ = 'user_roles'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = Column(String(20), nullable=False)

    user = relationship('User', back_populates='roles')

    # composite primary key
    __table_args__ = (
        PrimaryKeyConstraint('user_id', 'role'),
    )


class Reservation(Base):
    """
    유저가 예약한 서비스 일정을 나타내는 클래스입니다. 예약 상태는 `status` 필드로 구분합니다.
    """
    __tablename__ = 'reservations'

    id = Column(Integer, primary_key=True, nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    service_type = Column(Enum(ServiceType), nullable=False)
    status = Column(Enum(ReservationStatus), nullable=False, default=ReservationStatus.ACTIVE, index=True)

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    user = relationship('User', back_populates='reservations')

    # 예약이 삭제되어도 QR 링크는 남기고 참조만 끊는다
    qr_links = relationship('QRLink', back_populates='reservation')


class QRLink(Base):
    """
    예약 정보에 대한 익명 접근을 허용하는 QR 링크입니다.
    사용되지 않았고 만료 시각 이전일 때만 유효합니다.
    """
    __tablename__ = 'qr_links'

    id = Column(Integer, primary_key=True, nullable=False)
    hash = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    expires_at = Column(DateTime, nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    action = Column(String(100), nullable=True, default='view_detail')

    reservation_id = Column(Integer, ForeignKey('reservations.id', ondelete='SET NULL'), nullable=True)
    reservation = relationship('Reservation', back_populates='qr_links')

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) > self.expires_at

    def is_valid(self, now=None) -> bool:
        return not self.used and not self.is_expired(now)
