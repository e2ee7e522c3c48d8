import io
import logging

import qrcode
from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from config import QR_VALID_MINUTES, PUBLIC_BASE_URL
from repository.qr_repository import QRRepository
from repository.reservation_repository import ReservationRepository
from schemas.base import DeletedCountOutput
from schemas.qr import QRGenerateOutput, QRAccessOutput
from schemas.user import TokenPayload
from util import utcnow

logger = logging.getLogger(__name__)


def build_qr_url(base_url: str, _hash: str) -> str:
    base = PUBLIC_BASE_URL or base_url
    return f"{base.rstrip('/')}/api/qr/view/{_hash}"


def render_qr_png(data: str) -> bytes:
    image = qrcode.make(data)
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


class QRService:
    def __init__(self, session: Session):
        self.qr_repository = QRRepository(session)
        self.reservation_repository = ReservationRepository(session)

    def generate(self, current_user: TokenPayload, reservation_id: int, base_url: str) -> QRGenerateOutput:
        """
        예약에 대한 새 QR 링크를 발급합니다. 같은 예약의 사용되지 않은 이전 링크는 모두 무효화됩니다.
        """
        reservation = self.reservation_repository.get_by_id(reservation_id)

        if not reservation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Reservation not found')

        if reservation.user_id != current_user.id:
            logger.warning(f'User {current_user.id} tried to issue a QR link for reservation {reservation_id}')
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail='Cannot generate QR links for other users\' reservations')

        invalidated = self.qr_repository.invalidate_by_reservation_id(reservation_id)
        qr_link = self.qr_repository.create(reservation_id, QR_VALID_MINUTES)
        logger.info(f'QR link {qr_link.id} issued for reservation {reservation_id} '
                    f'({invalidated} previous link(s) invalidated)')

        return QRGenerateOutput(
            hash=qr_link.hash,
            qr_url=build_qr_url(base_url, qr_link.hash),
            expires_at=qr_link.expires_at,
            reservation_id=reservation_id,
            valid_minutes=QR_VALID_MINUTES
        )

    def access(self, _hash: str) -> QRAccessOutput:
        """
        QR 링크로 예약 정보를 조회합니다. 성공하면 링크는 사용 처리되어 다시 쓸 수 없습니다.
        """
        qr_link = self.qr_repository.get_by_hash(_hash)

        if not qr_link:
            logger.info('QR link not found')
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='QR link not found')

        now = utcnow()
        if qr_link.is_expired(now):
            logger.info(f'QR link {qr_link.id} expired at {qr_link.expires_at.isoformat()}, deleting')
            self.qr_repository.delete(qr_link)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='QR link has expired')

        if qr_link.used:
            logger.info(f'QR link {qr_link.id} was already used')
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='QR link has already been used')

        reservation = qr_link.reservation
        if not reservation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Reservation not found')

        access = QRAccessOutput(
            reservation_id=reservation.id,
            service_type=reservation.service_type.label,
            scheduled_at=reservation.scheduled_at,
            status=reservation.status.label,
            description=reservation.description,
            client_name=reservation.user.full_name if reservation.user else '',
            accessed_at=now,
            message='Access granted'
        )

        if not self.qr_repository.mark_used(qr_link):
            logger.info(f'QR link {qr_link.id} was used by a concurrent request')
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='QR link has already been used')

        logger.info(f'QR link {qr_link.id} used to access reservation {access.reservation_id}')

        return access

    def cleanup_expired(self) -> DeletedCountOutput:
        deleted_count = self.qr_repository.delete_expired(utcnow())
        logger.info(f'{deleted_count} expired QR link(s) deleted')

        return DeletedCountOutput(message=f'{deleted_count} expired QR links deleted', deleted_count=deleted_count)

    def get_valid_link(self, current_user: TokenPayload, _hash: str, base_url: str) -> QRGenerateOutput:
        """
        예약자 본인의 아직 유효한 QR 링크를 조회합니다. 링크를 사용 처리하지는 않습니다.
        """
        qr_link = self.qr_repository.get_by_hash(_hash)

        if not qr_link or not qr_link.reservation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='QR link not found')

        if qr_link.reservation.user_id != current_user.id:
            logger.warning(f'User {current_user.id} tried to download QR link {qr_link.id}')
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail='Cannot download QR links of other users\' reservations')

        if qr_link.is_expired():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='QR link has expired')

        if qr_link.used:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='QR link has already been used')

        return QRGenerateOutput(
            hash=qr_link.hash,
            qr_url=build_qr_url(base_url, qr_link.hash),
            expires_at=qr_link.expires_at,
            reservation_id=qr_link.reservation_id,
            valid_minutes=QR_VALID_MINUTES
        )
