import datetime
import secrets
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from db.models import QRLink, Reservation
from util import utcnow

HASH_BYTES = 32


class QRRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_hash(self, _hash: str) -> Optional[QRLink]:
        return self.session.query(QRLink) \
            .options(joinedload(QRLink.reservation).joinedload(Reservation.user)) \
            .filter_by(hash=_hash) \
            .first()

    def invalidate_by_reservation_id(self, reservation_id: int) -> int:
        """
        예약에 연결된 미사용 QR 링크를 모두 사용 처리합니다.
        commit 하지 않으므로 이어지는 `create`와 같은 트랜잭션에 묶입니다.
        """
        return self.session.query(QRLink) \
            .filter(QRLink.reservation_id == reservation_id, QRLink.used.is_(False)) \
            .update({QRLink.used: True}, synchronize_session='fetch')

    def create(self, reservation_id: int, valid_minutes: int) -> QRLink:
        now = utcnow()
        qr_link = QRLink(
            hash=secrets.token_urlsafe(HASH_BYTES),
            reservation_id=reservation_id,
            created_at=now,
            expires_at=now + datetime.timedelta(minutes=valid_minutes),
            used=False,
            action='view_detail'
        )
        self.session.add(qr_link)
        self.session.commit()
        self.session.refresh(qr_link)

        return qr_link

    def mark_used(self, qr_link: QRLink) -> bool:
        """
        사용되지 않은 링크일 때만 사용 처리합니다. 다른 요청이 먼저 사용했다면 False를 반환합니다.
        """
        updated = self.session.query(QRLink) \
            .filter(QRLink.id == qr_link.id, QRLink.used.is_(False)) \
            .update({QRLink.used: True}, synchronize_session=False)
        self.session.commit()

        return updated == 1

    def delete(self, qr_link: QRLink):
        self.session.delete(qr_link)
        self.session.commit()

    def delete_expired(self, now: datetime.datetime) -> int:
        deleted_count = self.session.query(QRLink) \
            .filter(QRLink.expires_at < now) \
            .delete(synchronize_session=False)
        self.session.commit()

        return deleted_count
