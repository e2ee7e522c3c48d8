from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from db.models import Reservation, ReservationStatus
from schemas.reservation import CreateReservationInput, UpdateReservationInput


class ReservationRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, _id: int) -> Optional[Reservation]:
        return self.session.query(Reservation) \
            .options(joinedload(Reservation.user)) \
            .filter_by(id=_id) \
            .first()

    def get_page_by_user_id(self, user_id: int, page: int, limit: int) -> List[Reservation]:
        return self.session.query(Reservation) \
            .options(joinedload(Reservation.user)) \
            .filter_by(user_id=user_id) \
            .order_by(Reservation.created_at.desc(), Reservation.id.desc()) \
            .offset((page - 1) * limit) \
            .limit(limit) \
            .all()

    def get_recent_by_user_id(self, user_id: int, count: int = 5) -> List[Reservation]:
        return self.get_page_by_user_id(user_id, 1, count)

    def count_by_user_id(self, user_id: int) -> int:
        return self.session.query(Reservation).filter_by(user_id=user_id).count()

    def create(self, user_id: int, data: CreateReservationInput) -> Reservation:
        reservation = Reservation(
            user_id=user_id,
            status=ReservationStatus.ACTIVE,
            **data.model_dump()
        )
        self.session.add(reservation)
        self.session.commit()
        self.session.refresh(reservation)

        return reservation

    def update(self, reservation: Reservation, data: UpdateReservationInput) -> Reservation:
        reservation.title = data.title
        reservation.description = data.description
        reservation.scheduled_at = data.scheduled_at
        reservation.service_type = data.service_type
        if data.status is not None:
            reservation.status = data.status

        self.session.commit()
        self.session.refresh(reservation)

        return reservation

    def delete(self, reservation: Reservation):
        self.session.delete(reservation)
        self.session.commit()
