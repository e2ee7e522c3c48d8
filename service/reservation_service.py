import logging
import math

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import Reservation
from repository.reservation_repository import ReservationRepository
from schemas.base import MessageOutputBase
from schemas.reservation import (CreateReservationInput, UpdateReservationInput, ReservationDetail,
                                 ReservationListItem, PagedReservations)
from schemas.user import TokenPayload
from util import is_future

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_paging(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE
    return page, limit


class ReservationService:
    def __init__(self, session: Session):
        self.reservation_repository = ReservationRepository(session)

    def _get_owned(self, current_user: TokenPayload, reservation_id: int) -> Reservation:
        reservation = self.reservation_repository.get_by_id(reservation_id)

        if not reservation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Reservation not found')

        if reservation.user_id != current_user.id:
            logger.warning(f'User {current_user.id} tried to access reservation {reservation_id}')
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="Cannot access other users' reservations")

        return reservation

    def get_my_reservations(self, current_user: TokenPayload, page: int, limit: int) -> PagedReservations:
        page, limit = normalize_paging(page, limit)

        total_count = self.reservation_repository.count_by_user_id(current_user.id)
        reservations = self.reservation_repository.get_page_by_user_id(current_user.id, page, limit)
        total_pages = math.ceil(total_count / limit)

        return PagedReservations(
            items=[ReservationListItem.from_reservation(reservation) for reservation in reservations],
            total_count=total_count,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_previous_page=page > 1,
            has_next_page=page < total_pages
        )

    def get_recent_reservations(self, current_user: TokenPayload, count: int = 5) -> list[ReservationListItem]:
        return [ReservationListItem.from_reservation(reservation)
                for reservation in self.reservation_repository.get_recent_by_user_id(current_user.id, count)]

    def get_reservation(self, current_user: TokenPayload, reservation_id: int) -> ReservationDetail:
        return ReservationDetail.from_reservation(self._get_owned(current_user, reservation_id))

    def make_reservation(self, current_user: TokenPayload,
                         new_reservation: CreateReservationInput) -> ReservationDetail:
        if not is_future(new_reservation.scheduled_at):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Scheduled time must be in the future')

        reservation = self.reservation_repository.create(current_user.id, new_reservation)
        logger.info(f'Reservation {reservation.id} created by user {current_user.id}')

        return ReservationDetail.from_reservation(reservation)

    def edit_reservation(self, current_user: TokenPayload, reservation_id: int,
                         edit_reservation: UpdateReservationInput) -> ReservationDetail:
        reservation = self._get_owned(current_user, reservation_id)

        if not is_future(edit_reservation.scheduled_at):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Scheduled time must be in the future')

        reservation = self.reservation_repository.update(reservation, edit_reservation)
        logger.info(f'Reservation {reservation_id} updated by user {current_user.id}')

        return ReservationDetail.from_reservation(reservation)

    def delete_reservation(self, current_user: TokenPayload, reservation_id: int) -> MessageOutputBase:
        reservation = self._get_owned(current_user, reservation_id)

        self.reservation_repository.delete(reservation)
        logger.info(f'Reservation {reservation_id} deleted by user {current_user.id}')

        return MessageOutputBase(message='Reservation deleted successfully')
